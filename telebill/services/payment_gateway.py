"""Payment gateway abstraction layer.

Supports Stripe and manual/offline payments.
"""

import hashlib
import hmac
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from telebill.core.config import settings
from telebill.core.exceptions import PaymentGatewayError
from telebill.models.payment import PaymentGateway, PaymentStatus

PAYMENT_SUCCEEDED = "payment.succeeded"
PAYMENT_FAILED = "payment.failed"


@dataclass
class ChargeResult:
    """Outcome of a single charge attempt."""

    status: PaymentStatus
    gateway_charge_id: str | None = None
    failure_reason: str | None = None


@dataclass
class GatewayWebhookEvent:
    """Gateway webhook normalised to payment.succeeded / payment.failed."""

    event_type: str
    gateway_charge_id: str | None = None
    failure_reason: str | None = None


class PaymentGatewayBase(ABC):
    """Abstract base class for payment gateways."""

    @property
    @abstractmethod
    def gateway_name(self) -> PaymentGateway:
        """Return the gateway enum value."""
        pass  # pragma: no cover

    @abstractmethod
    def charge(
        self,
        invoice_id: UUID,
        amount: int,
        currency: str,
        payment_method_ref: str,
    ) -> ChargeResult:
        """Charge ``amount`` minor units against a stored payment method."""
        pass  # pragma: no cover

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify the webhook signature."""
        pass  # pragma: no cover

    @abstractmethod
    def parse_webhook(self, payload: dict[str, Any]) -> GatewayWebhookEvent:
        """Parse a webhook payload into a normalised event."""
        pass  # pragma: no cover


class StripeGateway(PaymentGatewayBase):
    """Stripe gateway charging saved payment methods with PaymentIntents."""

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key or settings.stripe_api_key
        self.webhook_secret = webhook_secret or settings.stripe_webhook_secret
        self._stripe: Any = None

    @property
    def stripe(self) -> Any:
        """Lazy-load stripe module."""
        if self._stripe is None:
            try:
                import stripe

                stripe.api_key = self.api_key
                self._stripe = stripe
            except ImportError as e:
                raise ImportError("stripe package not installed. Run: pip install stripe") from e
        return self._stripe

    @property
    def gateway_name(self) -> PaymentGateway:
        return PaymentGateway.STRIPE

    def charge(
        self,
        invoice_id: UUID,
        amount: int,
        currency: str,
        payment_method_ref: str,
    ) -> ChargeResult:
        """Create and confirm an off-session PaymentIntent."""
        try:
            intent = self.stripe.PaymentIntent.create(
                amount=amount,
                currency=currency.lower(),
                payment_method=payment_method_ref,
                confirm=True,
                off_session=True,
                metadata={"invoice_id": str(invoice_id)},
            )
        except self.stripe.CardError as e:
            error = getattr(e, "error", None)
            intent_id = getattr(getattr(error, "payment_intent", None), "id", None)
            return ChargeResult(
                status=PaymentStatus.FAILED,
                gateway_charge_id=intent_id,
                failure_reason=getattr(e, "user_message", None) or str(e),
            )
        except self.stripe.StripeError as e:
            raise PaymentGatewayError(f"Stripe charge failed: {e}") from e

        if intent.status == "succeeded":
            return ChargeResult(status=PaymentStatus.SUCCEEDED, gateway_charge_id=intent.id)
        if intent.status in ("processing", "requires_action", "requires_confirmation"):
            return ChargeResult(status=PaymentStatus.PENDING, gateway_charge_id=intent.id)
        return ChargeResult(
            status=PaymentStatus.FAILED,
            gateway_charge_id=intent.id,
            failure_reason=f"Payment intent status: {intent.status}",
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify Stripe webhook signature."""
        if not self.webhook_secret:
            return False
        try:
            self.stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
            return True
        except (ValueError, self.stripe.SignatureVerificationError):
            return False

    def parse_webhook(self, payload: dict[str, Any]) -> GatewayWebhookEvent:
        """Parse Stripe webhook payload."""
        event_type = payload.get("type", "")
        data_object = payload.get("data", {}).get("object", {})

        if event_type == "payment_intent.succeeded":
            return GatewayWebhookEvent(
                event_type=PAYMENT_SUCCEEDED, gateway_charge_id=data_object.get("id")
            )

        if event_type == "payment_intent.payment_failed":
            last_error = data_object.get("last_payment_error") or {}
            return GatewayWebhookEvent(
                event_type=PAYMENT_FAILED,
                gateway_charge_id=data_object.get("id"),
                failure_reason=last_error.get("message", "Payment failed"),
            )

        return GatewayWebhookEvent(event_type=event_type, gateway_charge_id=data_object.get("id"))


class ManualGateway(PaymentGatewayBase):
    """Manual gateway for offline payments confirmed later by webhook."""

    def __init__(self, webhook_secret: str | None = None):
        self.webhook_secret = webhook_secret or settings.manual_webhook_secret

    @property
    def gateway_name(self) -> PaymentGateway:
        return PaymentGateway.MANUAL

    def charge(
        self,
        invoice_id: UUID,
        amount: int,
        currency: str,
        payment_method_ref: str,
    ) -> ChargeResult:
        """Offline payments stay pending until confirmed."""
        return ChargeResult(
            status=PaymentStatus.PENDING,
            gateway_charge_id=f"manual_{uuid.uuid4()}",
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Manual gateway uses HMAC-SHA256 for signature verification."""
        if not self.webhook_secret:
            return False
        expected = hmac.new(
            self.webhook_secret.encode(),
            payload,
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)

    def parse_webhook(self, payload: dict[str, Any]) -> GatewayWebhookEvent:
        """Parse manual webhook payload."""
        status = payload.get("status", "succeeded")
        event_type = payload.get("event_type") or (
            PAYMENT_SUCCEEDED if status == "succeeded" else PAYMENT_FAILED
        )
        return GatewayWebhookEvent(
            event_type=event_type,
            gateway_charge_id=payload.get("charge_id"),
            failure_reason=payload.get("failure_reason"),
        )


def get_payment_gateway(gateway: PaymentGateway | str) -> PaymentGatewayBase:
    """Factory function to get the appropriate payment gateway."""
    gateways: dict[str, type[PaymentGatewayBase]] = {
        PaymentGateway.STRIPE.value: StripeGateway,
        PaymentGateway.MANUAL.value: ManualGateway,
    }

    key = gateway.value if isinstance(gateway, PaymentGateway) else gateway
    gateway_class = gateways.get(key)
    if not gateway_class:
        raise ValueError(f"Unsupported payment gateway: {gateway}")

    return gateway_class()
