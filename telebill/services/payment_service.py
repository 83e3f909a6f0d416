"""Charges invoices through a payment gateway and reconciles webhooks."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.core.exceptions import InvoiceNotFoundError, PaymentGatewayError
from telebill.models.invoice import INVOICE_TRANSITIONS, Invoice, InvoiceStatus
from telebill.models.payment import Payment, PaymentStatus
from telebill.models.payment_method import PaymentMethod
from telebill.models.shared import utc_now
from telebill.repositories.invoice_repository import InvoiceRepository
from telebill.repositories.payment_method_repository import PaymentMethodRepository
from telebill.repositories.payment_repository import PaymentRepository
from telebill.schemas.payment import PaymentMethodCreate
from telebill.services.payment_gateway import (
    PAYMENT_FAILED,
    PAYMENT_SUCCEEDED,
    GatewayWebhookEvent,
    PaymentGatewayBase,
    get_payment_gateway,
)

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    """Result of a payment attempt."""

    success: bool
    payment: Payment | None = None
    error: str | None = None


class PaymentService:
    def __init__(
        self,
        db: Session,
        gateway_factory: Callable[[str], PaymentGatewayBase] = get_payment_gateway,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.gateway_factory = gateway_factory
        self.clock = clock
        self.invoice_repo = InvoiceRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.payment_method_repo = PaymentMethodRepository(db)

    def _resolve_payment_method(
        self, invoice: Invoice, payment_method_id: UUID | None
    ) -> PaymentMethod | None:
        if payment_method_id is None:
            return self.payment_method_repo.get_default(invoice.billing_account_id)
        method = self.payment_method_repo.get_by_id(payment_method_id)
        if (
            method is None
            or not method.is_active
            or method.billing_account_id != invoice.billing_account_id
        ):
            return None
        return method

    def process_payment(
        self, invoice_id: UUID, payment_method_id: UUID | None = None
    ) -> PaymentResult:
        """Attempt one charge for an invoice.

        Uses the given payment method, or the account's default one.
        Gateway failures are recorded on the Payment and reported in the
        result instead of being raised.
        """
        invoice = self.invoice_repo.get_by_id(invoice_id)
        if not invoice:
            raise InvoiceNotFoundError(invoice_id)

        status = str(invoice.status)
        if status == InvoiceStatus.PAID.value:
            return PaymentResult(success=False, error="Invoice is already paid")
        # Only invoices that can move to paid are ever charged
        if InvoiceStatus.PAID.value not in INVOICE_TRANSITIONS.get(status, set()):
            return PaymentResult(success=False, error=f"Invoice in status {status} cannot be paid")

        method = self._resolve_payment_method(invoice, payment_method_id)
        if method is None:
            return PaymentResult(success=False, error="No active payment method found")

        payment = self.payment_repo.create(
            invoice_id=invoice.id,
            amount=int(invoice.total),
            currency=str(invoice.currency),
            gateway=str(method.gateway),
            payment_method_id=method.id,
        )

        try:
            gateway = self.gateway_factory(str(method.gateway))
            result = gateway.charge(
                invoice.id,
                int(invoice.total),
                str(invoice.currency),
                str(method.gateway_payment_method_id),
            )
        except PaymentGatewayError as e:
            logger.warning("Payment %s for invoice %s failed: %s", payment.id, invoice.id, e)
            self.payment_repo.update_status(
                payment, PaymentStatus.FAILED, processed_at=self.clock(), failure_reason=str(e)
            )
            return PaymentResult(success=False, payment=payment, error=str(e))

        if result.status == PaymentStatus.SUCCEEDED:
            now = self.clock()
            self.payment_repo.update_status(
                payment,
                PaymentStatus.SUCCEEDED,
                processed_at=now,
                gateway_charge_id=result.gateway_charge_id,
            )
            self.invoice_repo.transition(invoice, InvoiceStatus.PAID, paid_at=now)
            logger.info("Invoice %s paid by payment %s", invoice.invoice_number, payment.id)
            return PaymentResult(success=True, payment=payment)

        if result.status == PaymentStatus.FAILED:
            self.payment_repo.update_status(
                payment,
                PaymentStatus.FAILED,
                processed_at=self.clock(),
                gateway_charge_id=result.gateway_charge_id,
                failure_reason=result.failure_reason,
            )
            return PaymentResult(success=False, payment=payment, error=result.failure_reason)

        self.payment_repo.update_status(
            payment, PaymentStatus.PENDING, gateway_charge_id=result.gateway_charge_id
        )
        return PaymentResult(success=False, payment=payment, error="Payment is pending")

    def handle_webhook(self, event: GatewayWebhookEvent) -> bool:
        """Reconcile a gateway event with its Payment. Returns False when ignored."""
        if event.event_type not in (PAYMENT_SUCCEEDED, PAYMENT_FAILED):
            logger.info("Ignoring webhook event %s", event.event_type)
            return False

        payment = (
            self.payment_repo.get_by_gateway_charge_id(event.gateway_charge_id)
            if event.gateway_charge_id
            else None
        )
        if not payment:
            logger.warning("No payment found for gateway charge %s", event.gateway_charge_id)
            return False

        now = self.clock()
        if event.event_type == PAYMENT_SUCCEEDED:
            self.payment_repo.update_status(payment, PaymentStatus.SUCCEEDED, processed_at=now)
            invoice = self.invoice_repo.get_by_id(payment.invoice_id)
            if invoice and invoice.status != InvoiceStatus.PAID.value:
                self.invoice_repo.transition(invoice, InvoiceStatus.PAID, paid_at=now)
            logger.info("Payment %s succeeded via webhook", payment.id)
        else:
            self.payment_repo.update_status(
                payment,
                PaymentStatus.FAILED,
                processed_at=now,
                failure_reason=event.failure_reason or "Payment failed",
            )
            logger.warning("Payment %s failed via webhook: %s", payment.id, event.failure_reason)
        return True

    def create_payment_method(self, data: PaymentMethodCreate) -> PaymentMethod:
        return self.payment_method_repo.create(data)

    def get_payment_methods(self, billing_account_id: UUID) -> list[PaymentMethod]:
        return self.payment_method_repo.get_active_for_account(billing_account_id)

    def delete_payment_method(self, payment_method_id: UUID) -> bool:
        """Deactivate a payment method; history keeps pointing at it."""
        return self.payment_method_repo.deactivate(payment_method_id)
