"""Turns a usage event description into a priced line."""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from telebill.core.config import settings
from telebill.core.exceptions import PricingError, UnknownEventTypeError
from telebill.core.money import format_amount, round_minor
from telebill.models.regional_pricing import Region
from telebill.models.usage_event import UsageEventType
from telebill.schemas.cost import CostCalculationInput, CostCalculationResult, PricingInfo

if TYPE_CHECKING:
    from telebill.services.regional_pricing import RegionalPricingService

logger = logging.getLogger(__name__)

DEFAULT_REGION = Region.US.value

# Rate-card keys shared by the default table and regional pricing rows
RATE_KEYS = {
    UsageEventType.INBOUND_CALL: "inbound_call_per_minute",
    UsageEventType.OUTBOUND_CALL: "outbound_call_per_minute",
    UsageEventType.CALL_FORWARDED: "call_forwarding_per_minute",
    UsageEventType.SMS_RECEIVED: "sms_inbound",
    UsageEventType.SMS_SENT: "sms_outbound",
    UsageEventType.VOICEMAIL_RECEIVED: "voicemail_per_message",
    UsageEventType.MONTHLY_SUBSCRIPTION: "monthly_base",
    UsageEventType.SETUP_FEE: "setup_fee",
}

_CALL_LABELS = {
    UsageEventType.INBOUND_CALL: "Inbound call",
    UsageEventType.OUTBOUND_CALL: "Outbound call",
    UsageEventType.CALL_FORWARDED: "Call forwarded",
}

_UNIT_LABELS = {
    UsageEventType.SMS_RECEIVED: "SMS received",
    UsageEventType.SMS_SENT: "SMS sent",
    UsageEventType.VOICEMAIL_RECEIVED: "Voicemail received",
}

_FLAT_LABELS = {
    UsageEventType.MONTHLY_SUBSCRIPTION: "Monthly subscription",
    UsageEventType.SETUP_FEE: "Setup fee",
}


def parse_event_type(event_type: UsageEventType | str) -> UsageEventType:
    """Coerce a raw event type, raising UnknownEventTypeError for anything unrecognised."""
    try:
        return UsageEventType(event_type)
    except ValueError:
        raise UnknownEventTypeError(event_type) from None


def billable_minutes(duration_seconds: int | None) -> int:
    """Whole minutes billed for a call: partial minutes round up, zero stays zero."""
    if not duration_seconds:
        return 0
    if duration_seconds < 0:
        raise ValueError(f"Call duration cannot be negative: {duration_seconds}")
    return math.ceil(duration_seconds / 60)


def price_event(
    event_type: UsageEventType,
    rates: dict[str, int],
    duration: int | None,
    quantity: int,
    currency: str,
    region: str,
) -> CostCalculationResult:
    """Price one event against a rate card."""
    rate = int(rates.get(RATE_KEYS[event_type], 0))

    if event_type in _CALL_LABELS:
        minutes = billable_minutes(duration)
        return CostCalculationResult(
            unit_cost=rate,
            total_cost=rate * minutes,
            quantity=minutes,
            description=f"{_CALL_LABELS[event_type]} ({minutes} min)",
            currency=currency,
            region=region,
        )

    if event_type in _UNIT_LABELS:
        return CostCalculationResult(
            unit_cost=rate,
            total_cost=rate * quantity,
            quantity=quantity,
            description=_UNIT_LABELS[event_type],
            currency=currency,
            region=region,
        )

    # Flat charges are one per call regardless of the requested quantity
    return CostCalculationResult(
        unit_cost=rate,
        total_cost=rate,
        quantity=1,
        description=_FLAT_LABELS[event_type],
        currency=currency,
        region=region,
    )


class CostCalculator:
    """Prices usage events with regional pricing when available, defaults otherwise."""

    def __init__(self, regional_pricing: RegionalPricingService | None = None):
        self.regional_pricing = regional_pricing

    @staticmethod
    def default_rates() -> dict[str, int]:
        return {
            "setup_fee": settings.PRICING_SETUP_FEE,
            "monthly_base": settings.PRICING_MONTHLY_BASE,
            "inbound_call_per_minute": settings.PRICING_INBOUND_CALL_PER_MINUTE,
            "outbound_call_per_minute": settings.PRICING_OUTBOUND_CALL_PER_MINUTE,
            "sms_inbound": settings.PRICING_SMS_INBOUND,
            "sms_outbound": settings.PRICING_SMS_OUTBOUND,
            "voicemail_per_message": settings.PRICING_VOICEMAIL_PER_MESSAGE,
            "call_forwarding_per_minute": settings.PRICING_CALL_FORWARDING_PER_MINUTE,
        }

    def calculate_cost(self, data: CostCalculationInput) -> CostCalculationResult:
        """Price a single usage event.

        Regional pricing failures fall back to the default rate table;
        an unknown event type always raises UnknownEventTypeError.
        """
        event_type = parse_event_type(data.event_type)

        if data.region and self.regional_pricing is not None:
            try:
                return self.regional_pricing.calculate_regional_cost(data)
            except (PricingError, SQLAlchemyError) as e:
                logger.warning(
                    "Regional pricing failed for region %s, using default pricing: %s",
                    data.region,
                    e,
                )

        return price_event(
            event_type,
            self.default_rates(),
            data.duration,
            data.quantity,
            settings.DEFAULT_CURRENCY,
            DEFAULT_REGION,
        )

    def calculate_monthly_subscription(self) -> CostCalculationResult:
        return self.calculate_cost(
            CostCalculationInput(event_type=UsageEventType.MONTHLY_SUBSCRIPTION)
        )

    def calculate_setup_fee(self) -> CostCalculationResult:
        return self.calculate_cost(CostCalculationInput(event_type=UsageEventType.SETUP_FEE))

    def calculate_tax(self, subtotal: int) -> int:
        return round_minor(Decimal(subtotal) * settings.TAX_RATE)

    def calculate_total(self, subtotal: int) -> int:
        return subtotal + self.calculate_tax(subtotal)

    def get_pricing_info(self) -> PricingInfo:
        return PricingInfo(
            rates=self.default_rates(),
            tax_rate=settings.TAX_RATE,
            currency=settings.DEFAULT_CURRENCY,
        )

    def format_amount(self, minor_units: int, currency: str | None = None) -> str:
        return format_amount(minor_units, currency or settings.DEFAULT_CURRENCY)
