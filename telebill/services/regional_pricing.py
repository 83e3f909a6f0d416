"""Regional rate cards, volume discounts and regional tax."""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telebill.core.cache import TTLCache
from telebill.core.config import settings
from telebill.core.exceptions import (
    MissingRateError,
    PricingLookupError,
    PricingNotFoundError,
    PricingPlanNotFoundError,
)
from telebill.core.money import format_amount, round_minor
from telebill.models.regional_pricing import TaxType, UsageType, VolumeDiscount
from telebill.models.shared import utc_now
from telebill.models.usage_event import CALL_EVENT_TYPES, SMS_EVENT_TYPES, UsageEventType
from telebill.repositories.regional_pricing_repository import RegionalPricingRepository
from telebill.repositories.usage_event_repository import UsageEventRepository
from telebill.schemas.cost import AppliedDiscount, CostCalculationInput, CostCalculationResult
from telebill.schemas.regional_pricing import (
    CostEstimateBreakdown,
    GstBreakdown,
    MonthlyCostEstimate,
    PricingPlan,
    RegionalPricingResponse,
    RegionalTaxResult,
    UsageEstimateRequest,
)
from telebill.services.billing_periods import month_bounds
from telebill.services.cost_calculator import RATE_KEYS, parse_event_type, price_event
from telebill.services.pricing_plans import plans_for_region

logger = logging.getLogger(__name__)

# Shared across services in one process; rows are read-only reference data
pricing_cache = TTLCache(ttl_seconds=settings.REGIONAL_PRICING_CACHE_TTL_SECONDS)

_USAGE_BUCKETS: dict[str, tuple[UsageEventType, ...]] = {
    UsageType.MINUTES.value: CALL_EVENT_TYPES,
    UsageType.SMS.value: SMS_EVENT_TYPES,
}


def _bucket_for(event_type: UsageEventType) -> UsageType | None:
    if event_type in CALL_EVENT_TYPES:
        return UsageType.MINUTES
    if event_type in SMS_EVENT_TYPES:
        return UsageType.SMS
    return None


def _tier_matches(tier: VolumeDiscount, usage: int) -> bool:
    if usage < int(tier.min_usage):
        return False
    return tier.max_usage is None or usage <= int(tier.max_usage)


class RegionalPricingService:
    """Resolves region-specific pricing, discounts and tax."""

    def __init__(
        self,
        db: Session,
        cache: TTLCache | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.cache = cache if cache is not None else pricing_cache
        self.clock = clock
        self.pricing_repo = RegionalPricingRepository(db)
        self.usage_repo = UsageEventRepository(db)

    def get_regional_pricing(self, region: str) -> RegionalPricingResponse | None:
        """Current pricing for a region, or None when none is in effect.

        Cached as a detached snapshot so entries outlive the loading session.
        """
        cache_key = f"pricing_{region}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            pricing = self.pricing_repo.get_effective(region, self.clock())
        except SQLAlchemyError as e:
            raise PricingLookupError(f"Failed to load pricing for region {region}: {e}") from e

        if pricing is None:
            return None
        snapshot = RegionalPricingResponse.model_validate(pricing)
        self.cache.set(cache_key, snapshot)
        return snapshot

    def _require_pricing(self, region: str) -> RegionalPricingResponse:
        pricing = self.get_regional_pricing(region)
        if pricing is None:
            raise PricingNotFoundError(region)
        return pricing

    def calculate_regional_cost(self, data: CostCalculationInput) -> CostCalculationResult:
        event_type = parse_event_type(data.event_type)
        region = str(data.region)
        pricing = self._require_pricing(region)
        rates = dict(pricing.pricing or {})
        # A card that does not price this event type must not bill it at zero
        if RATE_KEYS[event_type] not in rates:
            raise MissingRateError(region, RATE_KEYS[event_type])

        result = price_event(
            event_type,
            rates,
            data.duration,
            data.quantity,
            str(pricing.currency),
            region,
        )

        bucket = _bucket_for(event_type)
        if data.user_id is not None and bucket is not None and result.total_cost > 0:
            result = self.apply_volume_discounts(result, data.user_id, region, bucket)
        return result

    def apply_volume_discounts(
        self,
        result: CostCalculationResult,
        user_id: UUID,
        region: str,
        usage_type: UsageType,
    ) -> CostCalculationResult:
        """Apply the best matching tier for the user's usage this month."""
        try:
            usage = self.get_current_month_usage(user_id, usage_type)
        except SQLAlchemyError:
            logger.exception("Failed to load monthly usage for user %s", user_id)
            return result

        best = self._best_tier(region, usage_type, usage)
        if best is None:
            return result

        percent = Decimal(str(best.discount_percent))
        discount = round_minor(Decimal(result.total_cost) * percent / 100)

        return result.model_copy(
            update={
                "total_cost": result.total_cost - discount,
                "applied_discounts": [
                    *result.applied_discounts,
                    AppliedDiscount(
                        type=f"Volume Discount - {best.tier_name}",
                        amount=discount,
                        percentage=percent,
                    ),
                ],
            }
        )

    def get_volume_discounts(self, region: str, usage_type: UsageType) -> list[VolumeDiscount]:
        try:
            return self.pricing_repo.get_volume_discounts(region, usage_type.value)
        except SQLAlchemyError:
            logger.exception("Failed to load volume discounts for region %s", region)
            return []

    def _best_tier(
        self, region: str, usage_type: UsageType, usage: int
    ) -> VolumeDiscount | None:
        """Matching tier with the highest discount percentage."""
        tiers = self.get_volume_discounts(region, usage_type)
        matching = [tier for tier in tiers if _tier_matches(tier, usage)]
        if not matching:
            return None
        return max(matching, key=lambda tier: Decimal(str(tier.discount_percent)))

    def get_current_month_usage(self, user_id: UUID, usage_type: UsageType) -> int:
        """Cumulative quantity this calendar month across all of the user's accounts."""
        event_types = _USAGE_BUCKETS.get(usage_type.value)
        if not event_types:
            return 0
        month_start, _ = month_bounds(self.clock())
        return self.usage_repo.sum_quantity_for_user(
            user_id, [t.value for t in event_types], month_start
        )

    def calculate_regional_tax(self, subtotal: int, region: str) -> RegionalTaxResult:
        taxes = dict(self._require_pricing(region).taxes or {})
        tax = round_minor(Decimal(subtotal) * Decimal(str(taxes.get("rate", 0))))

        breakdown = None
        if taxes.get("type") == TaxType.GST.value:
            # Each component is rounded on its own and may not add up to ``tax``
            components = {
                name: round_minor(Decimal(subtotal) * Decimal(str(taxes[name])))
                for name in ("cgst", "sgst", "igst")
                if taxes.get(name) is not None
            }
            breakdown = GstBreakdown(**components)

        return RegionalTaxResult(tax=tax, breakdown=breakdown)

    def get_pricing_tiers(self, region: str) -> list[PricingPlan]:
        return list(plans_for_region(region).values())

    def get_pricing_tier(self, region: str, plan_name: str) -> PricingPlan | None:
        return plans_for_region(region).get(plan_name.upper())

    def estimate_monthly_cost(
        self, region: str, plan_name: str, usage: UsageEstimateRequest
    ) -> MonthlyCostEstimate:
        """Projected monthly bill for a plan: base + usage - volume discounts + tax.

        Included allowances are split between directions, 60/40 outbound to
        inbound for minutes and 80/20 for SMS. Under GST an interstate
        customer pays IGST and an intrastate one pays CGST plus SGST.
        """
        plan = self.get_pricing_tier(region, plan_name)
        if plan is None:
            raise PricingPlanNotFoundError(region, plan_name)
        rates = plan.rates

        outbound_minutes = max(0, usage.outbound_minutes - plan.included_minutes * 6 // 10)
        inbound_minutes = max(0, usage.inbound_minutes - plan.included_minutes * 4 // 10)
        call_cost = (
            outbound_minutes * rates["outbound_call_per_minute"]
            + inbound_minutes * rates["inbound_call_per_minute"]
        )
        sms_outbound = max(0, usage.sms_outbound - plan.included_sms * 8 // 10)
        sms_inbound = max(0, usage.sms_inbound - plan.included_sms * 2 // 10)
        sms_cost = sms_outbound * rates["sms_outbound"] + sms_inbound * rates["sms_inbound"]
        voicemail_cost = usage.voicemail_messages * rates["voicemail_per_message"]
        usage_cost = call_cost + sms_cost + voicemail_cost

        applied: list[AppliedDiscount] = []
        for usage_type, volume, cost in (
            (UsageType.MINUTES, usage.outbound_minutes + usage.inbound_minutes, call_cost),
            (UsageType.SMS, usage.sms_outbound + usage.sms_inbound, sms_cost),
        ):
            tier = self._best_tier(plan.region, usage_type, volume)
            if tier is None or cost == 0:
                continue
            percent = Decimal(str(tier.discount_percent))
            applied.append(
                AppliedDiscount(
                    type=f"Volume Discount - {tier.tier_name}",
                    amount=round_minor(Decimal(cost) * percent / 100),
                    percentage=percent,
                )
            )
        discount = sum(d.amount for d in applied)

        subtotal = plan.monthly_base + usage_cost - discount
        tax, tax_breakdown, interstate = self._estimate_tax(
            plan.region, subtotal, usage.customer_state
        )
        total = subtotal + tax

        return MonthlyCostEstimate(
            plan=plan.name,
            region=plan.region,
            currency=plan.currency,
            base_cost=plan.monthly_base,
            usage_cost=usage_cost,
            discount=discount,
            subtotal=subtotal,
            tax=tax,
            total=total,
            formatted_total=format_amount(total, plan.currency),
            breakdown=CostEstimateBreakdown(
                monthly_base=plan.monthly_base,
                calls=call_cost,
                sms=sms_cost,
                voicemail=voicemail_cost,
            ),
            applied_discounts=applied,
            tax_breakdown=tax_breakdown,
            interstate=interstate,
        )

    def _estimate_tax(
        self, region: str, subtotal: int, customer_state: str | None
    ) -> tuple[int, GstBreakdown | None, bool | None]:
        pricing = self.get_regional_pricing(region)
        taxes = dict(pricing.taxes or {}) if pricing else {}
        rate = Decimal(str(taxes.get("rate", settings.TAX_RATE)))
        if taxes.get("type") != TaxType.GST.value:
            return round_minor(Decimal(subtotal) * rate), None, None

        interstate = (
            customer_state is not None and customer_state.upper() != settings.GST_HOME_STATE
        )
        if interstate:
            igst = round_minor(Decimal(subtotal) * Decimal(str(taxes.get("igst", rate))))
            return igst, GstBreakdown(igst=igst), True

        cgst = round_minor(Decimal(subtotal) * Decimal(str(taxes.get("cgst", rate / 2))))
        sgst = round_minor(Decimal(subtotal) * Decimal(str(taxes.get("sgst", rate / 2))))
        return cgst + sgst, GstBreakdown(cgst=cgst, sgst=sgst), False

    def clear_cache(self) -> None:
        self.cache.clear()
