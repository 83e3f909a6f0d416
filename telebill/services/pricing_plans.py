"""Published subscription plans per region.

Amounts are in minor units of the plan currency (paise for INR).
"""

from telebill.core.config import settings
from telebill.models.regional_pricing import Region
from telebill.schemas.regional_pricing import PricingPlan

INDIA_PLANS: dict[str, PricingPlan] = {
    "STARTER": PricingPlan(
        name="STARTER",
        display_name="Starter Plan",
        region=Region.IN.value,
        currency="INR",
        monthly_base=19900,
        setup_fee=0,
        rates={
            "outbound_call_per_minute": 75,
            "inbound_call_per_minute": 50,
            "sms_outbound": 25,
            "sms_inbound": 10,
            "voicemail_per_message": 500,
            "call_forwarding_per_minute": 25,
        },
        included_minutes=100,
        included_sms=50,
        features=["Virtual Phone Number", "Call Forwarding", "Basic Voicemail", "SMS Support"],
    ),
    "BUSINESS": PricingPlan(
        name="BUSINESS",
        display_name="Business Plan",
        region=Region.IN.value,
        currency="INR",
        monthly_base=39900,
        setup_fee=0,
        rates={
            "outbound_call_per_minute": 50,
            "inbound_call_per_minute": 30,
            "sms_outbound": 20,
            "sms_inbound": 5,
            "voicemail_per_message": 300,
            "call_forwarding_per_minute": 15,
        },
        included_minutes=500,
        included_sms=200,
        features=[
            "Multiple Virtual Numbers",
            "Advanced Call Routing",
            "Call Recording",
            "Priority Support",
        ],
    ),
    "ENTERPRISE": PricingPlan(
        name="ENTERPRISE",
        display_name="Enterprise Plan",
        region=Region.IN.value,
        currency="INR",
        monthly_base=99900,
        setup_fee=0,
        rates={
            "outbound_call_per_minute": 25,
            "inbound_call_per_minute": 15,
            "sms_outbound": 10,
            "sms_inbound": 5,
            "voicemail_per_message": 200,
            "call_forwarding_per_minute": 10,
        },
        included_minutes=2000,
        included_sms=1000,
        features=[
            "Unlimited Virtual Numbers",
            "Call Recording & Analytics",
            "Dedicated Account Manager",
            "API Access",
        ],
    ),
}


def standard_plan() -> PricingPlan:
    """The single plan offered outside India, priced from the default rate table."""
    return PricingPlan(
        name="STANDARD",
        display_name="Standard Plan",
        region=Region.US.value,
        currency=settings.DEFAULT_CURRENCY,
        monthly_base=settings.PRICING_MONTHLY_BASE,
        setup_fee=settings.PRICING_SETUP_FEE,
        rates={
            "outbound_call_per_minute": settings.PRICING_OUTBOUND_CALL_PER_MINUTE,
            "inbound_call_per_minute": settings.PRICING_INBOUND_CALL_PER_MINUTE,
            "sms_outbound": settings.PRICING_SMS_OUTBOUND,
            "sms_inbound": settings.PRICING_SMS_INBOUND,
            "voicemail_per_message": settings.PRICING_VOICEMAIL_PER_MESSAGE,
            "call_forwarding_per_minute": settings.PRICING_CALL_FORWARDING_PER_MINUTE,
        },
    )


def plans_for_region(region: str) -> dict[str, PricingPlan]:
    if region.upper() == Region.IN.value:
        return INDIA_PLANS
    plan = standard_plan()
    return {plan.name: plan}
