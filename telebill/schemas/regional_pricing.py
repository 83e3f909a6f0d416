from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from telebill.schemas.cost import AppliedDiscount


class RegionalPricingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    region: str
    currency: str
    pricing: dict[str, int]
    taxes: dict[str, Any]
    effective_from: datetime
    effective_until: datetime | None = None


class GstBreakdown(BaseModel):
    cgst: int | None = None
    sgst: int | None = None
    igst: int | None = None


class RegionalTaxResult(BaseModel):
    tax: int
    breakdown: GstBreakdown | None = None


class PricingPlan(BaseModel):
    name: str
    display_name: str
    region: str
    currency: str
    monthly_base: int
    setup_fee: int
    rates: dict[str, int]
    included_minutes: int = 0
    included_sms: int = 0
    features: list[str] = Field(default_factory=list)


class UsageEstimateRequest(BaseModel):
    outbound_minutes: int = Field(default=0, ge=0)
    inbound_minutes: int = Field(default=0, ge=0)
    sms_outbound: int = Field(default=0, ge=0)
    sms_inbound: int = Field(default=0, ge=0)
    voicemail_messages: int = Field(default=0, ge=0)
    # Customer's state code; GST is interstate when it differs from the home state
    customer_state: str | None = None


class CostEstimateBreakdown(BaseModel):
    monthly_base: int
    calls: int
    sms: int
    voicemail: int


class MonthlyCostEstimate(BaseModel):
    plan: str
    region: str
    currency: str
    base_cost: int
    usage_cost: int
    discount: int
    subtotal: int
    tax: int
    total: int
    formatted_total: str
    breakdown: CostEstimateBreakdown
    applied_discounts: list[AppliedDiscount] = Field(default_factory=list)
    tax_breakdown: GstBreakdown | None = None
    interstate: bool | None = None
