from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from telebill.models.usage_event import UsageEventType


class CostCalculationInput(BaseModel):
    # Plain string so unrecognised types reach the calculator and fail there
    event_type: UsageEventType | str
    duration: int | None = None
    quantity: int = 1
    region: str | None = None
    user_id: UUID | None = None
    metadata: dict[str, Any] | None = None


class AppliedDiscount(BaseModel):
    type: str
    amount: int
    percentage: Decimal


class CostCalculationResult(BaseModel):
    unit_cost: int
    total_cost: int
    quantity: int
    description: str
    currency: str
    region: str
    applied_discounts: list[AppliedDiscount] = Field(default_factory=list)


class PricingInfo(BaseModel):
    rates: dict[str, int]
    tax_rate: Decimal
    currency: str
