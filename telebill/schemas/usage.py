from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UsageEventCreate(BaseModel):
    billing_account_id: UUID
    number_id: str = Field(min_length=1, max_length=255)
    event_type: str
    duration: int | None = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=0)
    region: str | None = None
    from_number: str | None = None
    to_number: str | None = None
    metadata: dict[str, Any] | None = None
    timestamp: datetime | None = None


class UsageEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    billing_account_id: UUID
    number_id: str
    event_type: str
    duration: int | None = None
    quantity: int
    unit_cost: int
    total_cost: int
    currency: str
    region: str | None = None
    from_number: str | None = None
    to_number: str | None = None
    event_metadata: dict[str, Any] | None = None
    timestamp: datetime
    is_invoiced: bool
    invoice_item_id: UUID | None = None


class UsageBreakdown(BaseModel):
    count: int = 0
    cost: int = 0
    duration: int = 0


class UsageStatistics(BaseModel):
    total_events: int
    total_cost: int
    event_breakdown: dict[str, UsageBreakdown]
    period_start: datetime
    period_end: datetime


class DailyUsage(BaseModel):
    date: date
    count: int
    cost: int
    duration: int
