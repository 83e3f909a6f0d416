from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class InvoiceGenerateRequest(BaseModel):
    billing_account_id: UUID
    period_start: datetime
    period_end: datetime
    due_date: datetime | None = None


class InvoiceItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    description: str
    event_type: str | None = None
    number_id: str | None = None
    quantity: int
    unit_price: int
    total: int
    usage_event_ids: list[str]


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_number: str
    billing_account_id: UUID
    status: str
    period_start: datetime
    period_end: datetime
    subtotal: int
    tax: int
    total: int
    currency: str
    due_date: datetime
    issued_at: datetime | None = None
    paid_at: datetime | None = None
    pdf_url: str | None = None
    pdf_generated_at: datetime | None = None
    created_at: datetime


class InvoiceDetailResponse(InvoiceResponse):
    items: list[InvoiceItemResponse] = []
