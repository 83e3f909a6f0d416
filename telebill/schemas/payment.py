from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from telebill.models.payment import PaymentGateway
from telebill.models.payment_method import PaymentMethodType


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    payment_method_id: UUID | None = None
    amount: int
    currency: str
    status: str
    gateway: str
    gateway_charge_id: str | None = None
    failure_reason: str | None = None
    processed_at: datetime | None = None


class PaymentResultResponse(BaseModel):
    success: bool
    payment: PaymentResponse | None = None
    error: str | None = None


class PayInvoiceRequest(BaseModel):
    payment_method_id: UUID | None = None


class PaymentMethodCreate(BaseModel):
    billing_account_id: UUID
    gateway: PaymentGateway = PaymentGateway.STRIPE
    gateway_payment_method_id: str = Field(min_length=1, max_length=255)
    type: PaymentMethodType = PaymentMethodType.CREDIT_CARD
    is_default: bool = False
    details: dict[str, Any] = Field(default_factory=dict)
