from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from telebill.core.database import Base
from telebill.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


# Allowed status changes; PAID is terminal
INVOICE_TRANSITIONS: dict[str, set[str]] = {
    InvoiceStatus.DRAFT.value: {InvoiceStatus.SENT.value},
    InvoiceStatus.SENT.value: {InvoiceStatus.PAID.value, InvoiceStatus.OVERDUE.value},
    InvoiceStatus.OVERDUE.value: {InvoiceStatus.PAID.value},
    InvoiceStatus.PAID.value: set(),
}


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_number = Column(String(50), unique=True, index=True, nullable=False)
    billing_account_id = Column(
        UUIDType,
        ForeignKey("billing_accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status = Column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value, index=True)

    # Billing period
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)

    # Amounts in minor currency units
    subtotal = Column(Integer, nullable=False, default=0)
    tax = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")

    # Dates
    due_date = Column(DateTime(timezone=True), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    # Rendered document
    pdf_url = Column(Text, nullable=True)
    pdf_generated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
