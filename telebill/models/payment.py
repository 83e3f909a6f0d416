"""Payment model for tracking charge attempts against invoices."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from telebill.core.database import Base
from telebill.models.shared import UUIDType, generate_uuid


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentGateway(str, Enum):
    """Supported payment gateways."""

    STRIPE = "stripe"
    MANUAL = "manual"  # For manual/offline payments


class Payment(Base):
    """Payment model - one charge attempt for an invoice."""

    __tablename__ = "payments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    payment_method_id = Column(
        UUIDType, ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True
    )

    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    gateway = Column(String(50), nullable=False, default=PaymentGateway.STRIPE.value)
    gateway_charge_id = Column(String(255), nullable=True, index=True)
    failure_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)
