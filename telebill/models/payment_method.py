"""PaymentMethod model for storing billing account payment methods."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, func

from telebill.core.database import Base
from telebill.models.shared import UUIDType, generate_uuid


class PaymentMethodType(str, Enum):
    CREDIT_CARD = "credit_card"
    BANK_ACCOUNT = "bank_account"
    PAYPAL = "paypal"


class PaymentMethod(Base):
    """PaymentMethod model - stores saved payment methods for billing accounts."""

    __tablename__ = "payment_methods"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    billing_account_id = Column(
        UUIDType,
        ForeignKey("billing_accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Gateway info
    gateway = Column(String(50), nullable=False)  # stripe / manual
    gateway_payment_method_id = Column(String(255), nullable=False)

    type = Column(String(50), nullable=False, default=PaymentMethodType.CREDIT_CARD.value)

    is_default = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Display details (last4, brand, exp_month, exp_year)
    details = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
