"""BillingAccount model: the entity invoices and usage are billed to."""

from enum import Enum

from sqlalchemy import Column, DateTime, String, func

from telebill.core.database import Base
from telebill.models.shared import UUIDType, generate_uuid


class BillingPeriod(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class BillingAccount(Base):
    __tablename__ = "billing_accounts"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)

    billing_period = Column(String(20), nullable=False, default=BillingPeriod.MONTHLY.value)
    next_billing_date = Column(DateTime(timezone=True), nullable=False, index=True)

    currency = Column(String(3), nullable=False, default="USD")
    region = Column(String(10), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
