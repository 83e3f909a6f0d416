from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint

from telebill.core.database import Base
from telebill.models.shared import UUIDType, generate_uuid, utc_now


class BillingCycleStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class BillingCycle(Base):
    __tablename__ = "billing_cycles"
    __table_args__ = (
        UniqueConstraint(
            "billing_account_id",
            "period_start",
            "period_end",
            name="uq_billing_cycles_account_period",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    billing_account_id = Column(
        UUIDType,
        ForeignKey("billing_accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=BillingCycleStatus.PROCESSING.value)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True
    )
    processed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
