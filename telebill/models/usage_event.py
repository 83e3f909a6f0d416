"""UsageEvent model: one billable occurrence on a phone number."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String

from telebill.core.database import Base
from telebill.models.shared import UUIDType, generate_uuid, utc_now


class UsageEventType(str, Enum):
    INBOUND_CALL = "inbound_call"
    OUTBOUND_CALL = "outbound_call"
    SMS_RECEIVED = "sms_received"
    SMS_SENT = "sms_sent"
    VOICEMAIL_RECEIVED = "voicemail_received"
    CALL_FORWARDED = "call_forwarded"
    MONTHLY_SUBSCRIPTION = "monthly_subscription"
    SETUP_FEE = "setup_fee"


CALL_EVENT_TYPES = (
    UsageEventType.INBOUND_CALL,
    UsageEventType.OUTBOUND_CALL,
    UsageEventType.CALL_FORWARDED,
)
SMS_EVENT_TYPES = (UsageEventType.SMS_RECEIVED, UsageEventType.SMS_SENT)


class UsageEvent(Base):
    __tablename__ = "usage_events"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    billing_account_id = Column(
        UUIDType,
        ForeignKey("billing_accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    number_id = Column(String(255), nullable=False, index=True)
    event_type = Column(String(30), nullable=False)

    # Duration in seconds (call types only)
    duration = Column(Integer, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)

    # Amounts in minor currency units
    unit_cost = Column(Integer, nullable=False, default=0)
    total_cost = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    region = Column(String(10), nullable=True)

    from_number = Column(String(50), nullable=True)
    to_number = Column(String(50), nullable=True)
    event_metadata = Column(JSON, nullable=True, default=dict)

    timestamp = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)

    is_invoiced = Column(Boolean, nullable=False, default=False, index=True)
    invoice_item_id = Column(
        UUIDType, ForeignKey("invoice_items.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
