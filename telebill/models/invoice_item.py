from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String

from telebill.core.database import Base
from telebill.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String(500), nullable=False)
    event_type = Column(String(30), nullable=True)
    number_id = Column(String(255), nullable=True)

    quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)

    # Ids of the usage events this line summarizes
    usage_event_ids = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
