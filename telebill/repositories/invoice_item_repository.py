from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.models.invoice_item import InvoiceItem


class InvoiceItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, *, commit: bool = True, **fields: Any) -> InvoiceItem:
        item = InvoiceItem(**fields)
        self.db.add(item)
        if commit:
            self.db.commit()
            self.db.refresh(item)
        else:
            self.db.flush()
        return item

    def get_by_invoice(self, invoice_id: UUID) -> list[InvoiceItem]:
        return (
            self.db.query(InvoiceItem)
            .filter(InvoiceItem.invoice_id == invoice_id)
            .order_by(InvoiceItem.created_at.asc())
            .all()
        )
