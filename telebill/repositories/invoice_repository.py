from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.core.exceptions import InvalidInvoiceTransitionError
from telebill.models.invoice import INVOICE_TRANSITIONS, Invoice, InvoiceStatus


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def _save(self, invoice: Invoice, commit: bool) -> None:
        # Without commit the caller owns the transaction
        if commit:
            self.db.commit()
            self.db.refresh(invoice)
        else:
            self.db.flush()

    def count_created_between(self, start: datetime, end: datetime) -> int:
        return (
            self.db.query(Invoice)
            .filter(Invoice.created_at >= start, Invoice.created_at < end)
            .count()
        )

    def create(self, *, commit: bool = True, **fields: Any) -> Invoice:
        invoice = Invoice(**fields)
        self.db.add(invoice)
        self._save(invoice, commit)
        return invoice

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_by_account(
        self, billing_account_id: UUID, skip: int = 0, limit: int = 20
    ) -> list[Invoice]:
        return (
            self.db.query(Invoice)
            .filter(Invoice.billing_account_id == billing_account_id)
            .order_by(Invoice.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_account(self, billing_account_id: UUID) -> int:
        return (
            self.db.query(Invoice)
            .filter(Invoice.billing_account_id == billing_account_id)
            .count()
        )

    def set_totals(
        self, invoice: Invoice, subtotal: int, tax: int, commit: bool = True
    ) -> Invoice:
        invoice.subtotal = subtotal  # type: ignore[assignment]
        invoice.tax = tax  # type: ignore[assignment]
        invoice.total = subtotal + tax  # type: ignore[assignment]
        self._save(invoice, commit)
        return invoice

    def transition(
        self, invoice: Invoice, status: InvoiceStatus, commit: bool = True, **stamps: Any
    ) -> Invoice:
        """Move an invoice to ``status``, refusing transitions that skip a state."""
        current = str(invoice.status)
        if status.value not in INVOICE_TRANSITIONS.get(current, set()):
            raise InvalidInvoiceTransitionError(current, status.value)
        invoice.status = status.value  # type: ignore[assignment]
        for key, value in stamps.items():
            setattr(invoice, key, value)
        self._save(invoice, commit)
        return invoice

    def get_sent_past_due(self, now: datetime) -> list[Invoice]:
        return (
            self.db.query(Invoice)
            .filter(
                Invoice.status == InvoiceStatus.SENT.value,
                Invoice.due_date < now,
            )
            .all()
        )

    def get_overdue(self, due_before: datetime | None = None) -> list[Invoice]:
        query = self.db.query(Invoice).filter(Invoice.status == InvoiceStatus.OVERDUE.value)
        if due_before is not None:
            query = query.filter(Invoice.due_date < due_before)
        return query.order_by(Invoice.due_date.asc()).all()

    def get_missing_pdf(self, limit: int = 10) -> list[Invoice]:
        return (
            self.db.query(Invoice)
            .filter(
                Invoice.pdf_url.is_(None),
                Invoice.status.in_(
                    [
                        InvoiceStatus.SENT.value,
                        InvoiceStatus.PAID.value,
                        InvoiceStatus.OVERDUE.value,
                    ]
                ),
            )
            .order_by(Invoice.created_at.desc())
            .limit(limit)
            .all()
        )

    def set_pdf(self, invoice: Invoice, pdf_url: str, generated_at: datetime) -> Invoice:
        invoice.pdf_url = pdf_url  # type: ignore[assignment]
        invoice.pdf_generated_at = generated_at  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(invoice)
        return invoice
