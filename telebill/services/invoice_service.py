"""Invoice generation and lifecycle."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.core.config import settings
from telebill.core.exceptions import AccountNotFoundError, InvoiceNotFoundError
from telebill.core.money import round_minor
from telebill.models.billing_account import BillingAccount
from telebill.models.invoice import Invoice, InvoiceStatus
from telebill.models.invoice_item import InvoiceItem
from telebill.models.shared import utc_now
from telebill.models.usage_event import UsageEvent, UsageEventType
from telebill.repositories.billing_account_repository import BillingAccountRepository
from telebill.repositories.invoice_item_repository import InvoiceItemRepository
from telebill.repositories.invoice_repository import InvoiceRepository
from telebill.services.billing_periods import month_bounds
from telebill.services.cost_calculator import CostCalculator
from telebill.services.pdf_service import PdfService
from telebill.services.usage_tracking import UsageTrackingService

logger = logging.getLogger(__name__)

ITEM_LABELS = {
    UsageEventType.INBOUND_CALL.value: "Inbound calls",
    UsageEventType.OUTBOUND_CALL.value: "Outbound calls",
    UsageEventType.SMS_RECEIVED.value: "SMS received",
    UsageEventType.SMS_SENT.value: "SMS sent",
    UsageEventType.VOICEMAIL_RECEIVED.value: "Voicemail messages",
    UsageEventType.CALL_FORWARDED.value: "Call forwarding",
    UsageEventType.MONTHLY_SUBSCRIPTION.value: "Monthly subscription",
    UsageEventType.SETUP_FEE.value: "Setup fee",
}


@dataclass
class UsageGroup:
    """Usage events sharing an event type and phone number."""

    event_type: str
    number_id: str
    events: list[UsageEvent] = field(default_factory=list)

    @property
    def quantity(self) -> int:
        return sum(int(e.quantity) for e in self.events)

    @property
    def total(self) -> int:
        return sum(int(e.total_cost) for e in self.events)

    @property
    def description(self) -> str:
        label = ITEM_LABELS.get(self.event_type, self.event_type)
        if len(self.events) > 1:
            return f"{label} ({len(self.events)} events)"
        return label


def group_usage_events(events: list[UsageEvent]) -> list[UsageGroup]:
    """Group events by (event type, number), keeping first-seen order."""
    groups: dict[tuple[str, str], UsageGroup] = {}
    for event in events:
        key = (str(event.event_type), str(event.number_id))
        if key not in groups:
            groups[key] = UsageGroup(event_type=key[0], number_id=key[1])
        groups[key].events.append(event)
    return list(groups.values())


class InvoiceService:
    def __init__(
        self,
        db: Session,
        cost_calculator: CostCalculator | None = None,
        usage_tracking: UsageTrackingService | None = None,
        pdf_service: PdfService | None = None,
    ):
        self.db = db
        self.cost_calculator = cost_calculator or CostCalculator()
        self.usage_tracking = usage_tracking or UsageTrackingService(db)
        self.pdf_service = pdf_service or PdfService()
        self.account_repo = BillingAccountRepository(db)
        self.invoice_repo = InvoiceRepository(db)
        self.item_repo = InvoiceItemRepository(db)

    def generate_invoice_number(self, now: datetime) -> str:
        """INV-YYYYMM-NNNN, sequential within the calendar month of ``now``.

        Based on the month's invoice count, so generation must stay sequential.
        """
        month_start, next_month_start = month_bounds(now)
        count = self.invoice_repo.count_created_between(month_start, next_month_start)
        return f"INV-{now.strftime('%Y%m')}-{count + 1:04d}"

    def generate_invoice(
        self,
        billing_account_id: UUID,
        period_start: datetime,
        period_end: datetime,
        due_date: datetime | None = None,
        now: datetime | None = None,
    ) -> Invoice:
        """Invoice all un-invoiced usage of an account for a period.

        The invoice is created as a draft, filled with one item per
        (event type, number) group, totalled and moved to sent. Each
        consumed usage event is then linked to the item that covers it.
        All of it is committed together; any failure rolls the whole
        invoice back and leaves the usage un-invoiced.
        """
        account = self.account_repo.get_by_id(billing_account_id)
        if not account:
            raise AccountNotFoundError(billing_account_id)

        now = now or utc_now()
        if due_date is None:
            due_date = now + timedelta(days=settings.INVOICE_DUE_DAYS)

        try:
            invoice = self._build_invoice(account, period_start, period_end, due_date, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(invoice)

        logger.info(
            "Generated invoice %s for account %s: total %d %s",
            invoice.invoice_number,
            account.id,
            invoice.total,
            invoice.currency,
        )
        return invoice

    def _build_invoice(
        self,
        account: BillingAccount,
        period_start: datetime,
        period_end: datetime,
        due_date: datetime,
        now: datetime,
    ) -> Invoice:
        invoice = self.invoice_repo.create(
            commit=False,
            invoice_number=self.generate_invoice_number(now),
            billing_account_id=account.id,
            status=InvoiceStatus.DRAFT.value,
            period_start=period_start,
            period_end=period_end,
            subtotal=0,
            tax=0,
            total=0,
            currency=account.currency,
            due_date=due_date,
            created_at=now,
        )

        events = self.usage_tracking.get_uninvoiced_usage(account.id, period_start, period_end)
        linked: list[tuple[InvoiceItem, list[UUID]]] = []
        for group in group_usage_events(events):
            quantity = group.quantity
            total = group.total
            item = self.item_repo.create(
                commit=False,
                invoice_id=invoice.id,
                description=group.description,
                event_type=group.event_type,
                number_id=group.number_id,
                quantity=quantity,
                unit_price=round_minor(Decimal(total) / quantity) if quantity else 0,
                total=total,
                usage_event_ids=[str(e.id) for e in group.events],
            )
            linked.append((item, [e.id for e in group.events]))

        subtotal = sum(int(item.total) for item, _ in linked)
        tax = self.cost_calculator.calculate_tax(subtotal)
        self.invoice_repo.set_totals(invoice, subtotal, tax, commit=False)
        self.invoice_repo.transition(invoice, InvoiceStatus.SENT, commit=False, issued_at=now)

        for item, event_ids in linked:
            self.usage_tracking.mark_as_invoiced(event_ids, item.id, commit=False)

        logger.debug("Built invoice %s with %d items", invoice.invoice_number, len(linked))
        return invoice

    def get_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id)
        if not invoice:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def get_invoice_items(self, invoice_id: UUID) -> list[InvoiceItem]:
        return self.item_repo.get_by_invoice(invoice_id)

    def get_invoices_for_account(
        self, billing_account_id: UUID, limit: int = 50, offset: int = 0
    ) -> tuple[list[Invoice], int]:
        invoices = self.invoice_repo.get_by_account(billing_account_id, skip=offset, limit=limit)
        return invoices, self.invoice_repo.count_by_account(billing_account_id)

    def mark_invoice_as_paid(self, invoice_id: UUID, paid_at: datetime | None = None) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        self.invoice_repo.transition(invoice, InvoiceStatus.PAID, paid_at=paid_at or utc_now())
        logger.info("Invoice %s marked as paid", invoice.invoice_number)
        return invoice

    def get_overdue_invoices(self, now: datetime | None = None) -> list[Invoice]:
        """Sent invoices already past their due date."""
        return self.invoice_repo.get_sent_past_due(now or utc_now())

    def mark_overdue_invoices(self, now: datetime | None = None) -> int:
        """Move every sent invoice past its due date to overdue."""
        invoices = self.get_overdue_invoices(now)
        for invoice in invoices:
            self.invoice_repo.transition(invoice, InvoiceStatus.OVERDUE)
        if invoices:
            logger.info("Marked %d invoices as overdue", len(invoices))
        return len(invoices)

    def generate_invoice_pdf(self, invoice_id: UUID, now: datetime | None = None) -> str:
        """Render the invoice document and record where it was stored."""
        invoice = self.get_invoice(invoice_id)
        items = self.get_invoice_items(invoice_id)
        account = self.account_repo.get_by_id(invoice.billing_account_id)

        pdf_url = self.pdf_service.render_and_store(invoice, items, account)
        self.invoice_repo.set_pdf(invoice, pdf_url, now or utc_now())
        logger.info("Generated PDF for invoice %s: %s", invoice.invoice_number, pdf_url)
        return pdf_url

    def generate_missing_invoice_pdfs(self, limit: int = 10) -> int:
        """Backfill documents for issued invoices that have none yet."""
        count = 0
        for invoice in self.invoice_repo.get_missing_pdf(limit):
            try:
                self.generate_invoice_pdf(invoice.id)
                count += 1
            except Exception:
                logger.exception("Failed to generate PDF for invoice %s", invoice.invoice_number)
        return count
