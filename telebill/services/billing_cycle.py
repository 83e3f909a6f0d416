"""Scheduler-driven billing: cycles, retries and overdue escalation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.core.config import settings
from telebill.models.billing_account import BillingAccount
from telebill.models.billing_cycle import BillingCycle, BillingCycleStatus
from telebill.models.invoice import Invoice
from telebill.models.shared import ensure_utc, utc_now
from telebill.repositories.billing_account_repository import BillingAccountRepository
from telebill.repositories.billing_cycle_repository import BillingCycleRepository
from telebill.repositories.invoice_repository import InvoiceRepository
from telebill.services.billing_periods import add_period, subtract_period
from telebill.services.invoice_service import InvoiceService
from telebill.services.payment_service import PaymentService

logger = logging.getLogger(__name__)


@dataclass
class BillingRunSummary:
    processed: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass
class OverdueSummary:
    marked_overdue: int = 0
    grace_period_expired: int = 0


class BillingCycleService:
    """Runs billing cycles for due accounts.

    Every entry point takes ``now`` explicitly so scheduled jobs and tests
    drive the same code without timers.
    """

    def __init__(
        self,
        db: Session,
        invoice_service: InvoiceService | None = None,
        payment_service: PaymentService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.invoice_service = invoice_service or InvoiceService(db)
        self.payment_service = payment_service or PaymentService(db)
        self.clock = clock
        self.account_repo = BillingAccountRepository(db)
        self.cycle_repo = BillingCycleRepository(db)
        self.invoice_repo = InvoiceRepository(db)

    def process_billing_cycles(self, now: datetime | None = None) -> BillingRunSummary:
        """Bill every account whose next billing date has arrived.

        A failing account is logged and counted; the remaining accounts
        are still processed.
        """
        now = now or self.clock()
        summary = BillingRunSummary()

        for account in self.account_repo.get_due_for_billing(now):
            account_id = account.id
            try:
                cycle = self.process_billing_cycle_for_account(account, now)
            except Exception:
                self.db.rollback()
                logger.exception("Billing cycle failed for account %s", account_id)
                summary.failed += 1
                continue

            if cycle is None:
                summary.skipped += 1
            else:
                summary.processed += 1

        logger.info(
            "Billing run complete: %d processed, %d skipped, %d failed",
            summary.processed,
            summary.skipped,
            summary.failed,
        )
        return summary

    def process_billing_cycle_for_account(
        self, account: BillingAccount, now: datetime | None = None
    ) -> BillingCycle | None:
        """Run the cycle ending at the account's next billing date.

        Returns None when a cycle for that period already exists.
        """
        now = now or self.clock()
        period_end: datetime = ensure_utc(account.next_billing_date)  # type: ignore[assignment]
        period_start = subtract_period(period_end, str(account.billing_period))

        existing = self.cycle_repo.get_for_period(account.id, period_start, period_end)
        if existing:
            logger.info(
                "Billing cycle already exists for account %s (%s - %s)",
                account.id,
                period_start,
                period_end,
            )
            return None

        cycle = self.cycle_repo.create(account.id, period_start, period_end, created_at=now)
        self._run_cycle(cycle, account, now)
        return cycle

    def _run_cycle(self, cycle: BillingCycle, account: BillingAccount, now: datetime) -> Invoice:
        """Invoice the cycle's own period, complete it and attempt a charge."""
        period_start: datetime = ensure_utc(cycle.period_start)  # type: ignore[assignment]
        period_end: datetime = ensure_utc(cycle.period_end)  # type: ignore[assignment]
        try:
            invoice = self.invoice_service.generate_invoice(
                account.id, period_start, period_end, now=now
            )
            self.cycle_repo.set_status(
                cycle, BillingCycleStatus.COMPLETED, processed_at=now, invoice_id=invoice.id
            )
            next_billing_date = add_period(period_end, str(account.billing_period))
            if next_billing_date > ensure_utc(account.next_billing_date):  # type: ignore[operator]
                self.account_repo.set_next_billing_date(account, next_billing_date)
        except Exception:
            self.db.rollback()
            self.cycle_repo.set_status(cycle, BillingCycleStatus.FAILED, processed_at=now)
            raise

        logger.info(
            "Completed billing cycle %s for account %s with invoice %s",
            cycle.id,
            account.id,
            invoice.invoice_number,
        )
        self._attempt_charge(invoice)
        return invoice

    def _attempt_charge(self, invoice: Invoice) -> None:
        # A failed charge leaves the invoice unpaid; the cycle stays completed
        try:
            result = self.payment_service.process_payment(invoice.id)
        except Exception:
            self.db.rollback()
            logger.warning(
                "Automatic charge raised for invoice %s", invoice.invoice_number, exc_info=True
            )
            return
        if not result.success:
            logger.warning(
                "Automatic charge failed for invoice %s: %s", invoice.invoice_number, result.error
            )

    def retry_failed_billing_cycles(self, now: datetime | None = None, limit: int = 10) -> int:
        """Re-run up to ``limit`` failed cycles, oldest first. Returns how many completed."""
        now = now or self.clock()
        completed = 0

        for cycle in self.cycle_repo.get_failed(limit):
            account = self.account_repo.get_by_id(cycle.billing_account_id)
            if not account:
                logger.warning(
                    "Skipping retry of cycle %s: account %s not found",
                    cycle.id,
                    cycle.billing_account_id,
                )
                continue

            self.cycle_repo.set_status(cycle, BillingCycleStatus.PROCESSING)
            try:
                self._run_cycle(cycle, account, now)
            except Exception:
                logger.exception("Retry failed for billing cycle %s", cycle.id)
                continue
            completed += 1

        if completed:
            logger.info("Retried %d failed billing cycles", completed)
        return completed

    def handle_overdue_invoices(self, now: datetime | None = None) -> OverdueSummary:
        """Mark past-due invoices overdue and flag those beyond the grace period."""
        now = now or self.clock()
        marked = self.invoice_service.mark_overdue_invoices(now)

        grace_cutoff = now - timedelta(days=settings.GRACE_PERIOD_DAYS)
        expired = self.invoice_repo.get_overdue(due_before=grace_cutoff)
        for invoice in expired:
            # TODO: suspend the account's numbers once a provisioning client exists
            logger.warning(
                "Invoice %s for account %s is past the %d-day grace period",
                invoice.invoice_number,
                invoice.billing_account_id,
                settings.GRACE_PERIOD_DAYS,
            )

        return OverdueSummary(marked_overdue=marked, grace_period_expired=len(expired))

    def get_billing_cycles(
        self, billing_account_id: UUID, limit: int = 50, offset: int = 0
    ) -> tuple[list[BillingCycle], int]:
        cycles = self.cycle_repo.get_by_account(billing_account_id, skip=offset, limit=limit)
        return cycles, self.cycle_repo.count_by_account(billing_account_id)

    def get_current_billing_cycle(
        self, billing_account_id: UUID, now: datetime | None = None
    ) -> BillingCycle | None:
        return self.cycle_repo.get_containing(billing_account_id, now or self.clock())
