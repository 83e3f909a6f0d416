"""Tests for BillingCycleService."""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from telebill.core.database import get_db
from telebill.models.billing_account import BillingAccount
from telebill.models.billing_cycle import BillingCycle, BillingCycleStatus
from telebill.models.invoice import Invoice, InvoiceStatus
from telebill.models.usage_event import UsageEvent
from telebill.services.billing_cycle import BillingCycleService
from telebill.services.invoice_service import InvoiceService
from telebill.services.usage_tracking import UsageTrackingService
from telebill.services.payment_service import PaymentResult, PaymentService

NOW = datetime(2024, 2, 1, 2, 0, tzinfo=UTC)
BILLING_DATE = datetime(2024, 2, 1, tzinfo=UTC)


@pytest.fixture
def db_session():
    """Create a database session for testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def payment_service():
    service = MagicMock(spec=PaymentService)
    service.process_payment.return_value = PaymentResult(
        success=False, error="No active payment method found"
    )
    return service


@pytest.fixture
def service(db_session, payment_service):
    return BillingCycleService(db_session, payment_service=payment_service)


def _add_account(db_session, next_billing_date=BILLING_DATE, billing_period="monthly"):
    account = BillingAccount(
        user_id=uuid.uuid4(),
        billing_period=billing_period,
        next_billing_date=next_billing_date,
        currency="USD",
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


def _add_event(db_session, account, total_cost, when, number_id="num-1"):
    event = UsageEvent(
        billing_account_id=account.id,
        number_id=number_id,
        event_type="sms_sent",
        quantity=1,
        unit_cost=total_cost,
        total_cost=total_cost,
        currency="USD",
        timestamp=when,
    )
    db_session.add(event)
    db_session.commit()
    return event


def _cycles(db_session, account):
    return (
        db_session.query(BillingCycle)
        .filter(BillingCycle.billing_account_id == account.id)
        .all()
    )


class TestProcessBillingCycles:
    def test_bills_due_account(self, db_session, service):
        account = _add_account(db_session)
        _add_event(db_session, account, 500, datetime(2024, 1, 15, tzinfo=UTC))

        summary = service.process_billing_cycles(now=NOW)

        assert (summary.processed, summary.skipped, summary.failed) == (1, 0, 0)
        (cycle,) = _cycles(db_session, account)
        assert cycle.status == BillingCycleStatus.COMPLETED.value
        assert cycle.period_start.replace(tzinfo=UTC) == datetime(2024, 1, 1, tzinfo=UTC)
        assert cycle.period_end.replace(tzinfo=UTC) == BILLING_DATE
        invoice = db_session.query(Invoice).filter(Invoice.id == cycle.invoice_id).one()
        assert invoice.subtotal == 500
        assert invoice.status == InvoiceStatus.SENT.value

    def test_advances_next_billing_date(self, db_session, service):
        account = _add_account(db_session)
        service.process_billing_cycles(now=NOW)
        db_session.refresh(account)
        assert account.next_billing_date.replace(tzinfo=UTC) == datetime(2024, 3, 1, tzinfo=UTC)

    def test_quarterly_period(self, db_session, service):
        account = _add_account(db_session, billing_period="quarterly")
        service.process_billing_cycles(now=NOW)
        (cycle,) = _cycles(db_session, account)
        assert cycle.period_start.replace(tzinfo=UTC) == datetime(2023, 11, 1, tzinfo=UTC)
        db_session.refresh(account)
        assert account.next_billing_date.replace(tzinfo=UTC) == datetime(2024, 5, 1, tzinfo=UTC)

    def test_accounts_not_yet_due_are_ignored(self, db_session, service):
        account = _add_account(db_session, next_billing_date=NOW + timedelta(days=1))
        summary = service.process_billing_cycles(now=NOW)
        assert summary.processed == 0
        assert _cycles(db_session, account) == []

    def test_rerun_for_same_period_is_skipped(self, db_session, service):
        account = _add_account(db_session)
        _add_event(db_session, account, 500, datetime(2024, 1, 15, tzinfo=UTC))
        service.process_billing_cycles(now=NOW)

        # Put the billing date back so the account is due for the same period again
        account.next_billing_date = BILLING_DATE
        db_session.commit()
        summary = service.process_billing_cycles(now=NOW)

        assert (summary.processed, summary.skipped) == (0, 1)
        assert len(_cycles(db_session, account)) == 1
        assert db_session.query(Invoice).count() == 1

    def test_failing_account_does_not_stop_the_batch(self, db_session, service):
        broken = _add_account(db_session, billing_period="weekly")
        healthy = _add_account(db_session)

        summary = service.process_billing_cycles(now=NOW)

        assert (summary.processed, summary.failed) == (1, 1)
        assert _cycles(db_session, broken) == []
        (cycle,) = _cycles(db_session, healthy)
        assert cycle.status == BillingCycleStatus.COMPLETED.value

    def test_invoice_failure_marks_cycle_failed(self, db_session, payment_service):
        account = _add_account(db_session)
        invoice_service = InvoiceService(db_session)
        service = BillingCycleService(
            db_session, invoice_service=invoice_service, payment_service=payment_service
        )

        with patch.object(
            invoice_service, "generate_invoice", side_effect=RuntimeError("db unavailable")
        ):
            summary = service.process_billing_cycles(now=NOW)

        assert summary.failed == 1
        (cycle,) = _cycles(db_session, account)
        assert cycle.status == BillingCycleStatus.FAILED.value
        db_session.refresh(account)
        assert account.next_billing_date.replace(tzinfo=UTC) == BILLING_DATE

    def test_charge_is_attempted_for_new_invoice(self, db_session, service, payment_service):
        account = _add_account(db_session)
        service.process_billing_cycles(now=NOW)
        (cycle,) = _cycles(db_session, account)
        payment_service.process_payment.assert_called_once_with(cycle.invoice_id)

    def test_charge_error_leaves_cycle_completed(self, db_session, service, payment_service):
        account = _add_account(db_session)
        payment_service.process_payment.side_effect = RuntimeError("gateway down")

        summary = service.process_billing_cycles(now=NOW)

        assert summary.processed == 1
        (cycle,) = _cycles(db_session, account)
        assert cycle.status == BillingCycleStatus.COMPLETED.value


class TestRetryFailedCycles:
    def _failed_cycle(self, db_session, account, created_at=NOW):
        cycle = BillingCycle(
            billing_account_id=account.id,
            period_start=datetime(2024, 1, 1, tzinfo=UTC),
            period_end=BILLING_DATE,
            status=BillingCycleStatus.FAILED.value,
            created_at=created_at,
        )
        db_session.add(cycle)
        db_session.commit()
        db_session.refresh(cycle)
        return cycle

    def test_retry_completes_cycle_for_its_own_period(self, db_session, service):
        account = _add_account(db_session, next_billing_date=datetime(2024, 3, 1, tzinfo=UTC))
        _add_event(db_session, account, 700, datetime(2024, 1, 20, tzinfo=UTC))
        cycle = self._failed_cycle(db_session, account)

        assert service.retry_failed_billing_cycles(now=NOW) == 1

        db_session.refresh(cycle)
        assert cycle.status == BillingCycleStatus.COMPLETED.value
        invoice = db_session.query(Invoice).filter(Invoice.id == cycle.invoice_id).one()
        assert invoice.subtotal == 700
        assert invoice.period_end.replace(tzinfo=UTC) == BILLING_DATE
        # Already past this period, so the billing date is left alone
        db_session.refresh(account)
        assert account.next_billing_date.replace(tzinfo=UTC) == datetime(2024, 3, 1, tzinfo=UTC)

    def test_retry_respects_limit_oldest_first(self, db_session, service):
        old = self._failed_cycle(db_session, _add_account(db_session), NOW - timedelta(days=2))
        new = self._failed_cycle(db_session, _add_account(db_session), NOW)

        assert service.retry_failed_billing_cycles(now=NOW, limit=1) == 1

        db_session.refresh(old)
        db_session.refresh(new)
        assert old.status == BillingCycleStatus.COMPLETED.value
        assert new.status == BillingCycleStatus.FAILED.value

    def test_retry_failure_stays_failed(self, db_session, payment_service):
        account = _add_account(db_session)
        cycle = self._failed_cycle(db_session, account)
        invoice_service = InvoiceService(db_session)
        service = BillingCycleService(
            db_session, invoice_service=invoice_service, payment_service=payment_service
        )

        with patch.object(invoice_service, "generate_invoice", side_effect=RuntimeError("boom")):
            assert service.retry_failed_billing_cycles(now=NOW) == 0

        db_session.refresh(cycle)
        assert cycle.status == BillingCycleStatus.FAILED.value

    def test_linkage_failure_rolls_back_and_retry_bills_once(self, db_session, service):
        account = _add_account(db_session)
        _add_event(db_session, account, 100, datetime(2024, 1, 10, tzinfo=UTC), "num-1")
        _add_event(db_session, account, 100, datetime(2024, 1, 20, tzinfo=UTC), "num-2")
        original = UsageTrackingService.mark_as_invoiced
        calls = []

        def fail_on_second_group(self, event_ids, invoice_item_id, commit=True):
            calls.append(invoice_item_id)
            if len(calls) == 2:
                raise RuntimeError("connection lost")
            return original(self, event_ids, invoice_item_id, commit=commit)

        with patch.object(UsageTrackingService, "mark_as_invoiced", fail_on_second_group):
            summary = service.process_billing_cycles(now=NOW)

        assert summary.failed == 1
        (cycle,) = _cycles(db_session, account)
        assert cycle.status == BillingCycleStatus.FAILED.value
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(UsageEvent).filter(UsageEvent.is_invoiced.is_(True)).count() == 0

        assert service.retry_failed_billing_cycles(now=NOW) == 1

        (invoice,) = db_session.query(Invoice).all()
        assert invoice.invoice_number == "INV-202402-0001"
        assert invoice.status == InvoiceStatus.SENT.value
        assert invoice.subtotal == 200
        assert all(e.is_invoiced for e in db_session.query(UsageEvent).all())


class TestHandleOverdueInvoices:
    def _add_invoice(self, db_session, account, status, due_date, number):
        invoice = Invoice(
            invoice_number=number,
            billing_account_id=account.id,
            status=status.value,
            period_start=datetime(2024, 1, 1, tzinfo=UTC),
            period_end=BILLING_DATE,
            subtotal=100,
            tax=8,
            total=108,
            due_date=due_date,
        )
        db_session.add(invoice)
        db_session.commit()
        return invoice

    def test_marks_overdue_and_counts_grace_expiry(self, db_session, service):
        account = _add_account(db_session)
        self._add_invoice(
            db_session, account, InvoiceStatus.SENT, NOW - timedelta(days=1), "INV-1"
        )
        self._add_invoice(
            db_session, account, InvoiceStatus.SENT, NOW - timedelta(days=10), "INV-2"
        )
        self._add_invoice(
            db_session, account, InvoiceStatus.SENT, NOW + timedelta(days=3), "INV-3"
        )

        summary = service.handle_overdue_invoices(now=NOW)

        assert summary.marked_overdue == 2
        assert summary.grace_period_expired == 1


class TestQueries:
    def test_get_billing_cycles_and_current(self, db_session, service):
        account = _add_account(db_session)
        service.process_billing_cycles(now=NOW)

        cycles, total = service.get_billing_cycles(account.id)
        assert total == 1

        current = service.get_current_billing_cycle(
            account.id, now=datetime(2024, 1, 20, tzinfo=UTC)
        )
        assert current is not None
        assert current.id == cycles[0].id
        assert service.get_current_billing_cycle(
            account.id, now=datetime(2024, 2, 20, tzinfo=UTC)
        ) is None
