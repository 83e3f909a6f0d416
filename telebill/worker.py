import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from arq import cron

from telebill.core.database import SessionLocal
from telebill.services.billing_cycle import BillingCycleService
from telebill.services.invoice_service import InvoiceService
from telebill.tasks import redis_settings

logger = logging.getLogger(__name__)


async def process_billing_cycles_task(ctx: dict[str, Any]) -> int:
    """Background task: run billing cycles for every account that is due.

    Runs daily at 02:00.
    """
    db = SessionLocal()
    try:
        service = BillingCycleService(db)
        summary = service.process_billing_cycles(datetime.now(UTC))
        if summary.processed or summary.failed:
            logger.info(
                "Processed %d billing cycles (%d failed, %d skipped)",
                summary.processed,
                summary.failed,
                summary.skipped,
            )
        return summary.processed
    finally:
        db.close()


async def handle_overdue_invoices_task(ctx: dict[str, Any]) -> int:
    """Background task: mark past-due invoices overdue and flag expired grace periods.

    Runs daily at 03:00.
    """
    db = SessionLocal()
    try:
        service = BillingCycleService(db)
        summary = service.handle_overdue_invoices(datetime.now(UTC))
        if summary.marked_overdue or summary.grace_period_expired:
            logger.info(
                "Marked %d invoices overdue, %d past grace period",
                summary.marked_overdue,
                summary.grace_period_expired,
            )
        return summary.marked_overdue
    finally:
        db.close()


async def retry_failed_billing_cycles_task(ctx: dict[str, Any]) -> int:
    """Background task: retry failed billing cycles, oldest first.

    Runs every 6 hours.
    """
    db = SessionLocal()
    try:
        service = BillingCycleService(db)
        count = service.retry_failed_billing_cycles(datetime.now(UTC))
        if count > 0:
            logger.info("Retried %d failed billing cycles", count)
        return count
    finally:
        db.close()


async def generate_missing_invoice_pdfs_task(ctx: dict[str, Any]) -> int:
    """Background task: render documents for issued invoices that have none.

    Runs hourly.
    """
    db = SessionLocal()
    try:
        service = InvoiceService(db)
        count = service.generate_missing_invoice_pdfs()
        if count > 0:
            logger.info("Generated %d missing invoice PDFs", count)
        return count
    finally:
        db.close()


async def generate_invoice_pdf_task(ctx: dict[str, Any], invoice_id: str) -> str | None:
    """Background task: render the document for one invoice."""
    db = SessionLocal()
    try:
        service = InvoiceService(db)
        try:
            return service.generate_invoice_pdf(UUID(invoice_id))
        except ValueError:
            logger.warning("Invoice %s not found for PDF generation", invoice_id)
            return None
    finally:
        db.close()


class WorkerSettings:
    functions = [
        process_billing_cycles_task,
        handle_overdue_invoices_task,
        retry_failed_billing_cycles_task,
        generate_missing_invoice_pdfs_task,
        generate_invoice_pdf_task,
    ]
    cron_jobs = [
        cron(process_billing_cycles_task, hour={2}, minute={0}),  # daily at 02:00
        cron(handle_overdue_invoices_task, hour={3}, minute={0}),  # daily at 03:00
        cron(retry_failed_billing_cycles_task, hour={0, 6, 12, 18}, minute={0}),
        cron(generate_missing_invoice_pdfs_task, minute={0}),  # hourly
    ]
    redis_settings = redis_settings
