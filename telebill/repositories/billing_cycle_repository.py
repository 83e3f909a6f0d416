from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.models.billing_cycle import BillingCycle, BillingCycleStatus


class BillingCycleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, cycle_id: UUID) -> BillingCycle | None:
        return self.db.query(BillingCycle).filter(BillingCycle.id == cycle_id).first()

    def get_for_period(
        self, billing_account_id: UUID, period_start: datetime, period_end: datetime
    ) -> BillingCycle | None:
        return (
            self.db.query(BillingCycle)
            .filter(
                BillingCycle.billing_account_id == billing_account_id,
                BillingCycle.period_start == period_start,
                BillingCycle.period_end == period_end,
            )
            .first()
        )

    def create(
        self,
        billing_account_id: UUID,
        period_start: datetime,
        period_end: datetime,
        created_at: datetime,
    ) -> BillingCycle:
        cycle = BillingCycle(
            billing_account_id=billing_account_id,
            period_start=period_start,
            period_end=period_end,
            status=BillingCycleStatus.PROCESSING.value,
            created_at=created_at,
        )
        self.db.add(cycle)
        self.db.commit()
        self.db.refresh(cycle)
        return cycle

    def set_status(
        self,
        cycle: BillingCycle,
        status: BillingCycleStatus,
        processed_at: datetime | None = None,
        invoice_id: UUID | None = None,
    ) -> BillingCycle:
        cycle.status = status.value  # type: ignore[assignment]
        if processed_at is not None:
            cycle.processed_at = processed_at  # type: ignore[assignment]
        if invoice_id is not None:
            cycle.invoice_id = invoice_id  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(cycle)
        return cycle

    def get_failed(self, limit: int = 10) -> list[BillingCycle]:
        return (
            self.db.query(BillingCycle)
            .filter(BillingCycle.status == BillingCycleStatus.FAILED.value)
            .order_by(BillingCycle.created_at.asc())
            .limit(limit)
            .all()
        )

    def get_by_account(
        self, billing_account_id: UUID, skip: int = 0, limit: int = 50
    ) -> list[BillingCycle]:
        return (
            self.db.query(BillingCycle)
            .filter(BillingCycle.billing_account_id == billing_account_id)
            .order_by(BillingCycle.period_end.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_account(self, billing_account_id: UUID) -> int:
        return (
            self.db.query(BillingCycle)
            .filter(BillingCycle.billing_account_id == billing_account_id)
            .count()
        )

    def get_containing(self, billing_account_id: UUID, moment: datetime) -> BillingCycle | None:
        return (
            self.db.query(BillingCycle)
            .filter(
                BillingCycle.billing_account_id == billing_account_id,
                BillingCycle.period_start <= moment,
                BillingCycle.period_end >= moment,
            )
            .order_by(BillingCycle.period_end.desc())
            .first()
        )
