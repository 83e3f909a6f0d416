from collections.abc import Iterable
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from telebill.models.billing_account import BillingAccount
from telebill.models.usage_event import UsageEvent


class UsageEventRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> UsageEvent:
        event = UsageEvent(**fields)
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def get_uninvoiced(
        self, billing_account_id: UUID, start: datetime, end: datetime
    ) -> list[UsageEvent]:
        return (
            self.db.query(UsageEvent)
            .filter(
                UsageEvent.billing_account_id == billing_account_id,
                UsageEvent.timestamp >= start,
                UsageEvent.timestamp <= end,
                UsageEvent.is_invoiced == False,  # noqa: E712
            )
            .order_by(UsageEvent.timestamp.asc(), UsageEvent.created_at.asc())
            .all()
        )

    def mark_as_invoiced(
        self, event_ids: Iterable[UUID], invoice_item_id: UUID, commit: bool = True
    ) -> int:
        """Link not-yet-invoiced events to an invoice item.

        Events already invoiced keep their original linkage.
        """
        ids = list(event_ids)
        if not ids:
            return 0
        count = (
            self.db.query(UsageEvent)
            .filter(
                UsageEvent.id.in_(ids),
                UsageEvent.is_invoiced == False,  # noqa: E712
            )
            .update(
                {"is_invoiced": True, "invoice_item_id": invoice_item_id},
                synchronize_session=False,
            )
        )
        if commit:
            self.db.commit()
        return count

    def get_for_period(
        self,
        billing_account_id: UUID,
        start: datetime,
        end: datetime,
        number_id: str | None = None,
    ) -> list[UsageEvent]:
        query = self.db.query(UsageEvent).filter(
            UsageEvent.billing_account_id == billing_account_id,
            UsageEvent.timestamp >= start,
            UsageEvent.timestamp <= end,
        )
        if number_id is not None:
            query = query.filter(UsageEvent.number_id == number_id)
        return query.order_by(UsageEvent.timestamp.asc()).all()

    def get_by_number(
        self,
        number_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[UsageEvent], int]:
        query = self.db.query(UsageEvent).filter(UsageEvent.number_id == number_id)
        if start is not None:
            query = query.filter(UsageEvent.timestamp >= start)
        if end is not None:
            query = query.filter(UsageEvent.timestamp <= end)
        total = query.count()
        events = query.order_by(UsageEvent.timestamp.desc()).offset(skip).limit(limit).all()
        return events, total

    def sum_quantity_for_user(
        self, user_id: UUID, event_types: Iterable[str], since: datetime
    ) -> int:
        """Total quantity of the given event types across all of a user's accounts."""
        result = (
            self.db.query(func.coalesce(func.sum(UsageEvent.quantity), 0))
            .join(BillingAccount, BillingAccount.id == UsageEvent.billing_account_id)
            .filter(
                BillingAccount.user_id == user_id,
                UsageEvent.event_type.in_(list(event_types)),
                UsageEvent.timestamp >= since,
            )
            .scalar()
        )
        return int(result or 0)
