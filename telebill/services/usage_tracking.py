"""Records priced usage events and aggregates them for reporting."""

import logging
from collections import defaultdict
from datetime import date, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.core.exceptions import AccountNotFoundError
from telebill.models.shared import ensure_utc, utc_now
from telebill.models.usage_event import UsageEvent, UsageEventType
from telebill.repositories.billing_account_repository import BillingAccountRepository
from telebill.repositories.usage_event_repository import UsageEventRepository
from telebill.schemas.cost import CostCalculationInput
from telebill.schemas.usage import DailyUsage, UsageBreakdown, UsageEventCreate, UsageStatistics
from telebill.services.cost_calculator import CostCalculator, parse_event_type
from telebill.services.regional_pricing import RegionalPricingService

logger = logging.getLogger(__name__)


class UsageTrackingService:
    def __init__(self, db: Session, cost_calculator: CostCalculator | None = None):
        self.db = db
        self.account_repo = BillingAccountRepository(db)
        self.usage_repo = UsageEventRepository(db)
        self.cost_calculator = cost_calculator or CostCalculator(RegionalPricingService(db))

    def track_usage(self, data: UsageEventCreate) -> UsageEvent:
        """Price and persist one usage event."""
        account = self.account_repo.get_by_id(data.billing_account_id)
        if not account:
            raise AccountNotFoundError(data.billing_account_id)

        region = data.region or account.region
        cost = self.cost_calculator.calculate_cost(
            CostCalculationInput(
                event_type=data.event_type,
                duration=data.duration,
                quantity=data.quantity,
                region=str(region).upper() if region else None,
                user_id=account.user_id,
                metadata=data.metadata,
            )
        )

        metadata = dict(data.metadata or {})
        if cost.applied_discounts:
            metadata["applied_discounts"] = [
                d.model_dump(mode="json") for d in cost.applied_discounts
            ]

        event = self.usage_repo.create(
            billing_account_id=account.id,
            number_id=data.number_id,
            event_type=parse_event_type(data.event_type).value,
            duration=data.duration,
            quantity=cost.quantity,
            unit_cost=cost.unit_cost,
            total_cost=cost.total_cost,
            currency=cost.currency,
            region=cost.region,
            from_number=data.from_number,
            to_number=data.to_number,
            event_metadata=metadata,
            timestamp=data.timestamp or utc_now(),
        )

        logger.info(
            "Tracked %s for number %s: %d %s",
            event.event_type,
            event.number_id,
            event.total_cost,
            event.currency,
        )
        return event

    def track_monthly_subscription(self, billing_account_id: UUID, number_id: str) -> UsageEvent:
        return self.track_usage(
            UsageEventCreate(
                billing_account_id=billing_account_id,
                number_id=number_id,
                event_type=UsageEventType.MONTHLY_SUBSCRIPTION.value,
            )
        )

    def track_setup_fee(self, billing_account_id: UUID, number_id: str) -> UsageEvent:
        return self.track_usage(
            UsageEventCreate(
                billing_account_id=billing_account_id,
                number_id=number_id,
                event_type=UsageEventType.SETUP_FEE.value,
            )
        )

    def get_uninvoiced_usage(
        self, billing_account_id: UUID, start: datetime, end: datetime
    ) -> list[UsageEvent]:
        return self.usage_repo.get_uninvoiced(billing_account_id, start, end)

    def mark_as_invoiced(
        self, event_ids: list[UUID], invoice_item_id: UUID, commit: bool = True
    ) -> int:
        """Link events to an invoice item; events already invoiced are left as they are."""
        return self.usage_repo.mark_as_invoiced(event_ids, invoice_item_id, commit=commit)

    def get_usage_statistics(
        self,
        billing_account_id: UUID,
        start: datetime,
        end: datetime,
        number_id: str | None = None,
    ) -> UsageStatistics:
        events = self.usage_repo.get_for_period(billing_account_id, start, end, number_id)

        breakdown: dict[str, UsageBreakdown] = defaultdict(UsageBreakdown)
        for event in events:
            entry = breakdown[str(event.event_type)]
            entry.count += 1
            entry.cost += int(event.total_cost)
            entry.duration += int(event.duration or 0)

        return UsageStatistics(
            total_events=len(events),
            total_cost=sum(int(e.total_cost) for e in events),
            event_breakdown=dict(breakdown),
            period_start=start,
            period_end=end,
        )

    def get_daily_usage_aggregation(
        self, billing_account_id: UUID, start: datetime, end: datetime
    ) -> list[DailyUsage]:
        events = self.usage_repo.get_for_period(billing_account_id, start, end)

        days: dict[date, DailyUsage] = {}
        for event in events:
            day = ensure_utc(event.timestamp).date()  # type: ignore[union-attr, arg-type]
            entry = days.setdefault(day, DailyUsage(date=day, count=0, cost=0, duration=0))
            entry.count += 1
            entry.cost += int(event.total_cost)
            entry.duration += int(event.duration or 0)

        return [days[day] for day in sorted(days)]

    def get_usage_by_number(
        self,
        number_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[UsageEvent], int]:
        return self.usage_repo.get_by_number(number_id, start, end, skip=offset, limit=limit)
