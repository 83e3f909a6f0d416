from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.models.billing_account import BillingAccount


class BillingAccountRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, account_id: UUID) -> BillingAccount | None:
        return self.db.query(BillingAccount).filter(BillingAccount.id == account_id).first()

    def get_due_for_billing(self, now: datetime) -> list[BillingAccount]:
        """Accounts whose next billing date has arrived, earliest first."""
        return (
            self.db.query(BillingAccount)
            .filter(BillingAccount.next_billing_date <= now)
            .order_by(BillingAccount.next_billing_date.asc())
            .all()
        )

    def set_next_billing_date(self, account: BillingAccount, next_billing_date: datetime) -> None:
        account.next_billing_date = next_billing_date  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(account)
