from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BillingCycleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    billing_account_id: UUID
    period_start: datetime
    period_end: datetime
    status: str
    invoice_id: UUID | None = None
    processed_at: datetime | None = None
    created_at: datetime
