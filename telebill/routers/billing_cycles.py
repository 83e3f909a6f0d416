from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from telebill.core.database import get_db
from telebill.models.billing_cycle import BillingCycle
from telebill.schemas.billing_cycle import BillingCycleResponse
from telebill.services.billing_cycle import BillingCycleService
from telebill.tasks import enqueue_billing_run

router = APIRouter()


@router.get("/", response_model=list[BillingCycleResponse])
async def list_billing_cycles(
    billing_account_id: UUID,
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[BillingCycle]:
    """List an account's billing cycles, latest period first."""
    cycles, total = BillingCycleService(db).get_billing_cycles(
        billing_account_id, limit=limit, offset=skip
    )
    response.headers["X-Total-Count"] = str(total)
    return cycles


@router.get("/current", response_model=BillingCycleResponse)
async def get_current_billing_cycle(
    billing_account_id: UUID,
    db: Session = Depends(get_db),
) -> BillingCycle:
    """Get the billing cycle whose period contains the current time."""
    cycle = BillingCycleService(db).get_current_billing_cycle(billing_account_id)
    if not cycle:
        raise HTTPException(status_code=404, detail="No current billing cycle")
    return cycle


@router.post("/run", status_code=202)
async def enqueue_billing_run_endpoint() -> dict[str, str]:
    """Queue an out-of-schedule billing run on the worker."""
    job = await enqueue_billing_run()
    return {"job_id": job.job_id}
