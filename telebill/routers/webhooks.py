import json
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from telebill.core.database import get_db
from telebill.services.payment_gateway import get_payment_gateway
from telebill.services.payment_service import PaymentService

router = APIRouter()


@router.post("/{gateway}")
async def handle_webhook(
    gateway: str,
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Receive a payment gateway event and reconcile the matching payment."""
    payload = await request.body()

    try:
        payment_gateway = get_payment_gateway(gateway)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid gateway") from None

    signature = stripe_signature or request.headers.get("X-Webhook-Signature", "")
    if not payment_gateway.verify_webhook_signature(payload, signature):
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        body = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from None

    event = payment_gateway.parse_webhook(body)
    handled = PaymentService(db).handle_webhook(event)
    return {"status": "received", "event_type": event.event_type, "handled": handled}
