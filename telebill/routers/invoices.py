from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from telebill.core.database import get_db
from telebill.core.exceptions import (
    AccountNotFoundError,
    InvalidInvoiceTransitionError,
    InvoiceNotFoundError,
)
from telebill.models.invoice import Invoice
from telebill.schemas.invoice import (
    InvoiceDetailResponse,
    InvoiceGenerateRequest,
    InvoiceItemResponse,
    InvoiceResponse,
)
from telebill.schemas.payment import PayInvoiceRequest, PaymentResponse, PaymentResultResponse
from telebill.services.invoice_service import InvoiceService
from telebill.services.payment_service import PaymentService
from telebill.tasks import enqueue_invoice_pdf

router = APIRouter()


@router.get("/", response_model=list[InvoiceResponse])
async def list_invoices(
    billing_account_id: UUID,
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Invoice]:
    """List an account's invoices, newest first."""
    invoices, total = InvoiceService(db).get_invoices_for_account(
        billing_account_id, limit=limit, offset=skip
    )
    response.headers["X-Total-Count"] = str(total)
    return invoices


@router.post("/generate", response_model=InvoiceResponse, status_code=201)
async def generate_invoice(
    data: InvoiceGenerateRequest,
    db: Session = Depends(get_db),
) -> Invoice:
    """Invoice an account's un-invoiced usage for a period."""
    try:
        return InvoiceService(db).generate_invoice(
            data.billing_account_id,
            data.period_start,
            data.period_end,
            due_date=data.due_date,
        )
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None


@router.get("/{invoice_id}", response_model=InvoiceDetailResponse)
async def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceDetailResponse:
    """Get an invoice with its line items."""
    service = InvoiceService(db)
    try:
        invoice = service.get_invoice(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    detail = InvoiceDetailResponse.model_validate(invoice)
    detail.items = [
        InvoiceItemResponse.model_validate(item) for item in service.get_invoice_items(invoice_id)
    ]
    return detail


@router.post("/{invoice_id}/pdf")
async def generate_invoice_pdf(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Render and store the invoice document."""
    try:
        pdf_url = InvoiceService(db).generate_invoice_pdf(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return {"invoice_id": str(invoice_id), "pdf_url": pdf_url}


@router.post("/{invoice_id}/pdf/enqueue", status_code=202)
async def enqueue_invoice_pdf_endpoint(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> dict[str, str]:
    """Queue rendering of the invoice document on the worker."""
    try:
        InvoiceService(db).get_invoice(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    job = await enqueue_invoice_pdf(str(invoice_id))
    return {"job_id": job.job_id}


@router.post("/{invoice_id}/pay", response_model=PaymentResultResponse)
async def pay_invoice(
    invoice_id: UUID,
    data: PayInvoiceRequest | None = None,
    db: Session = Depends(get_db),
) -> PaymentResultResponse:
    """Charge an invoice with the given or default payment method."""
    payment_method_id = data.payment_method_id if data else None
    try:
        result = PaymentService(db).process_payment(invoice_id, payment_method_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidInvoiceTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return PaymentResultResponse(
        success=result.success,
        payment=PaymentResponse.model_validate(result.payment) if result.payment else None,
        error=result.error,
    )
