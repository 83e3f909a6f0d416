from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from telebill.models.payment import Payment, PaymentStatus


class PaymentRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        invoice_id: UUID,
        amount: int,
        currency: str,
        gateway: str,
        payment_method_id: UUID | None = None,
    ) -> Payment:
        payment = Payment(
            invoice_id=invoice_id,
            payment_method_id=payment_method_id,
            amount=amount,
            currency=currency,
            gateway=gateway,
            status=PaymentStatus.PENDING.value,
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        return payment

    def get_by_id(self, payment_id: UUID) -> Payment | None:
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def get_by_gateway_charge_id(self, gateway_charge_id: str) -> Payment | None:
        return (
            self.db.query(Payment)
            .filter(Payment.gateway_charge_id == gateway_charge_id)
            .first()
        )

    def get_by_invoice(self, invoice_id: UUID) -> list[Payment]:
        return self.db.query(Payment).filter(Payment.invoice_id == invoice_id).all()

    def update_status(
        self,
        payment: Payment,
        status: PaymentStatus,
        processed_at: datetime | None = None,
        gateway_charge_id: str | None = None,
        failure_reason: str | None = None,
    ) -> Payment:
        payment.status = status.value  # type: ignore[assignment]
        if processed_at is not None:
            payment.processed_at = processed_at  # type: ignore[assignment]
        if gateway_charge_id is not None:
            payment.gateway_charge_id = gateway_charge_id  # type: ignore[assignment]
        if failure_reason is not None:
            payment.failure_reason = failure_reason  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(payment)
        return payment
