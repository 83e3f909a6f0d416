"""Repository for PaymentMethod operations."""

from uuid import UUID

from sqlalchemy.orm import Session

from telebill.models.payment_method import PaymentMethod
from telebill.schemas.payment import PaymentMethodCreate


class PaymentMethodRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, payment_method_id: UUID) -> PaymentMethod | None:
        return (
            self.db.query(PaymentMethod).filter(PaymentMethod.id == payment_method_id).first()
        )

    def get_active_for_account(self, billing_account_id: UUID) -> list[PaymentMethod]:
        return (
            self.db.query(PaymentMethod)
            .filter(
                PaymentMethod.billing_account_id == billing_account_id,
                PaymentMethod.is_active == True,  # noqa: E712
            )
            .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc())
            .all()
        )

    def get_default(self, billing_account_id: UUID) -> PaymentMethod | None:
        return (
            self.db.query(PaymentMethod)
            .filter(
                PaymentMethod.billing_account_id == billing_account_id,
                PaymentMethod.is_default == True,  # noqa: E712
                PaymentMethod.is_active == True,  # noqa: E712
            )
            .first()
        )

    def create(self, data: PaymentMethodCreate) -> PaymentMethod:
        if data.is_default:
            self._clear_default(data.billing_account_id)
        payment_method = PaymentMethod(
            billing_account_id=data.billing_account_id,
            gateway=data.gateway.value,
            gateway_payment_method_id=data.gateway_payment_method_id,
            type=data.type.value,
            is_default=data.is_default,
            details=data.details,
        )
        self.db.add(payment_method)
        self.db.commit()
        self.db.refresh(payment_method)
        return payment_method

    def deactivate(self, payment_method_id: UUID) -> bool:
        payment_method = self.get_by_id(payment_method_id)
        if not payment_method:
            return False
        payment_method.is_active = False  # type: ignore[assignment]
        payment_method.is_default = False  # type: ignore[assignment]
        self.db.commit()
        return True

    def _clear_default(self, billing_account_id: UUID) -> None:
        # At most one default per account
        self.db.query(PaymentMethod).filter(
            PaymentMethod.billing_account_id == billing_account_id,
            PaymentMethod.is_default == True,  # noqa: E712
        ).update({"is_default": False})
