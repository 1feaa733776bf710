"""Repository for PaymentMethod reads."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from paymigrate.models.payment_method import PaymentMethod


class PaymentMethodRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_default(self, customer_id: UUID) -> PaymentMethod | None:
        return (
            self.db.query(PaymentMethod)
            .filter(
                PaymentMethod.customer_id == customer_id,
                PaymentMethod.default == True,  # noqa: E712
            )
            .first()
        )

    def customers_with_multiple_defaults(self) -> list[tuple[UUID, int]]:
        rows = (
            self.db.query(PaymentMethod.customer_id, func.count(PaymentMethod.id))
            .filter(PaymentMethod.default == True)  # noqa: E712
            .group_by(PaymentMethod.customer_id)
            .having(func.count(PaymentMethod.id) > 1)
            .all()
        )
        return [(customer_id, int(count)) for customer_id, count in rows]
