"""Read-only checks of the normalized billing tables.

Run between the data migration and the column drop, or afterwards, to
confirm customers, charges, subscriptions and payment methods line up.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from paymigrate.models.charge import Charge
from paymigrate.models.subscription import Subscription
from paymigrate.repositories.customer_repository import CustomerRepository
from paymigrate.repositories.payment_method_repository import PaymentMethodRepository

logger = logging.getLogger(__name__)


@dataclass
class InvariantViolation:
    code: str
    message: str


class BillingInvariantChecker:
    def __init__(self, db: Session):
        self.db = db
        self.customer_repo = CustomerRepository(db)
        self.payment_method_repo = PaymentMethodRepository(db)

    def check(self) -> list[InvariantViolation]:
        violations: list[InvariantViolation] = []

        for owner_type, owner_id, count in self.customer_repo.owners_with_multiple_defaults():
            violations.append(
                InvariantViolation(
                    code="multiple_default_customers",
                    message=f"{owner_type} {owner_id} has {count} default customers",
                )
            )

        for owner_type, owner_id, processor, count in (
            self.customer_repo.duplicate_owner_processors()
        ):
            violations.append(
                InvariantViolation(
                    code="duplicate_processor_customers",
                    message=f"{owner_type} {owner_id} has {count} {processor} customers",
                )
            )

        for model in (Charge, Subscription):
            unlinked = self.db.query(model).filter(model.customer_id.is_(None)).count()
            if unlinked:
                violations.append(
                    InvariantViolation(
                        code="unlinked_rows",
                        message=f"{unlinked} {model.__tablename__} rows have no customer",
                    )
                )

        for customer_id, count in self.payment_method_repo.customers_with_multiple_defaults():
            violations.append(
                InvariantViolation(
                    code="multiple_default_payment_methods",
                    message=f"Customer {customer_id} has {count} default payment methods",
                )
            )

        for violation in violations:
            logger.warning("Billing invariant violated (%s): %s", violation.code, violation.message)
        return violations
