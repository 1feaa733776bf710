from sqlalchemy import func
from sqlalchemy.orm import Session

from paymigrate.models.customer import Customer


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_default(self, owner_type: str, owner_id: int) -> Customer | None:
        return (
            self.db.query(Customer)
            .filter(
                Customer.owner_type == owner_type,
                Customer.owner_id == owner_id,
                Customer.default == True,  # noqa: E712
            )
            .first()
        )

    def owners_with_multiple_defaults(self) -> list[tuple[str, int, int]]:
        """(owner_type, owner_id, count) for owners with more than one default customer."""
        rows = (
            self.db.query(Customer.owner_type, Customer.owner_id, func.count(Customer.id))
            .filter(Customer.default == True)  # noqa: E712
            .group_by(Customer.owner_type, Customer.owner_id)
            .having(func.count(Customer.id) > 1)
            .all()
        )
        return [(str(t), int(i), int(c)) for t, i, c in rows]

    def duplicate_owner_processors(self) -> list[tuple[str, int, str, int]]:
        """(owner_type, owner_id, processor, count) for pairs with several customers."""
        rows = (
            self.db.query(
                Customer.owner_type,
                Customer.owner_id,
                Customer.processor,
                func.count(Customer.id),
            )
            .group_by(Customer.owner_type, Customer.owner_id, Customer.processor)
            .having(func.count(Customer.id) > 1)
            .all()
        )
        return [(str(t), int(i), str(p), int(c)) for t, i, p, c in rows]
