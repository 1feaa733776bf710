"""Move legacy owner-scoped billing columns into normalized Pay records.

Legacy rows keep billing state directly on owner tables (``users``,
``teams``) and reference owners polymorphically from ``pay_charges`` and
``pay_subscriptions``. This service creates ``pay_customers`` for every
(owner, processor) pair, relinks charges and subscriptions to them,
backfills each owner's default payment method from the processor,
normalizes stored charge card details and turns generic trials into
fake-processor trial subscriptions.

It works on a plain connection with lightweight table clauses, since the
ORM models describe the schema after the legacy columns are dropped. Every
write is a lookup by natural key followed by an insert only when nothing
matched, so the whole pass can be re-run until the legacy columns go away.
"""

import logging
import time
from collections.abc import Iterator, Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Row

from paymigrate.core.config import settings
from paymigrate.models.customer import PaymentProcessor
from paymigrate.models.payment_method import PaymentMethodType
from paymigrate.models.shared import LegacyJSON, generate_uuid, utc_now
from paymigrate.models.subscription import SubscriptionStatus
from paymigrate.schemas.customer import CustomerData
from paymigrate.schemas.payment_method import CARD_DETAIL_KEYS, PaymentMethodDetails
from paymigrate.services.payment_processor import (
    LookupStatus,
    PaymentProcessorBase,
    get_payment_processor,
)

logger = logging.getLogger(__name__)

FAKE_PLAN = "fake"
TRIAL_SUBSCRIPTION_NAME = "default"

customers = sa.table(
    "pay_customers",
    sa.column("id", sa.String(36)),
    sa.column("owner_type", sa.String),
    sa.column("owner_id", sa.Integer),
    sa.column("processor", sa.String),
    sa.column("processor_id", sa.String),
    sa.column("default", sa.Boolean),
    sa.column("data", sa.JSON),
    sa.column("created_at", sa.DateTime(timezone=True)),
    sa.column("updated_at", sa.DateTime(timezone=True)),
)

payment_methods = sa.table(
    "pay_payment_methods",
    sa.column("id", sa.String(36)),
    sa.column("customer_id", sa.String(36)),
    sa.column("processor_id", sa.String),
    sa.column("payment_method_type", sa.String),
    sa.column("default", sa.Boolean),
    sa.column("data", sa.JSON),
    sa.column("created_at", sa.DateTime(timezone=True)),
    sa.column("updated_at", sa.DateTime(timezone=True)),
)

charges = sa.table(
    "pay_charges",
    sa.column("id", sa.Integer),
    sa.column("customer_id", sa.String(36)),
    sa.column("owner_type", sa.String),
    sa.column("owner_id", sa.Integer),
    sa.column("processor", sa.String),
    sa.column("processor_id", sa.String),
    sa.column("amount", sa.Integer),
    sa.column("card_type", sa.String),
    sa.column("card_last4", sa.String),
    sa.column("card_exp_month", sa.String),
    sa.column("card_exp_year", sa.String),
    sa.column("payment_method_type", sa.String),
    sa.column("data", LegacyJSON),
    sa.column("updated_at", sa.DateTime(timezone=True)),
)

subscriptions = sa.table(
    "pay_subscriptions",
    sa.column("id", sa.Integer),
    sa.column("customer_id", sa.String(36)),
    sa.column("owner_type", sa.String),
    sa.column("owner_id", sa.Integer),
    sa.column("name", sa.String),
    sa.column("processor", sa.String),
    sa.column("processor_id", sa.String),
    sa.column("processor_plan", sa.String),
    sa.column("quantity", sa.Integer),
    sa.column("status", sa.String),
    sa.column("trial_ends_at", sa.DateTime(timezone=True)),
    sa.column("ends_at", sa.DateTime(timezone=True)),
    sa.column("created_at", sa.DateTime(timezone=True)),
    sa.column("updated_at", sa.DateTime(timezone=True)),
)


def owner_table(name: str) -> sa.TableClause:
    """Legacy billing columns of an owner table."""
    return sa.table(
        name,
        sa.column("id", sa.Integer),
        sa.column("processor", sa.String),
        sa.column("processor_id", sa.String),
        sa.column("pay_data", LegacyJSON),
        sa.column("card_type", sa.String),
        sa.column("card_last4", sa.String),
        sa.column("card_exp_month", sa.String),
        sa.column("card_exp_year", sa.String),
        sa.column("trial_ends_at", sa.DateTime(timezone=True)),
    )


@dataclass(frozen=True)
class OwnerType:
    """A polymorphic owner kind and the table its rows live in."""

    name: str
    table: str


@dataclass(frozen=True)
class OwnerRef:
    owner_type: str
    owner_id: int


@dataclass
class MigrationReport:
    customers_backfilled: int = 0
    charges_relinked: int = 0
    subscriptions_relinked: int = 0
    payment_methods_synced: int = 0
    payment_methods_skipped: int = 0
    payment_methods_failed: int = 0
    charges_normalized: int = 0
    trials_converted: int = 0
    unlinked: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def configured_owner_types() -> list[OwnerType]:
    return [OwnerType(name, table) for name, table in settings.BILLING_OWNER_TYPES.items()]


def normalize_charge_details(
    card_type: str | None,
    card_last4: str | None,
    card_exp_month: str | None,
    card_exp_year: str | None,
    data: Any,
) -> tuple[str, dict[str, Any]]:
    """Map legacy card columns onto a payment method type and detail bag.

    Legacy PayPal charges stored the account email in ``card_last4``.
    A bag that is not a mapping, such as undecodable legacy text, is
    discarded.
    """
    bag = dict(data) if isinstance(data, dict) else {}

    if (card_type or "").lower() == PaymentMethodType.PAYPAL.value:
        for key in CARD_DETAIL_KEYS:
            bag.pop(key, None)
        bag.update(brand="PayPal", email=card_last4)
        return PaymentMethodType.PAYPAL.value, bag

    bag.pop("email", None)
    card = {
        "brand": card_type,
        "last4": card_last4,
        "exp_month": card_exp_month,
        "exp_year": card_exp_year,
    }
    for key, value in card.items():
        if value is None:
            bag.pop(key, None)
        else:
            bag[key] = value
    return PaymentMethodType.CARD.value, bag


def count_unlinked(connection: Connection) -> dict[str, int]:
    """Charges and subscriptions still missing a customer."""
    counts = {}
    for table in (charges, subscriptions):
        counts[table.name] = connection.execute(
            sa.select(sa.func.count()).select_from(table).where(table.c.customer_id.is_(None))
        ).scalar_one()
    return counts


class BillingMigrationService:
    """Runs the data part of the Pay billing upgrade on one connection."""

    def __init__(
        self,
        connection: Connection,
        owner_types: list[OwnerType] | None = None,
        processors: Mapping[str, PaymentProcessorBase | None] | None = None,
        batch_size: int | None = None,
        request_interval: float | None = None,
        now: datetime | None = None,
    ):
        self.connection = connection
        self.owner_types = owner_types if owner_types is not None else configured_owner_types()
        self._processors: dict[str, PaymentProcessorBase | None] = dict(processors or {})
        self.batch_size = batch_size or settings.MIGRATION_BATCH_SIZE
        self.request_interval = (
            settings.PROCESSOR_REQUEST_INTERVAL if request_interval is None else request_interval
        )
        self.now = now or utc_now()
        self.report = MigrationReport()

    def run(self) -> MigrationReport:
        for owner_type in self.owner_types:
            logger.info("Migrating %s billing records from %s", owner_type.name, owner_type.table)
            self.backfill_customers(owner_type)
            self.relink(charges, owner_type)
            self.relink(subscriptions, owner_type)
            self.sync_default_payment_methods(owner_type)

        self.normalize_charges()

        for owner_type in self.owner_types:
            self.convert_generic_trials(owner_type)

        self.report.unlinked = count_unlinked(self.connection)
        for table_name, count in self.report.unlinked.items():
            if count:
                logger.warning(
                    "%d rows in %s have no customer; their owner type is not configured",
                    count,
                    table_name,
                )
        logger.info("Billing migration finished: %s", self.report.as_dict())
        return self.report

    # ---- Step 1 ----

    def backfill_customers(self, owner_type: OwnerType) -> int:
        """Create the default customer for every owner with a legacy processor."""
        owners = owner_table(owner_type.table)
        count = 0
        for row in self._iter_rows(owners, owners.c.processor.isnot(None)):
            owner = OwnerRef(owner_type.name, row.id)
            customer_id = self._find_customer_id(
                owner, row.processor, customers.c.processor_id == row.processor_id
            )
            if customer_id is None:
                customer_id = self._create_customer(owner, row.processor, row.processor_id)

            existing = self.connection.execute(
                sa.select(customers.c.data).where(customers.c.id == customer_id)
            ).scalar_one()
            bag = dict(existing) if isinstance(existing, dict) else {}
            bag.update(CustomerData.from_bag(row.pay_data).as_bag())
            self.connection.execute(
                sa.update(customers)
                .where(customers.c.id == customer_id)
                .values(data=bag, updated_at=self.now)
            )
            self._make_default(owner, customer_id)
            count += 1

        self.report.customers_backfilled += count
        logger.info("Backfilled %d %s customers", count, owner_type.name)
        return count

    # ---- Step 2 ----

    def relink(self, table: sa.TableClause, owner_type: OwnerType) -> int:
        """Point charges or subscriptions at the customer of their own processor."""
        known_owners: set[int] = set()
        count = 0
        for row in self._iter_rows(table, table.c.owner_type == owner_type.name):
            if row.owner_id not in known_owners:
                self._require_owner(owner_type, row.owner_id, table.name, row.id)
                known_owners.add(row.owner_id)

            owner = OwnerRef(owner_type.name, row.owner_id)
            customer_id = self._find_customer_id(owner, row.processor)
            if customer_id is None:
                customer_id = self._create_customer(owner, row.processor)

            self.connection.execute(
                sa.update(table)
                .where(table.c.id == row.id)
                .values(customer_id=customer_id, updated_at=self.now)
            )
            count += 1

        if table is charges:
            self.report.charges_relinked += count
        else:
            self.report.subscriptions_relinked += count
        logger.info("Relinked %d %s rows owned by %s", count, table.name, owner_type.name)
        return count

    # ---- Step 3 ----

    def sync_default_payment_methods(self, owner_type: OwnerType) -> int:
        """Mirror each owner's default payment method from its processor.

        Processor failures are logged and skipped per owner.
        """
        owners = owner_table(owner_type.table)
        synced = 0
        for row in self._iter_rows(
            owners, owners.c.processor.isnot(None), owners.c.card_type.isnot(None)
        ):
            owner = OwnerRef(owner_type.name, row.id)
            customer = self.connection.execute(
                sa.select(customers).where(
                    customers.c.owner_type == owner.owner_type,
                    customers.c.owner_id == owner.owner_id,
                    customers.c.processor == row.processor,
                    customers.c.processor_id == row.processor_id,
                )
            ).first()
            if customer is None:
                self.report.payment_methods_skipped += 1
                continue

            details = self._fetch_default_payment_method(owner, customer)
            if details is None:
                continue

            self._upsert_payment_method(customer.id, details)
            self.report.payment_methods_synced += 1
            synced += 1

        logger.info("Synced %d default payment methods for %s", synced, owner_type.name)
        return synced

    def _fetch_default_payment_method(
        self, owner: OwnerRef, customer: Row[Any]
    ) -> PaymentMethodDetails | None:
        processor = self._processor_for(customer.processor)
        if processor is None:
            self.report.payment_methods_skipped += 1
            return None

        data = CustomerData.from_bag(customer.data)
        try:
            lookup = processor.fetch_default_payment_method_id(customer.processor_id, data)
            if lookup.status is LookupStatus.NOT_FOUND:
                logger.info(
                    "No default payment method for %s %s: %s",
                    owner.owner_type,
                    owner.owner_id,
                    lookup.reason,
                )
                self.report.payment_methods_skipped += 1
                return None
            if lookup.status is LookupStatus.ERROR:
                logger.warning(
                    "Default payment method lookup failed for %s %s: %s",
                    owner.owner_type,
                    owner.owner_id,
                    lookup.reason,
                )
                self.report.payment_methods_failed += 1
                return None
            return processor.fetch_payment_method(str(lookup.payment_method_id), data)
        except Exception:
            logger.warning(
                "Payment method sync failed for %s %s on %s",
                owner.owner_type,
                owner.owner_id,
                customer.processor,
                exc_info=True,
            )
            self.report.payment_methods_failed += 1
            return None
        finally:
            if self.request_interval > 0:
                time.sleep(self.request_interval)

    def _upsert_payment_method(self, customer_id: str, details: PaymentMethodDetails) -> str:
        payment_method_id = self.connection.execute(
            sa.select(payment_methods.c.id).where(
                payment_methods.c.customer_id == customer_id,
                payment_methods.c.processor_id == details.processor_id,
            )
        ).scalar()

        values = {
            "payment_method_type": details.payment_method_type,
            "data": details.as_data(),
            "updated_at": self.now,
        }
        if payment_method_id is None:
            payment_method_id = str(generate_uuid())
            self.connection.execute(
                sa.insert(payment_methods).values(
                    id=payment_method_id,
                    customer_id=customer_id,
                    processor_id=details.processor_id,
                    default=False,
                    created_at=self.now,
                    **values,
                )
            )
        else:
            self.connection.execute(
                sa.update(payment_methods)
                .where(payment_methods.c.id == payment_method_id)
                .values(**values)
            )

        # Unset other defaults for the same customer
        self.connection.execute(
            sa.update(payment_methods)
            .where(
                payment_methods.c.customer_id == customer_id,
                payment_methods.c.id != payment_method_id,
                payment_methods.c.default == sa.true(),
            )
            .values(default=False)
        )
        self.connection.execute(
            sa.update(payment_methods)
            .where(payment_methods.c.id == payment_method_id)
            .values(default=True)
        )
        return payment_method_id

    # ---- Step 4 ----

    def normalize_charges(self) -> int:
        """Rewrite every charge's card columns into payment_method_type and data."""
        count = 0
        for row in self._iter_rows(charges):
            payment_method_type, bag = normalize_charge_details(
                row.card_type,
                row.card_last4,
                row.card_exp_month,
                row.card_exp_year,
                row.data,
            )
            self.connection.execute(
                sa.update(charges)
                .where(charges.c.id == row.id)
                .values(payment_method_type=payment_method_type, data=bag, updated_at=self.now)
            )
            count += 1

        self.report.charges_normalized += count
        logger.info("Normalized payment details on %d charges", count)
        return count

    # ---- Step 5 ----

    def convert_generic_trials(self, owner_type: OwnerType) -> int:
        """Give owners on a generic trial a fake-processor trial subscription."""
        owners = owner_table(owner_type.table)
        count = 0
        for row in self._iter_rows(owners, owners.c.trial_ends_at >= self.now):
            owner = OwnerRef(owner_type.name, row.id)

            # Clear defaults first so the partial unique index never sees two
            self.connection.execute(
                sa.update(customers)
                .where(
                    customers.c.owner_type == owner.owner_type,
                    customers.c.owner_id == owner.owner_id,
                    customers.c.default == sa.true(),
                )
                .values(default=False, updated_at=self.now)
            )

            fake = PaymentProcessor.FAKE.value
            customer_id = self._find_customer_id(owner, fake)
            if customer_id is None:
                customer_id = self._create_customer(owner, fake, f"fake_{uuid4().hex[:24]}")
            self._make_default(owner, customer_id)
            self._start_trial(owner, customer_id, row.trial_ends_at)
            count += 1

        self.report.trials_converted += count
        logger.info("Converted %d generic %s trials", count, owner_type.name)
        return count

    def _start_trial(self, owner: OwnerRef, customer_id: str, trial_ends_at: datetime) -> None:
        subscription_id = self.connection.execute(
            sa.select(subscriptions.c.id).where(
                subscriptions.c.customer_id == customer_id,
                subscriptions.c.name == TRIAL_SUBSCRIPTION_NAME,
            )
        ).scalar()
        if subscription_id is not None:
            self.connection.execute(
                sa.update(subscriptions)
                .where(subscriptions.c.id == subscription_id)
                .values(trial_ends_at=trial_ends_at, ends_at=trial_ends_at, updated_at=self.now)
            )
            return

        # Legacy owner columns are still NOT NULL until the schema is narrowed
        self.connection.execute(
            sa.insert(subscriptions).values(
                customer_id=customer_id,
                owner_type=owner.owner_type,
                owner_id=owner.owner_id,
                name=TRIAL_SUBSCRIPTION_NAME,
                processor=PaymentProcessor.FAKE.value,
                processor_id=f"fake_{uuid4().hex[:24]}",
                processor_plan=FAKE_PLAN,
                quantity=1,
                status=SubscriptionStatus.TRIALING.value,
                trial_ends_at=trial_ends_at,
                ends_at=trial_ends_at,
                created_at=self.now,
                updated_at=self.now,
            )
        )

    # ---- Helpers ----

    def _iter_rows(self, table: sa.TableClause, *criteria: Any) -> Iterator[Row[Any]]:
        """Yield rows in primary key order, one bounded batch at a time."""
        last_id = None
        while True:
            query = sa.select(table).order_by(table.c.id).limit(self.batch_size)
            for criterion in criteria:
                query = query.where(criterion)
            if last_id is not None:
                query = query.where(table.c.id > last_id)

            rows = self.connection.execute(query).fetchall()
            if not rows:
                return
            yield from rows
            last_id = rows[-1].id

    def _find_customer_id(self, owner: OwnerRef, processor: str, *criteria: Any) -> str | None:
        return self.connection.execute(
            sa.select(customers.c.id)
            .where(
                customers.c.owner_type == owner.owner_type,
                customers.c.owner_id == owner.owner_id,
                customers.c.processor == processor,
                *criteria,
            )
            .order_by(customers.c.created_at)
            .limit(1)
        ).scalar()

    def _create_customer(
        self, owner: OwnerRef, processor: str, processor_id: str | None = None
    ) -> str:
        customer_id = str(generate_uuid())
        self.connection.execute(
            sa.insert(customers).values(
                id=customer_id,
                owner_type=owner.owner_type,
                owner_id=owner.owner_id,
                processor=processor,
                processor_id=processor_id,
                default=False,
                data={},
                created_at=self.now,
                updated_at=self.now,
            )
        )
        return customer_id

    def _make_default(self, owner: OwnerRef, customer_id: str) -> None:
        self.connection.execute(
            sa.update(customers)
            .where(
                customers.c.owner_type == owner.owner_type,
                customers.c.owner_id == owner.owner_id,
                customers.c.id != customer_id,
                customers.c.default == sa.true(),
            )
            .values(default=False, updated_at=self.now)
        )
        self.connection.execute(
            sa.update(customers)
            .where(customers.c.id == customer_id)
            .values(default=True, updated_at=self.now)
        )

    def _require_owner(
        self, owner_type: OwnerType, owner_id: int, table_name: str, row_id: int
    ) -> None:
        owners = owner_table(owner_type.table)
        exists = self.connection.execute(
            sa.select(owners.c.id).where(owners.c.id == owner_id)
        ).first()
        if exists is None:
            raise ValueError(
                f"{owner_type.name} {owner_id} not found for {table_name} row {row_id}"
            )

    def _processor_for(self, name: str) -> PaymentProcessorBase | None:
        if name not in self._processors:
            try:
                self._processors[name] = get_payment_processor(PaymentProcessor(name))
            except ValueError:
                logger.info("Payment method sync is not available for processor %s", name)
                self._processors[name] = None
        return self._processors[name]
