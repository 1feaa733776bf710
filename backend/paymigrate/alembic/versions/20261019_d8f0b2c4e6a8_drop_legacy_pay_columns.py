"""drop legacy pay columns

Irreversible for data: downgrade re-adds the columns empty.

Revision ID: d8f0b2c4e6a8
Revises: c6e8a0b2d4f6
Create Date: 2026-10-19 10:10:00.000000

"""

import sqlalchemy as sa
from alembic import op

from paymigrate.core.config import settings
from paymigrate.services.billing_migration import count_unlinked

# revision identifiers, used by Alembic.
revision = "d8f0b2c4e6a8"
down_revision = "c6e8a0b2d4f6"
branch_labels = None
depends_on = None

OWNER_COLUMNS = [
    "processor",
    "processor_id",
    "pay_data",
    "card_type",
    "card_last4",
    "card_exp_month",
    "card_exp_year",
    "trial_ends_at",
]

CARD_COLUMNS = ["card_type", "card_last4", "card_exp_month", "card_exp_year"]


def upgrade() -> None:
    unlinked = {
        table: count for table, count in count_unlinked(op.get_bind()).items() if count
    }
    if unlinked:
        raise RuntimeError(f"Refusing to drop owner columns, rows without a customer: {unlinked}")

    for table in settings.BILLING_OWNER_TYPES.values():
        with op.batch_alter_table(table) as batch_op:
            for col in OWNER_COLUMNS:
                batch_op.drop_column(col)

    with op.batch_alter_table("pay_charges") as batch_op:
        batch_op.drop_index("ix_pay_charges_owner")
        for col in ["owner_type", "owner_id", "processor", *CARD_COLUMNS]:
            batch_op.drop_column(col)
        batch_op.alter_column("customer_id", existing_type=sa.String(36), nullable=False)

    with op.batch_alter_table("pay_subscriptions") as batch_op:
        batch_op.drop_index("ix_pay_subscriptions_owner")
        for col in ["owner_type", "owner_id", "processor"]:
            batch_op.drop_column(col)
        batch_op.alter_column("customer_id", existing_type=sa.String(36), nullable=False)


def downgrade() -> None:
    with op.batch_alter_table("pay_subscriptions") as batch_op:
        batch_op.alter_column("customer_id", existing_type=sa.String(36), nullable=True)
        batch_op.add_column(sa.Column("processor", sa.String(length=50), nullable=True))
        batch_op.add_column(sa.Column("owner_id", sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column("owner_type", sa.String(length=255), nullable=True))
        batch_op.create_index("ix_pay_subscriptions_owner", ["owner_type", "owner_id"])

    with op.batch_alter_table("pay_charges") as batch_op:
        batch_op.alter_column("customer_id", existing_type=sa.String(36), nullable=True)
        batch_op.add_column(sa.Column("card_exp_year", sa.String(length=10), nullable=True))
        batch_op.add_column(sa.Column("card_exp_month", sa.String(length=10), nullable=True))
        batch_op.add_column(sa.Column("card_last4", sa.String(length=255), nullable=True))
        batch_op.add_column(sa.Column("card_type", sa.String(length=50), nullable=True))
        batch_op.add_column(sa.Column("processor", sa.String(length=50), nullable=True))
        batch_op.add_column(sa.Column("owner_id", sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column("owner_type", sa.String(length=255), nullable=True))
        batch_op.create_index("ix_pay_charges_owner", ["owner_type", "owner_id"])

    for table in settings.BILLING_OWNER_TYPES.values():
        with op.batch_alter_table(table) as batch_op:
            batch_op.add_column(
                sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True)
            )
            batch_op.add_column(sa.Column("card_exp_year", sa.String(length=10), nullable=True))
            batch_op.add_column(sa.Column("card_exp_month", sa.String(length=10), nullable=True))
            batch_op.add_column(sa.Column("card_last4", sa.String(length=255), nullable=True))
            batch_op.add_column(sa.Column("card_type", sa.String(length=50), nullable=True))
            batch_op.add_column(sa.Column("pay_data", sa.JSON(), nullable=True))
            batch_op.add_column(sa.Column("processor_id", sa.String(length=255), nullable=True))
            batch_op.add_column(sa.Column("processor", sa.String(length=50), nullable=True))
