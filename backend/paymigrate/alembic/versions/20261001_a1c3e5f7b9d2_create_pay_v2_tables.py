"""create pay v2 tables

Owner-scoped billing: users and teams carry their processor and card
columns directly, charges and subscriptions point at their owner.

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "a1c3e5f7b9d2"
down_revision = None
branch_labels = None
depends_on = None


def _billing_columns() -> list[sa.Column]:
    return [
        sa.Column("processor", sa.String(length=50), nullable=True),
        sa.Column("processor_id", sa.String(length=255), nullable=True),
        sa.Column("pay_data", sa.JSON(), nullable=True),
        sa.Column("card_type", sa.String(length=50), nullable=True),
        sa.Column("card_last4", sa.String(length=255), nullable=True),
        sa.Column("card_exp_month", sa.String(length=10), nullable=True),
        sa.Column("card_exp_year", sa.String(length=10), nullable=True),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        *_billing_columns(),
        *_timestamps(),
    )
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_billing_columns(),
        *_timestamps(),
    )

    op.create_table(
        "pay_charges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_type", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("processor", sa.String(length=50), nullable=False),
        sa.Column("processor_id", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("amount_refunded", sa.Integer(), nullable=True),
        sa.Column("card_type", sa.String(length=50), nullable=True),
        sa.Column("card_last4", sa.String(length=255), nullable=True),
        sa.Column("card_exp_month", sa.String(length=10), nullable=True),
        sa.Column("card_exp_year", sa.String(length=10), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_pay_charges_owner", "pay_charges", ["owner_type", "owner_id"])

    op.create_table(
        "pay_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_type", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("processor", sa.String(length=50), nullable=False),
        sa.Column("processor_id", sa.String(length=255), nullable=False),
        sa.Column("processor_plan", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_pay_subscriptions_owner", "pay_subscriptions", ["owner_type", "owner_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_pay_subscriptions_owner", table_name="pay_subscriptions")
    op.drop_table("pay_subscriptions")
    op.drop_index("ix_pay_charges_owner", table_name="pay_charges")
    op.drop_table("pay_charges")
    op.drop_table("teams")
    op.drop_table("users")
