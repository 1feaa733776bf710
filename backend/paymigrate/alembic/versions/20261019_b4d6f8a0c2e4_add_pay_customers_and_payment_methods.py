"""add pay customers and payment methods

Revision ID: b4d6f8a0c2e4
Revises: a1c3e5f7b9d2
Create Date: 2026-10-19 10:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "b4d6f8a0c2e4"
down_revision = "a1c3e5f7b9d2"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pay_customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_type", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("processor", sa.String(length=50), nullable=False),
        sa.Column("processor_id", sa.String(length=255), nullable=True),
        sa.Column("default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.UniqueConstraint("processor", "processor_id", name="uq_pay_customers_processor_id"),
    )
    op.create_index("ix_pay_customers_owner_type", "pay_customers", ["owner_type"])
    op.create_index("ix_pay_customers_owner_id", "pay_customers", ["owner_id"])
    op.create_index(
        "ix_pay_customers_owner_default",
        "pay_customers",
        ["owner_type", "owner_id"],
        unique=True,
        sqlite_where=sa.text('"default"'),
        postgresql_where=sa.text('"default"'),
    )

    op.create_table(
        "pay_payment_methods",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "customer_id",
            sa.String(36),
            sa.ForeignKey("pay_customers.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("processor_id", sa.String(length=255), nullable=False),
        sa.Column("payment_method_type", sa.String(length=50), nullable=False),
        sa.Column("default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.UniqueConstraint(
            "customer_id", "processor_id", name="uq_pay_payment_methods_customer_processor_id"
        ),
    )

    with op.batch_alter_table("pay_charges") as batch_op:
        batch_op.add_column(sa.Column("customer_id", sa.String(36), nullable=True))
        batch_op.add_column(sa.Column("payment_method_type", sa.String(length=50), nullable=True))
        batch_op.create_foreign_key(
            "fk_pay_charges_customer_id", "pay_customers", ["customer_id"], ["id"]
        )
        batch_op.create_index("ix_pay_charges_customer_id", ["customer_id"])

    with op.batch_alter_table("pay_subscriptions") as batch_op:
        batch_op.add_column(sa.Column("customer_id", sa.String(36), nullable=True))
        batch_op.create_foreign_key(
            "fk_pay_subscriptions_customer_id", "pay_customers", ["customer_id"], ["id"]
        )
        batch_op.create_index("ix_pay_subscriptions_customer_id", ["customer_id"])


def downgrade() -> None:
    with op.batch_alter_table("pay_subscriptions") as batch_op:
        batch_op.drop_index("ix_pay_subscriptions_customer_id")
        batch_op.drop_constraint("fk_pay_subscriptions_customer_id", type_="foreignkey")
        batch_op.drop_column("customer_id")

    with op.batch_alter_table("pay_charges") as batch_op:
        batch_op.drop_index("ix_pay_charges_customer_id")
        batch_op.drop_constraint("fk_pay_charges_customer_id", type_="foreignkey")
        batch_op.drop_column("payment_method_type")
        batch_op.drop_column("customer_id")

    op.drop_table("pay_payment_methods")
    op.drop_index("ix_pay_customers_owner_default", table_name="pay_customers")
    op.drop_index("ix_pay_customers_owner_id", table_name="pay_customers")
    op.drop_index("ix_pay_customers_owner_type", table_name="pay_customers")
    op.drop_table("pay_customers")
