"""migrate pay billing data

Backfills pay_customers and pay_payment_methods from the legacy owner
columns and relinks charges and subscriptions. Safe to re-run until the
legacy columns are dropped.

Revision ID: c6e8a0b2d4f6
Revises: b4d6f8a0c2e4
Create Date: 2026-10-19 10:05:00.000000

"""

from alembic import op

from paymigrate.services.billing_migration import BillingMigrationService

# revision identifiers, used by Alembic.
revision = "c6e8a0b2d4f6"
down_revision = "b4d6f8a0c2e4"
branch_labels = None
depends_on = None


def upgrade() -> None:
    BillingMigrationService(op.get_bind()).run()


def downgrade() -> None:
    # Migrated rows are removed with their tables one revision down.
    return
