"""create account table

Revision ID: a7c3e9f1b2d4
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a7c3e9f1b2d4"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "account",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tier", sa.String(length=32), nullable=False),
        sa.Column("monthly_limit", sa.Integer(), nullable=False),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("billing_period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_reset", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "modified_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("usage_count >= 0", name="ck_account_usage_count_non_negative"),
        sa.CheckConstraint(
            "tier IN ('metered-low', 'metered-mid', 'metered-high', 'unmetered')",
            name="ck_account_tier",
        ),
    )
    op.create_index(
        "idx_account_billing_period_start", "account", ["billing_period_start"], unique=False
    )


def downgrade() -> None:
    op.drop_index("idx_account_billing_period_start", table_name="account")
    op.drop_table("account")
