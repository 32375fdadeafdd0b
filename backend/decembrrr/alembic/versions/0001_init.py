"""classes, profiles, transactions and no_class_dates

Revision ID: 0001_init
Revises:
Create Date: 2024-11-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "classes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("invite_code", sa.String(length=12), nullable=False),
        sa.Column("daily_amount", sa.Numeric(12, 2), nullable=False, server_default="10.00"),
        sa.Column("collection_frequency", sa.String(length=10), nullable=False, server_default="daily"),
        sa.Column("collection_days", sa.JSON(), nullable=False),
        sa.Column("date_initiated", sa.Date(), nullable=False),
        sa.Column("fund_goal", sa.Numeric(12, 2), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("president_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("daily_amount > 0", name="ck_classes_daily_amount_positive"),
    )
    op.create_index("ix_classes_invite_code", "classes", ["invite_code"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="student"),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False, server_default="0.00"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_profiles_class_id", "profiles", ["class_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("class_id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("type", sa.String(length=12), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("balance_before", sa.Numeric(12, 2), nullable=False),
        sa.Column("balance_after", sa.Numeric(12, 2), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        sa.CheckConstraint("type IN ('deposit', 'deduction')", name="ck_transactions_type"),
    )
    op.create_index("ix_transactions_class_id", "transactions", ["class_id"])
    op.create_index("ix_transactions_profile_id", "transactions", ["profile_id"])
    op.create_index("ix_transactions_class_type_created", "transactions", ["class_id", "type", "created_at"])

    op.create_table(
        "no_class_dates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False, server_default="No class"),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("class_id", "date", name="uq_no_class_dates_class_date"),
    )
    op.create_index("ix_no_class_dates_class_id", "no_class_dates", ["class_id"])


def downgrade() -> None:
    op.drop_index("ix_no_class_dates_class_id", table_name="no_class_dates")
    op.drop_table("no_class_dates")
    op.drop_index("ix_transactions_class_type_created", table_name="transactions")
    op.drop_index("ix_transactions_profile_id", table_name="transactions")
    op.drop_index("ix_transactions_class_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_profiles_class_id", table_name="profiles")
    op.drop_table("profiles")
    op.drop_index("ix_classes_invite_code", table_name="classes")
    op.drop_table("classes")
