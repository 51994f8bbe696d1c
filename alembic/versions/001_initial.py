"""Baseline schema: users, appeals, promo codes and their usages, payments, HPI checks.

App startup runs Base.metadata.create_all before Alembic, so every table is
created only when missing.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _existing_tables() -> set:
    return set(sa.inspect(op.get_bind()).get_table_names())


def upgrade() -> None:
    existing = _existing_tables()

    if "users" not in existing:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("hashed_password", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("phone", sa.String(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("subscription_type", sa.String(), nullable=False, server_default="FREE_TRIAL"),
            sa.Column("subscription_start", sa.DateTime(), nullable=True),
            sa.Column("subscription_end", sa.DateTime(), nullable=True),
            sa.Column("appeal_trial_used", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("appeal_trial_used_at", sa.DateTime(), nullable=True),
            sa.Column("appeal_trial_reg", sa.String(), nullable=True),
            sa.Column("hpi_credits", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.CheckConstraint("hpi_credits >= 0", name="ck_users_hpi_credits_non_negative"),
        )
        op.create_index("ix_users_id", "users", ["id"])
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if "appeals" not in existing:
        op.create_table(
            "appeals",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("ticket_number", sa.String(), nullable=False),
            sa.Column("vehicle_registration", sa.String(), nullable=True),
            sa.Column("fine_amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("issue_date", sa.DateTime(), nullable=False),
            sa.Column("due_date", sa.DateTime(), nullable=False),
            sa.Column("location", sa.String(), nullable=False),
            sa.Column("reason", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("status", sa.String(), nullable=False, server_default="SUBMITTED"),
            sa.Column("ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("user_reported_outcome", sa.String(), nullable=True),
            sa.Column("user_reported_at", sa.DateTime(), nullable=True),
            sa.Column("outcome_notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_appeals_id", "appeals", ["id"])
        op.create_index("ix_appeals_user_id", "appeals", ["user_id"])
        op.create_index("ix_appeals_vehicle_registration", "appeals", ["vehicle_registration"])
        op.create_index("ix_appeals_created_at", "appeals", ["created_at"])

    if "promo_codes" not in existing:
        op.create_table(
            "promo_codes",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("code", sa.String(20), nullable=False),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("discount_type", sa.String(), nullable=False),
            sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
            sa.Column("min_order_value", sa.Numeric(10, 2), nullable=True),
            sa.Column("max_discount", sa.Numeric(10, 2), nullable=True),
            sa.Column("usage_limit", sa.Integer(), nullable=True),
            sa.Column("per_user_limit", sa.Integer(), nullable=True),
            sa.Column("valid_from", sa.DateTime(), nullable=False),
            sa.Column("valid_until", sa.DateTime(), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(
                "applicable_for", sa.String(), nullable=False,
                server_default="HPI_CHECK,ANNUAL_SUBSCRIPTION",
            ),
            sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_promo_codes_id", "promo_codes", ["id"])
        op.create_index("ix_promo_codes_code", "promo_codes", ["code"], unique=True)

    if "payments" not in existing:
        op.create_table(
            "payments",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("type", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("final_amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("currency", sa.String(), nullable=False, server_default="GBP"),
            sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
            sa.Column(
                "promo_code_id", sa.Integer(),
                sa.ForeignKey("promo_codes.id", ondelete="SET NULL"), nullable=True,
            ),
            sa.Column("promo_code_used", sa.String(), nullable=True),
            sa.Column("stripe_session_id", sa.String(), nullable=True),
            sa.Column("stripe_payment_intent_id", sa.String(), nullable=True),
            sa.Column("completed_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_payments_id", "payments", ["id"])
        op.create_index("ix_payments_user_id", "payments", ["user_id"])
        op.create_index("ix_payments_status", "payments", ["status"])
        op.create_index("ix_payments_stripe_session_id", "payments", ["stripe_session_id"], unique=True)
        op.create_index("ix_payments_stripe_payment_intent_id", "payments", ["stripe_payment_intent_id"])

    if "promo_usages" not in existing:
        op.create_table(
            "promo_usages",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "promo_code_id", sa.Integer(),
                sa.ForeignKey("promo_codes.id", ondelete="RESTRICT"), nullable=False,
            ),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("payment_id", sa.Integer(), sa.ForeignKey("payments.id", ondelete="CASCADE"), nullable=False),
            sa.Column("discount_applied", sa.Numeric(10, 2), nullable=False),
            sa.Column("used_at", sa.DateTime(), nullable=False),
            sa.UniqueConstraint("payment_id"),
        )
        op.create_index("ix_promo_usages_id", "promo_usages", ["id"])
        op.create_index("ix_promo_usages_promo_code_id", "promo_usages", ["promo_code_id"])
        op.create_index("ix_promo_usages_user_id", "promo_usages", ["user_id"])

    if "hpi_checks" not in existing:
        op.create_table(
            "hpi_checks",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("registration", sa.String(), nullable=False),
            sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
            sa.Column("cost", sa.Numeric(10, 2), nullable=False),
            sa.Column("paid_with", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_hpi_checks_id", "hpi_checks", ["id"])
        op.create_index("ix_hpi_checks_user_id", "hpi_checks", ["user_id"])
        op.create_index("ix_hpi_checks_registration", "hpi_checks", ["registration"])


def downgrade() -> None:
    for table in ("hpi_checks", "promo_usages", "payments", "promo_codes", "appeals", "users"):
        op.drop_table(table)
