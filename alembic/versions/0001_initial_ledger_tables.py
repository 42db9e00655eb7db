"""initial ledger tables

Revision ID: 3c1f9a7d2b10
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "3c1f9a7d2b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("phone_number", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_customers_full_name", "customers", ["full_name"])

    op.create_table(
        "leases",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("customer_id", sa.Uuid(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("car_brand", sa.String(), nullable=True),
        sa.Column("car_model", sa.String(), nullable=True),
        sa.Column("car_year", sa.String(), nullable=True),
        sa.Column("car_purchase_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("leasing_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("monthly_installment", sa.Numeric(12, 2), nullable=False),
        sa.Column("lease_duration", sa.Integer(), nullable=False),
        sa.Column("lease_start_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_leases_customer_id", "leases", ["customer_id"])
    op.create_index("ix_leases_car_brand", "leases", ["car_brand"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("lease_id", sa.Uuid(), sa.ForeignKey("leases.id"), nullable=False),
        sa.Column("sequence_index", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("scheduled_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("credited_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("actual_amount_paid", sa.Numeric(12, 2), nullable=True),
        sa.Column("payment_date", sa.Date(), nullable=True),
        sa.Column("proof_ref", sa.String(255), nullable=True),
        sa.Column("paid_flag", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("unallocated_excess", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("lease_id", "sequence_index", name="uq_payment_lease_sequence"),
    )
    op.create_index("ix_payments_lease_id", "payments", ["lease_id"])
    op.create_index("ix_payments_due_date", "payments", ["due_date"])

    op.create_table(
        "audit_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("lease_id", sa.Uuid(), sa.ForeignKey("leases.id"), nullable=False),
        sa.Column("payment_id", sa.Uuid(), sa.ForeignKey("payments.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("from_status", sa.String(20), nullable=False),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("source_payment_id", sa.Uuid(), sa.ForeignKey("payments.id"), nullable=True),
        sa.Column("actor", sa.String(255), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.UniqueConstraint("lease_id", "position", name="uq_audit_lease_position"),
    )
    op.create_index("ix_audit_entries_lease_id", "audit_entries", ["lease_id"])
    op.create_index("ix_audit_entries_payment_id", "audit_entries", ["payment_id"])
    op.create_index("ix_audit_entries_source_payment_id", "audit_entries", ["source_payment_id"])


def downgrade() -> None:
    op.drop_table("audit_entries")
    op.drop_table("payments")
    op.drop_table("leases")
    op.drop_table("customers")
