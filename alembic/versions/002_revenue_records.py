"""Revenue records ledger

Revision ID: 002_revenue_records
Revises: 001_directory_and_billing
Create Date: 2026-01-08

The partial unique index on source_line_item_id is what keeps recognition
idempotent: at most one revenue record per invoice line item.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_revenue_records"
down_revision: Union[str, None] = "001_directory_and_billing"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "revenue_records",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("family_id", sa.BigInteger(), nullable=False),
        sa.Column("student_id", sa.BigInteger(), nullable=True),
        sa.Column("service_id", sa.BigInteger(), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("revenue", sa.Numeric(10, 2), nullable=False),
        sa.Column("source", sa.String(20), nullable=False, server_default="invoice"),
        sa.Column("source_invoice_id", sa.BigInteger(), nullable=True),
        sa.Column("source_line_item_id", sa.BigInteger(), nullable=True),
        sa.Column("class_title", sa.String(255), nullable=True),
        sa.Column("location_id", sa.BigInteger(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["service_id"], ["services.id"]),
        sa.ForeignKeyConstraint(["source_invoice_id"], ["invoices.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
    )
    op.create_index(
        "uq_revenue_records_source_line_item_id",
        "revenue_records",
        ["source_line_item_id"],
        unique=True,
        postgresql_where=sa.text("source_line_item_id IS NOT NULL"),
        sqlite_where=sa.text("source_line_item_id IS NOT NULL"),
    )
    op.create_index(
        "ix_revenue_records_source_invoice_id",
        "revenue_records",
        ["source_invoice_id"],
        postgresql_where=sa.text("source_invoice_id IS NOT NULL"),
    )
    op.create_index("ix_revenue_records_family_id", "revenue_records", ["family_id"])
    op.create_index("ix_revenue_records_location_id", "revenue_records", ["location_id"])
    op.create_index(
        "ix_revenue_records_period", "revenue_records", ["period_start", "period_end"]
    )


def downgrade() -> None:
    op.drop_index("ix_revenue_records_period", table_name="revenue_records")
    op.drop_index("ix_revenue_records_location_id", table_name="revenue_records")
    op.drop_index("ix_revenue_records_family_id", table_name="revenue_records")
    op.drop_index("ix_revenue_records_source_invoice_id", table_name="revenue_records")
    op.drop_index("uq_revenue_records_source_line_item_id", table_name="revenue_records")
    op.drop_table("revenue_records")
