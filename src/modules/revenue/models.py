"""Revenue ledger model."""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, BigIntPK, created_at_column

SOURCE_LINE_ITEM_UNIQUE_INDEX = "uq_revenue_records_source_line_item_id"
SOURCE_LINE_ITEM_PRESENT = "source_line_item_id IS NOT NULL"


class RevenueSource(StrEnum):
    """Where a revenue record came from."""

    INVOICE = "invoice"


class RevenueRecord(Base):
    """
    One recognized unit of revenue.

    Append-only. At most one record exists per source line item; the partial
    unique index below is the only guard, the recognition code relies on it.
    """

    __tablename__ = "revenue_records"
    __table_args__ = (
        Index(
            SOURCE_LINE_ITEM_UNIQUE_INDEX,
            "source_line_item_id",
            unique=True,
            postgresql_where=text(SOURCE_LINE_ITEM_PRESENT),
            sqlite_where=text(SOURCE_LINE_ITEM_PRESENT),
        ),
        Index(
            "ix_revenue_records_source_invoice_id",
            "source_invoice_id",
            postgresql_where=text("source_invoice_id IS NOT NULL"),
        ),
        Index("ix_revenue_records_period", "period_start", "period_end"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    family_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Null when the line item had no enrollment
    student_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("students.id", ondelete="SET NULL"), nullable=True
    )
    service_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("services.id"), nullable=True
    )

    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    revenue: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RevenueSource.INVOICE.value
    )
    source_invoice_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True
    )
    # Idempotency key. No FK: the ledger row outlives edits to the invoice
    source_line_item_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    class_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = created_at_column()

    location: Mapped["Location | None"] = relationship("Location")


from src.modules.directory.models import Location  # noqa: E402
