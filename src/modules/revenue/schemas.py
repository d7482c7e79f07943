"""Schemas for Revenue module."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from src.shared.schemas import BaseSchema


class RevenueRecordFilters(BaseModel):
    """Filters for listing revenue records."""

    invoice_id: int | None = None
    family_id: int | None = None
    location_id: int | None = None
    date_from: date | None = None  # period_start >= date_from
    date_to: date | None = None  # period_start <= date_to
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=500)


class RevenueRecordResponse(BaseSchema):
    """Schema for revenue record response."""

    id: int
    family_id: int
    student_id: int | None
    service_id: int | None
    period_start: date
    period_end: date
    revenue: Decimal
    source: str
    source_invoice_id: int | None
    source_line_item_id: int | None
    class_title: str | None
    location_id: int | None


class LocationRevenue(BaseSchema):
    """Revenue total for one location (None = unassigned)."""

    location_id: int | None
    location_code: str | None
    location_name: str
    revenue: Decimal
    record_count: int


class BackfillRequest(BaseModel):
    """Recognize revenue for invoices that are already paid."""

    since: date | None = None
    family_id: int | None = None


class BackfillResponse(BaseSchema):
    invoices_checked: int
    invoices_skipped: int
    records_created: int
    duplicates_ignored: int
    cutoff: date
