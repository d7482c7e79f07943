"""Schemas for Invoices module."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from src.modules.invoices.models import InvoiceStatus
from src.shared.schemas import BaseSchema


# --- Invoice Line Item Schemas ---


class InvoiceLineItemCreate(BaseModel):
    """Schema for creating an invoice line item."""

    description: str = Field(..., min_length=1, max_length=255)
    enrollment_id: int | None = None
    # Nullable: the store accepts unpriced lines, they are never recognized
    amount: Decimal | None = None


class InvoiceLineItemResponse(BaseSchema):
    """Schema for invoice line item response."""

    id: int
    invoice_id: int
    enrollment_id: int | None
    description: str
    amount: Decimal | None


# --- Invoice Schemas ---


class InvoiceCreate(BaseModel):
    """
    Schema for creating an invoice.

    `status` may be `paid` for historical imports that bypass the
    draft -> sent -> paid lifecycle.
    """

    family_id: int
    status: InvoiceStatus = InvoiceStatus.DRAFT
    invoice_date: date
    period_start: date | None = None
    period_end: date | None = None
    due_date: date | None = None
    notes: str | None = None
    line_items: list[InvoiceLineItemCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_period(self) -> "InvoiceCreate":
        if self.period_start and self.period_end and self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class InvoiceStatusUpdate(BaseModel):
    """Schema for changing invoice status."""

    status: InvoiceStatus


class InvoiceResponse(BaseSchema):
    """Schema for invoice response."""

    id: int
    family_id: int
    status: str
    invoice_date: date
    period_start: date | None
    period_end: date | None
    due_date: date | None
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    notes: str | None
    line_items: list[InvoiceLineItemResponse] = Field(default_factory=list)
    revenue_records_created: int | None = None


# --- Payments ---


class PaymentCreate(BaseModel):
    """Schema for recording a payment against an invoice."""

    amount: Decimal = Field(..., gt=0)
    payment_date: date
    payment_method: str | None = Field(None, max_length=50)
    reference: str | None = Field(None, max_length=100)
    notes: str | None = None
