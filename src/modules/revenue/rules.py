"""
Revenue recognition rules.

Pure functions over plain snapshots of an invoice and its line items. No database
access here: the handlers in service.py load the facts and write the result.

Rules, in order:
1. The invoice must be `paid` now and must not have been `paid` before.
2. The invoice date must be on or after the historical cutoff.
3. Per line item: amount must be present and > 0. Failing items are dropped,
   the rest of the invoice is still recognized.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any, Iterable

from src.modules.directory.service import LocationTable
from src.modules.invoices.models import InvoiceStatus
from src.modules.revenue.models import RevenueSource
from src.shared.utils.money import round_money


class SkipReason(StrEnum):
    """Why an invoice produced no revenue records."""

    NOT_PAID = "not_paid"
    ALREADY_PAID = "already_paid"
    BEFORE_CUTOFF = "before_cutoff"


@dataclass(frozen=True)
class InvoiceFacts:
    id: int
    family_id: int
    status: str
    invoice_date: date
    period_start: date | None = None
    period_end: date | None = None
    due_date: date | None = None

    @classmethod
    def from_model(cls, invoice: Any) -> "InvoiceFacts":
        return cls(
            id=invoice.id,
            family_id=invoice.family_id,
            status=invoice.status,
            invoice_date=invoice.invoice_date,
            period_start=invoice.period_start,
            period_end=invoice.period_end,
            due_date=invoice.due_date,
        )


@dataclass(frozen=True)
class LineItemFacts:
    """A line item with its enrollment/service context already joined in."""

    id: int
    amount: Decimal | None
    enrollment_id: int | None = None
    student_id: int | None = None
    service_id: int | None = None
    service_code: str | None = None
    class_title: str | None = None


@dataclass(frozen=True)
class RevenueCandidate:
    family_id: int
    student_id: int | None
    service_id: int | None
    period_start: date
    period_end: date
    revenue: Decimal
    source_invoice_id: int
    source_line_item_id: int
    class_title: str | None
    location_id: int | None
    source: str = RevenueSource.INVOICE.value

    def as_row(self) -> dict[str, Any]:
        return {
            "family_id": self.family_id,
            "student_id": self.student_id,
            "service_id": self.service_id,
            "period_start": self.period_start,
            "period_end": self.period_end,
            "revenue": self.revenue,
            "source": self.source,
            "source_invoice_id": self.source_invoice_id,
            "source_line_item_id": self.source_line_item_id,
            "class_title": self.class_title,
            "location_id": self.location_id,
        }


@dataclass(frozen=True)
class RecognitionDecision:
    skip_reason: SkipReason | None = None
    candidates: tuple[RevenueCandidate, ...] = field(default_factory=tuple)

    @property
    def eligible(self) -> bool:
        return self.skip_reason is None


def check_invoice_eligibility(
    invoice: InvoiceFacts, *, was_paid: bool, cutoff: date
) -> SkipReason | None:
    """
    Invoice-level rules 1 and 2.

    `was_paid` is the only input that differs between the two triggering paths:
    always False for a freshly inserted invoice, `previous_status == paid` for a
    status change.
    """
    if invoice.status != InvoiceStatus.PAID.value:
        return SkipReason.NOT_PAID
    if was_paid:
        return SkipReason.ALREADY_PAID
    if invoice.invoice_date < cutoff:
        return SkipReason.BEFORE_CUTOFF
    return None


def is_line_item_eligible(line_item: LineItemFacts) -> bool:
    return line_item.amount is not None and line_item.amount > 0


def derive_period(invoice: InvoiceFacts) -> tuple[date, date]:
    """First non-null wins: start falls back to invoice_date, end to due_date then invoice_date."""
    period_start = invoice.period_start or invoice.invoice_date
    period_end = invoice.period_end or invoice.due_date or invoice.invoice_date
    return period_start, period_end


def build_candidate(
    invoice: InvoiceFacts,
    line_item: LineItemFacts,
    locations: LocationTable,
) -> RevenueCandidate:
    period_start, period_end = derive_period(invoice)
    return RevenueCandidate(
        family_id=invoice.family_id,
        student_id=line_item.student_id,
        service_id=line_item.service_id,
        period_start=period_start,
        period_end=period_end,
        revenue=round_money(line_item.amount),
        source_invoice_id=invoice.id,
        source_line_item_id=line_item.id,
        class_title=line_item.class_title,
        location_id=locations.resolve(line_item.service_code, line_item.class_title),
    )


def evaluate_invoice(
    invoice: InvoiceFacts,
    line_items: Iterable[LineItemFacts],
    *,
    was_paid: bool,
    cutoff: date,
    locations: LocationTable,
) -> RecognitionDecision:
    """Compute the revenue records an invoice should produce."""
    skip_reason = check_invoice_eligibility(invoice, was_paid=was_paid, cutoff=cutoff)
    if skip_reason is not None:
        return RecognitionDecision(skip_reason=skip_reason)

    candidates = tuple(
        build_candidate(invoice, line_item, locations)
        for line_item in line_items
        if is_line_item_eligible(line_item)
    )
    return RecognitionDecision(candidates=candidates)
