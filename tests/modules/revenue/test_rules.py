"""Tests for the pure revenue recognition rules."""

from datetime import date
from decimal import Decimal

from src.modules.directory.service import LocationTable
from src.modules.revenue.rules import (
    InvoiceFacts,
    LineItemFacts,
    SkipReason,
    check_invoice_eligibility,
    derive_period,
    evaluate_invoice,
    is_line_item_eligible,
)

CUTOFF = date(2026, 1, 1)
LOCATIONS = LocationTable(
    location_ids={"kendall": 10, "remote": 30},
    service_locations={"learning_pod": "kendall"},
)


def _invoice(**overrides) -> InvoiceFacts:
    defaults = dict(
        id=1,
        family_id=7,
        status="paid",
        invoice_date=date(2026, 2, 1),
        period_start=date(2026, 2, 1),
        period_end=date(2026, 2, 28),
        due_date=date(2026, 2, 15),
    )
    defaults.update(overrides)
    return InvoiceFacts(**defaults)


def _line(id: int, amount, **overrides) -> LineItemFacts:
    return LineItemFacts(id=id, amount=amount, **overrides)


class TestInvoiceEligibility:
    def test_newly_paid_after_cutoff(self):
        assert check_invoice_eligibility(_invoice(), was_paid=False, cutoff=CUTOFF) is None

    def test_not_paid(self):
        for status in ("draft", "sent", "partial", "overdue", "void"):
            reason = check_invoice_eligibility(
                _invoice(status=status), was_paid=False, cutoff=CUTOFF
            )
            assert reason == SkipReason.NOT_PAID

    def test_paid_to_paid_is_skipped(self):
        reason = check_invoice_eligibility(_invoice(), was_paid=True, cutoff=CUTOFF)
        assert reason == SkipReason.ALREADY_PAID

    def test_before_cutoff(self):
        reason = check_invoice_eligibility(
            _invoice(invoice_date=date(2025, 12, 31)), was_paid=False, cutoff=CUTOFF
        )
        assert reason == SkipReason.BEFORE_CUTOFF

    def test_cutoff_day_is_included(self):
        assert (
            check_invoice_eligibility(_invoice(invoice_date=CUTOFF), was_paid=False, cutoff=CUTOFF)
            is None
        )


class TestLineItemEligibility:
    def test_positive_amount(self):
        assert is_line_item_eligible(_line(1, Decimal("0.01")))

    def test_zero_negative_or_missing(self):
        assert not is_line_item_eligible(_line(1, Decimal("0")))
        assert not is_line_item_eligible(_line(1, Decimal("-5.00")))
        assert not is_line_item_eligible(_line(1, None))


class TestDerivePeriod:
    def test_explicit_period(self):
        assert derive_period(_invoice()) == (date(2026, 2, 1), date(2026, 2, 28))

    def test_falls_back_to_due_date_then_invoice_date(self):
        invoice = _invoice(
            invoice_date=date(2026, 3, 1),
            period_start=None,
            period_end=None,
            due_date=date(2026, 3, 15),
        )
        assert derive_period(invoice) == (date(2026, 3, 1), date(2026, 3, 15))

        invoice = _invoice(
            invoice_date=date(2026, 3, 1), period_start=None, period_end=None, due_date=None
        )
        assert derive_period(invoice) == (date(2026, 3, 1), date(2026, 3, 1))


class TestEvaluateInvoice:
    def test_one_candidate_per_eligible_line(self):
        lines = [
            _line(101, Decimal("120.00"), enrollment_id=5, student_id=3, service_id=2,
                  service_code="learning_pod"),
            _line(102, Decimal("0.00")),
            _line(103, Decimal("45.50")),
        ]
        decision = evaluate_invoice(
            _invoice(), lines, was_paid=False, cutoff=CUTOFF, locations=LOCATIONS
        )

        assert decision.eligible
        assert [c.source_line_item_id for c in decision.candidates] == [101, 103]

        first = decision.candidates[0]
        assert first.revenue == Decimal("120.00")
        assert first.family_id == 7
        assert first.student_id == 3
        assert first.service_id == 2
        assert first.location_id == 10
        assert first.source == "invoice"
        assert first.source_invoice_id == 1
        assert (first.period_start, first.period_end) == (date(2026, 2, 1), date(2026, 2, 28))

        # No enrollment context: fields stay empty
        second = decision.candidates[1]
        assert second.student_id is None
        assert second.service_id is None
        assert second.location_id is None

    def test_skipped_invoice_has_no_candidates(self):
        decision = evaluate_invoice(
            _invoice(invoice_date=date(2025, 6, 1)),
            [_line(1, Decimal("100.00"))],
            was_paid=False,
            cutoff=CUTOFF,
            locations=LOCATIONS,
        )
        assert not decision.eligible
        assert decision.skip_reason == SkipReason.BEFORE_CUTOFF
        assert decision.candidates == ()

    def test_all_lines_ineligible(self):
        decision = evaluate_invoice(
            _invoice(),
            [_line(1, None), _line(2, Decimal("0"))],
            was_paid=False,
            cutoff=CUTOFF,
            locations=LOCATIONS,
        )
        assert decision.eligible
        assert decision.candidates == ()

    def test_candidate_row_matches_ledger_columns(self):
        decision = evaluate_invoice(
            _invoice(),
            [_line(1, Decimal("10.005"), class_title="Chess Club")],
            was_paid=False,
            cutoff=CUTOFF,
            locations=LOCATIONS,
        )
        row = decision.candidates[0].as_row()
        assert row["revenue"] == Decimal("10.01")
        assert row["class_title"] == "Chess Club"
        assert row["source_line_item_id"] == 1
        assert "id" not in row
