from decimal import Decimal

from src.shared.utils.money import round_money, sum_money


class TestRoundMoney:
    """Tests for round_money function."""

    def test_round_half_up(self):
        assert round_money(10.125) == Decimal("10.13")
        assert round_money(10.124) == Decimal("10.12")
        assert round_money(10.115) == Decimal("10.12")

    def test_from_decimal_and_string(self):
        assert round_money(Decimal("99.999")) == Decimal("100.00")
        assert round_money("0.001") == Decimal("0.00")

    def test_precision(self):
        """Result always has 2 decimal places."""
        assert str(round_money(120)) == "120.00"
        assert str(round_money(10.1)) == "10.10"


class TestSumMoney:
    """Tests for sum_money function."""

    def test_ignores_none(self):
        assert sum_money([Decimal("100.00"), None, Decimal("20.50")]) == Decimal("120.50")

    def test_empty(self):
        assert sum_money([]) == Decimal("0.00")
