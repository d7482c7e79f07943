from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

CENT = Decimal("0.01")


def round_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """
    Round a monetary value to cents, half up.

    Floats go through str() first so 10.125 rounds as written:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money("120")
        Decimal('120.00')
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Union[Decimal, float, int, str, None]]) -> Decimal:
    """Sum amounts, ignoring None (unpriced lines)."""
    return round_money(sum((Decimal(str(v)) for v in values if v is not None), Decimal("0")))
