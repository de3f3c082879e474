from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

TAX_RATE = Decimal("0.22")
MONEY_TOLERANCE = Decimal("0.01")
CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    # floats go through str() so binary noise never reaches the ledger
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable) -> Decimal:
    return quantize_money(sum((to_decimal(value) for value in values), ZERO))


def within_tolerance(left, right, tolerance: Decimal = MONEY_TOLERANCE) -> bool:
    return abs(to_decimal(left) - to_decimal(right)) < tolerance


def format_money(value) -> str:
    return format(quantize_money(value), "f")
