# kafala/services/money.py

"""
MONEY HELPERS

HARD RULES:
- Money is Decimal, never float.
- Every division point rounds ROUND_HALF_UP to the smallest currency unit (0.01).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """
    Normalize any numeric input (Decimal, int, str, float) to a 2-place Decimal.
    None / "" are treated as zero.
    """
    if value is None or value == "":
        return ZERO

    if isinstance(value, bool):
        raise ValueError("money value must be numeric, not bool")

    try:
        d = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid money value: {value!r}") from exc

    if not d.is_finite():
        raise ValueError(f"Invalid money value: {value!r}")

    return d.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def split(total, parts: int) -> Decimal:
    """
    Equal share of `total` over `parts`, rounded half-up to 0.01.
    """
    parts = int(parts)
    if parts <= 0:
        raise ValueError("parts must be >= 1")
    return money(money(total) / Decimal(parts))
