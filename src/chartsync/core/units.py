"""Fixed-point conversion of raw measurements.

Snapshots only hold integers, so fractional values are multiplied by a
per-family precision and truncated toward zero. The multiplication is done
on the decimal form of the value, so ``0.57 * 100`` is ``57`` and not
``56``.
"""

from __future__ import annotations

from decimal import Decimal, DecimalException

MILLI = 1000
MICRO = 1_000_000
MIB = 1024 * 1024
KIB = 1024

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def to_fixed(value: float | int | str | Decimal, mul: int = 1) -> int | None:
    """Scale *value* by *mul* and truncate.

    Returns None for values that are not finite numbers (NaN, +Inf, "N/A")
    and for results that do not fit a signed 64-bit integer.
    """
    if isinstance(value, bool):
        value = int(value)
    try:
        if isinstance(value, Decimal):
            dec = value
        else:
            dec = Decimal(value.strip() if isinstance(value, str) else str(value))
        if not dec.is_finite():
            return None
        scaled = dec * mul
        # more than 19 integer digits never fits
        if scaled.adjusted() > 18:
            return None
        fixed = int(scaled)
    except DecimalException:
        return None
    if not INT64_MIN <= fixed <= INT64_MAX:
        return None
    return fixed


def parse_quantity(text: str, mul: int = 1) -> int | None:
    """Parse a number that may carry a trailing unit, e.g. ``"26.16 W"``."""
    text = text.strip()
    if not text:
        return None
    number = text.split()[0].rstrip("%")
    return to_fixed(number, mul)
