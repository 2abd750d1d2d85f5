"""
Values -- Decimal helpers shared by the balance ledger and the import pipeline.

Responsibility:
    Central place for the rounding rule (two places, half away from zero),
    number coercion, and the numeric-aware item-number sort key.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Quantities and prices are ``Decimal``; floats are converted through
      ``str()`` so that 0.1 stays 0.1.
    - ``round2`` uses ROUND_HALF_UP, which on Decimal rounds half away from
      zero for negative values too.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")
NAN = Decimal("NaN")

_DIGIT_RUNS = re.compile(r"(\d+)")


def to_decimal(value: Any) -> Decimal:
    """Coerce int / str / float / Decimal to Decimal.

    Raises:
        ValueError: if ``value`` cannot be represented as a number.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid numeric value: {value!r}") from e
    raise ValueError(f"Invalid numeric value: {value!r}")


def round2(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    if not value.is_finite():
        return value
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def is_finite_number(value: Any) -> bool:
    """True for a finite Decimal (NaN and infinities are validation failures)."""
    return isinstance(value, Decimal) and value.is_finite()


def item_number_key(item_number: str) -> tuple[tuple[int, int, str], ...]:
    """Sort key comparing digit runs numerically ("1.10" sorts after "1.9")."""
    parts: list[tuple[int, int, str]] = []
    for chunk in _DIGIT_RUNS.split((item_number or "").strip()):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((0, int(chunk), chunk))
        else:
            parts.append((1, 0, chunk.casefold()))
    return tuple(parts)
