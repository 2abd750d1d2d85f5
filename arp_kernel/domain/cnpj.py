"""CNPJ (Brazilian company tax id) helpers: normalization, check digits, display."""

from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"\D")

_FIRST_WEIGHTS = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_SECOND_WEIGHTS = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def digits_only(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


def is_repeated_digits(cnpj: str) -> bool:
    """True for 14 identical digits (e.g. 00000000000000), which pass mod-11 but are invalid."""
    d = digits_only(cnpj)
    return len(d) == 14 and len(set(d)) == 1


def _check_digit(base: str, weights: tuple[int, ...]) -> int:
    total = sum(int(digit) * weight for digit, weight in zip(base, weights))
    mod = total % 11
    return 0 if mod < 2 else 11 - mod


def is_valid_cnpj(value: str | None) -> bool:
    d = digits_only(value)
    if len(d) != 14 or is_repeated_digits(d):
        return False
    base = d[:12]
    dv1 = _check_digit(base, _FIRST_WEIGHTS)
    dv2 = _check_digit(base + str(dv1), _SECOND_WEIGHTS)
    return d == f"{base}{dv1}{dv2}"


def format_cnpj(value: str | None) -> str:
    """Format as 00.000.000/0000-00; partial input is formatted progressively."""
    d = digits_only(value)[:14]
    if len(d) <= 2:
        return d
    if len(d) <= 5:
        return f"{d[:2]}.{d[2:]}"
    if len(d) <= 8:
        return f"{d[:2]}.{d[2:5]}.{d[5:]}"
    if len(d) <= 12:
        return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:]}"
    return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"
