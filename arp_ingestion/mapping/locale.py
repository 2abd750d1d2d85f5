"""
Locale-aware text helpers for Brazilian price tables.

Pure functions: number parsing ("30.445,10" -> 30445.10), accent removal,
unit normalization and the commercial-name heuristic. ZERO I/O.
"""

from __future__ import annotations

import re
import unicodedata
from decimal import Decimal, InvalidOperation

from arp_kernel.domain.values import NAN

_CURRENCY_PREFIX = re.compile(r"R\$\s?", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_PLAIN_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

UNIT_SYNONYMS = frozenset({"UNID", "UND", "UNIDADE"})
CANONICAL_UNIT = "UNID"

_CONFORME_MARKER = ", CONFORME"


def remove_accents(text: str | None) -> str:
    """Strip diacritics, collapse whitespace runs to one space and trim."""
    decomposed = unicodedata.normalize("NFD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped).strip()


def parse_locale_number(raw: str | None) -> Decimal:
    """
    Parse a number written the Brazilian way.

    "R$ 30.445,10" -> Decimal("30445.10"); "2,0" -> Decimal("2.0");
    "12.5" -> Decimal("12.5").  Returns Decimal("NaN") for empty or
    unparseable input; callers test ``is_finite()``.
    """
    s = (raw or "").replace("\u00a0", " ")
    s = _CURRENCY_PREFIX.sub("", s)
    s = _WHITESPACE.sub("", s)
    if not s:
        return NAN

    has_comma = "," in s
    has_dot = "." in s
    if has_comma and has_dot:
        s = s.replace(".", "").replace(",", ".")
    elif has_comma:
        s = s.replace(",", ".")

    if not _PLAIN_NUMBER.match(s):
        return NAN
    try:
        return Decimal(s)
    except InvalidOperation:
        return NAN


def normalize_unit(raw: str | None) -> str:
    """UNID / UND / UNIDADE (any case, dots ignored) collapse to UNID."""
    unit = remove_accents(raw).upper().replace(".", "").strip()
    if not unit:
        return ""
    if unit in UNIT_SYNONYMS:
        return CANONICAL_UNIT
    return unit


def commercial_name_from_specification(specification: str | None) -> str:
    """
    Short commercial name taken from the head of a long specification.

    Cuts at the first ", CONFORME" (case-insensitive) when it is not at the
    very start, otherwise at the first comma.
    """
    raw = (specification or "").strip()
    idx = raw.upper().find(_CONFORME_MARKER)
    cut = raw[:idx] if idx > 0 else raw.split(",")[0]
    return _WHITESPACE.sub(" ", cut).strip()
