"""
Delimited-line parsing and header resolution.

The price tables come from many agencies, so the header is matched through
normalized synonyms rather than exact labels. ZERO I/O.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from arp_ingestion.domain.types import HeaderMap
from arp_ingestion.mapping.locale import remove_accents

SEMICOLON = ";"
COMMA = ","

_NON_ALNUM = re.compile(r"[^A-Z0-9]+")

ITEM_KEYS = ("ITEM",)
SPECIFICATION_KEYS = ("ESPECIFICACAO", "ESPECIFICACAO_")
UNIT_KEYS = ("UNID", "UNIDADE", "UND")
TOTAL_KEYS = ("TOTAL",)
UNIT_PRICE_KEYS = ("VALORUNITARIO", "VALOR_UNITARIO", "RS_UNIT", "R_UNIT", "R$_UNIT")
MONTHLY_PRICE_KEYS = (
    "VALORUNITARIOMENSAL",
    "VALOR_UNITARIO_MENSAL",
    "RS_UNIT_MENSAL",
    "R_UNIT_MENSAL",
    "R$_UNIT_MENSAL",
)


def detect_delimiter(header_line: str) -> str:
    """Semicolon unless the header has strictly more commas."""
    return SEMICOLON if header_line.count(";") >= header_line.count(",") else COMMA


def parse_line(line: str, delimiter: str) -> list[str]:
    """Split one line honoring double quotes ("" inside quotes is a quote)."""
    out: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            out.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    out.append("".join(current))
    return [value.strip() for value in out]


def normalize_header(header: str) -> str:
    """Accent-free uppercase key: "Especificação " becomes ESPECIFICACAO."""
    upper = remove_accents(header).upper()
    return _NON_ALNUM.sub("_", upper).strip("_")


def map_headers(headers: Sequence[str]) -> HeaderMap | None:
    """Resolve column indexes; None when a required column is missing.

    When two columns normalize to the same key the last one wins.
    """
    index_by_key = {normalize_header(h): idx for idx, h in enumerate(headers)}

    def pick(keys: tuple[str, ...]) -> int | None:
        for key in keys:
            if key in index_by_key:
                return index_by_key[key]
        return None

    item = pick(ITEM_KEYS)
    specification = pick(SPECIFICATION_KEYS)
    unit = pick(UNIT_KEYS)
    total = pick(TOTAL_KEYS)
    unit_price = pick(UNIT_PRICE_KEYS)
    if item is None or specification is None or unit is None or total is None or unit_price is None:
        return None
    return HeaderMap(
        item=item,
        specification=specification,
        unit=unit,
        total=total,
        unit_price=unit_price,
        monthly_price=pick(MONTHLY_PRICE_KEYS),
    )


def missing_columns(headers: Sequence[str]) -> tuple[str, ...]:
    """Names of the required columns that could not be resolved."""
    keys = {normalize_header(h) for h in headers}
    required = (
        ("Item", ITEM_KEYS),
        ("Especificacao", SPECIFICATION_KEYS),
        ("Unid", UNIT_KEYS),
        ("Total", TOTAL_KEYS),
        ("ValorUnitario", UNIT_PRICE_KEYS),
    )
    return tuple(label for label, synonyms in required if not keys.intersection(synonyms))


def normalize_newlines(text: str) -> str:
    """CRLF and lone CR become LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_lines(text: str) -> list[str]:
    """Trimmed, non-empty lines of ``text``."""
    return [line.strip() for line in normalize_newlines(text).split("\n") if line.strip()]
