"""Mapping: line splitting, header resolution, locale parsing and row decoding."""

from arp_ingestion.mapping.engine import decode_row
from arp_ingestion.mapping.header import (
    detect_delimiter,
    map_headers,
    missing_columns,
    normalize_header,
    normalize_newlines,
    parse_line,
    split_lines,
)
from arp_ingestion.mapping.locale import (
    commercial_name_from_specification,
    normalize_unit,
    parse_locale_number,
    remove_accents,
)

__all__ = [
    "commercial_name_from_specification",
    "decode_row",
    "detect_delimiter",
    "map_headers",
    "missing_columns",
    "normalize_header",
    "normalize_newlines",
    "normalize_unit",
    "parse_line",
    "parse_locale_number",
    "remove_accents",
    "split_lines",
]
