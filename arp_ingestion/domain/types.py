"""
arp_ingestion.domain.types -- Pure frozen dataclasses for the catalog import.

ZERO I/O. Imports only from arp_kernel/domain/.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from arp_kernel.domain.entities import CatalogItem


# =============================================================================
# Modes
# =============================================================================


class ImportMode(str, Enum):
    """How decoded rows are merged with the items already in the lot."""

    UPSERT = "UPSERT"  # Overwrite matching item numbers, insert the rest
    INSERT_ONLY = "INSERT_ONLY"  # Ignore matching item numbers, insert the rest
    REPLACE_ALL = "REPLACE_ALL"  # Discard existing items, insert every row


# =============================================================================
# Header and rows
# =============================================================================


@dataclass(frozen=True)
class HeaderMap:
    """Column index of each logical field; ``monthly_price`` is optional."""

    item: int
    specification: int
    unit: int
    total: int
    unit_price: int
    monthly_price: int | None = None


@dataclass(frozen=True)
class CandidateRow:
    """A data line that passed every field rule."""

    line_number: int  # 1-based, header is line 1
    item_number: str
    specification: str
    unit: str
    total: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class RowError:
    """One failed field of one data line."""

    line_number: int
    field: str  # Column label as shown to the user (Item, Total, ...)
    message: str
    code: str = "INVALID_FIELD"


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ImportStats:
    inserted: int = 0
    updated: int = 0
    ignored: int = 0


@dataclass(frozen=True)
class ReconcileResult:
    """Full next item list of the lot plus counters."""

    items: tuple[CatalogItem, ...]
    stats: ImportStats


@dataclass(frozen=True)
class DecodeProgress:
    """Emitted after each decoded chunk."""

    lines_done: int
    lines_total: int
    percent: int  # 0..100


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of decoding one import text.

    ``header_error`` is set (and rows/errors are empty) when the text is too
    short or the header does not resolve the required columns.
    """

    rows: tuple[CandidateRow, ...] = ()
    errors: tuple[RowError, ...] = ()
    header_error: str | None = None
    header_error_code: str | None = None
    headers: tuple[str, ...] = ()
    lines_read: int = 0  # Non-empty data lines, header excluded
    existing_matches: int = 0  # Valid rows whose item number already exists
    delimiter: str = ";"

    @property
    def valid_count(self) -> int:
        return len(self.rows)

    @property
    def invalid_lines(self) -> int:
        return len({e.line_number for e in self.errors})

    @property
    def has_header_error(self) -> bool:
        return self.header_error is not None

    def errors_by_line(self) -> dict[int, tuple[RowError, ...]]:
        grouped: dict[int, list[RowError]] = {}
        for err in self.errors:
            grouped.setdefault(err.line_number, []).append(err)
        return {line: tuple(errs) for line, errs in grouped.items()}

    def is_blocking(self, only_valid: bool) -> bool:
        return self.has_header_error or (not only_valid and self.invalid_lines > 0)
