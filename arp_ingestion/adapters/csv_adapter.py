"""
CSV file adapter for the catalog import.

Reads import files as text (BOM stripped via utf-8-sig, newlines
normalized) and writes the two generated artifacts: the blank template and
the per-field error report. Uses the csv module for quoting.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from pathlib import Path

from arp_config.schema import ImportSettings
from arp_ingestion.domain.types import RowError
from arp_ingestion.mapping.header import normalize_newlines, split_lines

TEMPLATE_HEADER = ("Item", "Especificacao", "Unid", "Total", "ValorUnitario")
ERROR_REPORT_HEADER = ("Linha", "Campo", "Motivo")
DELIMITER = ";"


def read_import_text(path: Path, encoding: str = "utf-8") -> str:
    """Whole file as text with LF newlines."""
    if encoding.lower() == "utf-8":
        encoding = "utf-8-sig"  # Strip BOM if present
    with Path(path).open("r", encoding=encoding, newline="") as f:
        return normalize_newlines(f.read())


def _render(rows: Iterable[Iterable[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=DELIMITER, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def template_csv() -> str:
    """Header-only model file: ``Item;Especificacao;Unid;Total;ValorUnitario``."""
    return _render([TEMPLATE_HEADER])


def error_report_csv(errors: Iterable[RowError]) -> str:
    """``Linha;Campo;Motivo`` report, one row per field error, grouped by line number."""
    by_line: dict[int, list[RowError]] = {}
    for err in errors:
        by_line.setdefault(err.line_number, []).append(err)
    rows: list[tuple[str, str, str]] = [ERROR_REPORT_HEADER]
    for line_number in sorted(by_line):
        for err in by_line[line_number]:
            rows.append((str(line_number), err.field, err.message))
    return _render(rows)


def _target(path: Path, filename: str) -> Path:
    """A directory receives the configured file name; a file path is used as is."""
    path = Path(path)
    return path / filename if path.is_dir() else path


def _write_text(path: Path, content: str) -> Path:
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(content)
    return path


def write_template(path: Path, settings: ImportSettings | None = None) -> Path:
    settings = settings or ImportSettings()
    return _write_text(_target(path, settings.template_filename), template_csv())


def write_error_report(
    path: Path,
    errors: Iterable[RowError],
    settings: ImportSettings | None = None,
) -> Path:
    settings = settings or ImportSettings()
    return _write_text(_target(path, settings.error_report_filename), error_report_csv(errors))


__all__ = [
    "ERROR_REPORT_HEADER",
    "TEMPLATE_HEADER",
    "error_report_csv",
    "read_import_text",
    "split_lines",
    "template_csv",
    "write_error_report",
    "write_template",
]
