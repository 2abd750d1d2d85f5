"""File adapters for the catalog import (file I/O only)."""

from arp_ingestion.adapters.csv_adapter import (
    error_report_csv,
    read_import_text,
    split_lines,
    template_csv,
    write_error_report,
    write_template,
)

__all__ = [
    "error_report_csv",
    "read_import_text",
    "split_lines",
    "template_csv",
    "write_error_report",
    "write_template",
]
