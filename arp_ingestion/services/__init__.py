"""Catalog import services (decode, gate, apply)."""

from arp_ingestion.services.import_service import (
    EMPTY_IMPORT_MESSAGE,
    HEADER_ERROR_MESSAGE,
    ImportService,
    progress_percent,
)

__all__ = [
    "EMPTY_IMPORT_MESSAGE",
    "HEADER_ERROR_MESSAGE",
    "ImportService",
    "progress_percent",
]
