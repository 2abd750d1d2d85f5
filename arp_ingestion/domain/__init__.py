"""
arp_ingestion.domain -- Pure types and validators for the catalog import.

ZERO I/O. Imports only from arp_kernel/domain/.
"""

from arp_ingestion.domain.types import (
    CandidateRow,
    DecodeProgress,
    DecodeResult,
    HeaderMap,
    ImportMode,
    ImportStats,
    ReconcileResult,
    RowError,
)

__all__ = [
    "CandidateRow",
    "DecodeProgress",
    "DecodeResult",
    "HeaderMap",
    "ImportMode",
    "ImportStats",
    "ReconcileResult",
    "RowError",
]
