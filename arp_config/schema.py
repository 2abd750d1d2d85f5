"""
Settings schema (``arp_config.schema``).

Frozen dataclasses describing the runtime settings of the catalog import
and of logging.  Defaults here are the values used when a key is absent
from the YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass, field

IMPORT_MODES = ("UPSERT", "INSERT_ONLY", "REPLACE_ALL")


@dataclass(frozen=True)
class ImportSettings:
    """Catalog import behaviour."""

    chunk_size: int = 500
    default_mode: str = "UPSERT"
    only_valid: bool = True
    template_filename: str = "modelo_itens.csv"
    error_report_filename: str = "import_erros.csv"

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"import.chunk_size must be >= 1, got {self.chunk_size}")
        if self.default_mode not in IMPORT_MODES:
            raise ValueError(
                f"import.default_mode must be one of {', '.join(IMPORT_MODES)}, "
                f"got {self.default_mode!r}"
            )


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LoggingSettings:
    """Level of the arp_kernel logger hierarchy."""

    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level not in LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {self.level!r}"
            )


@dataclass(frozen=True)
class ArpSettings:
    """Root settings object returned by ``get_active_settings``."""

    import_settings: ImportSettings = field(default_factory=ImportSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    checksum: str = ""
    source_path: str | None = None
