"""
arp_config -- single public entrypoint for runtime settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  YAML loading is internal tooling.

Architecture position:
    Configuration -- YAML-driven settings.  Sits above ``arp_kernel`` (it
    hands the log level to ``configure_logging``); the kernel and engines
    MUST NEVER import from ``arp_config``.  The import service receives an
    ``ImportSettings`` instance from its caller.

Failure modes:
    - ``FileNotFoundError`` -- explicit settings path does not exist.
    - ``ValueError`` -- out-of-range values.

Audit relevance:
    Every successful ``get_active_settings()`` call emits an
    ``ARP_CONFIG_TRACE`` log entry with the source path and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from arp_config.loader import load_yaml_file, parse_settings
from arp_config.schema import ArpSettings, ImportSettings, LoggingSettings
from arp_kernel.logging_config import configure_logging

_logger = logging.getLogger("arp_kernel.config")

_DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_settings(config_path: Path | None = None) -> ArpSettings:
    """The ONLY public settings entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            ``arp_config/defaults.yaml``.

    Returns:
        A frozen ``ArpSettings``.  Not cached; callers hold on to it.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_SETTINGS_PATH
    data = load_yaml_file(path)
    settings = parse_settings(data, source_path=str(path))

    _logger.info(
        "ARP_CONFIG_TRACE",
        extra={
            "trace_type": "ARP_CONFIG_TRACE",
            "source_path": settings.source_path,
            "checksum": settings.checksum,
            "chunk_size": settings.import_settings.chunk_size,
            "default_mode": settings.import_settings.default_mode,
            "only_valid": settings.import_settings.only_valid,
        },
    )
    return settings


def apply_logging_settings(settings: ArpSettings, **handler_options) -> None:
    """Configure the arp_kernel loggers at the level named in ``settings``.

    ``handler_options`` (``stream`` or ``handler``) are passed through to
    ``configure_logging``, which only acts on its first call.
    """
    configure_logging(level=settings.logging.level, **handler_options)


__all__ = [
    "ArpSettings",
    "ImportSettings",
    "LoggingSettings",
    "apply_logging_settings",
    "get_active_settings",
]
