"""
Settings Loader (``arp_config.loader``).

Responsibility
--------------
Loads the YAML settings file and parses it into the typed
``arp_config.schema`` dataclasses.  Runtime callers go through
``arp_config.get_active_settings()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range values (chunk size < 1, unknown import mode or log level,
  non-boolean ``only_valid``)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from arp_config.schema import ArpSettings, ImportSettings, LoggingSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Settings section {key!r} must be a mapping, got {type(value).__name__}")
    return value


def _boolean(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"Setting {key!r} must be true or false, got {value!r}")
    return value


def parse_import_settings(data: dict[str, Any]) -> ImportSettings:
    defaults = ImportSettings()
    return ImportSettings(
        chunk_size=int(data.get("chunk_size", defaults.chunk_size)),
        default_mode=str(data.get("default_mode", defaults.default_mode)).strip().upper(),
        only_valid=_boolean(data, "only_valid", defaults.only_valid),
        template_filename=str(data.get("template_filename", defaults.template_filename)),
        error_report_filename=str(data.get("error_report_filename", defaults.error_report_filename)),
    )


def parse_logging_settings(data: dict[str, Any]) -> LoggingSettings:
    return LoggingSettings(level=str(data.get("level", LoggingSettings().level)).upper())


def parse_settings(data: dict[str, Any], source_path: str | None = None) -> ArpSettings:
    """
    Parse the whole settings document.  Absent sections or keys keep
    their defaults.
    """
    return ArpSettings(
        import_settings=parse_import_settings(_section(data, "import")),
        logging=parse_logging_settings(_section(data, "logging")),
        checksum=compute_checksum(data),
        source_path=source_path,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization (sorted keys)."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
