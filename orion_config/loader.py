"""
Configuration Loader (``orion_config.loader``).

Responsibility
--------------
Loads a YAML configuration document and parses it into the typed
``orion_config.schema`` dataclasses.  Runtime callers go through
``orion_config.get_active_config()``; the parse functions are public so
tests can build configs from plain dicts.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Missing sections and keys fall back to the schema defaults.
* ``compute_checksum`` gives a deterministic identity for a document.
* Values of the wrong type or out of range raise ``ConfigurationError``
  naming the offending key; nothing is silently clamped.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top level or a section that is not a mapping  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from orion_config.schema import (
    DatabaseConfig,
    LoggingConfig,
    OrionConfig,
    PresentationConfig,
)
from orion_kernel.exceptions import ConfigurationError

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("<root>", f"expected a mapping in {path}, got {type(data).__name__}")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(key, f"expected a mapping, got {type(value).__name__}")
    return value


def _places(data: dict[str, Any], section: str, key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 9:
        raise ConfigurationError(f"{section}.{key}", f"expected an integer in 0..9, got {value!r}")
    return value


def parse_presentation(data: dict[str, Any]) -> PresentationConfig:
    """Parse a PresentationConfig from a dict."""
    defaults = PresentationConfig()
    currency = data.get("currency", defaults.currency)
    if not isinstance(currency, str) or len(currency) != 3 or not currency.isalpha():
        raise ConfigurationError("presentation.currency", f"expected an ISO 4217 code, got {currency!r}")
    return PresentationConfig(
        currency=currency.upper(),
        amount_places=_places(data, "presentation", "amount_places", defaults.amount_places),
        index_places=_places(data, "presentation", "index_places", defaults.index_places),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    """Parse a LoggingConfig from a dict."""
    level = str(data.get("level", LoggingConfig().level)).upper()
    if level not in _VALID_LOG_LEVELS:
        raise ConfigurationError("logging.level", f"unknown log level {level!r}")
    return LoggingConfig(level=level)


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse a DatabaseConfig from a dict."""
    defaults = DatabaseConfig()
    pool_size = data.get("pool_size", defaults.pool_size)
    if isinstance(pool_size, bool) or not isinstance(pool_size, int) or pool_size < 1:
        raise ConfigurationError("database.pool_size", f"expected a positive integer, got {pool_size!r}")
    return DatabaseConfig(
        url=data.get("url", defaults.url),
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=pool_size,
    )


def parse_config(data: dict[str, Any]) -> OrionConfig:
    """
    Parse a complete OrionConfig from a dict.

    Postconditions:
        - Returns a fully populated frozen ``OrionConfig``.
    Raises:
        ConfigurationError: if any value is invalid.
    """
    return OrionConfig(
        presentation=parse_presentation(_section(data, "presentation")),
        logging=parse_logging(_section(data, "logging")),
        database=parse_database(_section(data, "database")),
    )


def load_config(path: Path | str) -> OrionConfig:
    """Load and parse the configuration document at ``path``."""
    return parse_config(load_yaml_file(Path(path)))


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of a configuration document (sorted keys)."""
    canonical = json.dumps(data, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
