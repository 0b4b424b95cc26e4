"""
orion_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration.  Sits above ``orion_kernel`` and below
    ``orion_services``.  The kernel and engines MUST NEVER import from
    ``orion_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Precedence: explicit path argument, then ``ORION_CONFIG``, then
      schema defaults.  ``ORION_DATABASE_URL`` overrides ``database.url``
      regardless of source.

Failure modes:
    - ``FileNotFoundError`` -- the configured path does not exist.
    - ``ConfigurationError`` -- a value fails validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``ORION_CONFIG_TRACE`` log entry with the source and checksum of the
    document that was loaded.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path

from orion_config.loader import compute_checksum, load_config, load_yaml_file, parse_config
from orion_config.schema import DatabaseConfig, LoggingConfig, OrionConfig, PresentationConfig
from orion_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_PATH_ENV = "ORION_CONFIG"
DATABASE_URL_ENV = "ORION_DATABASE_URL"


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> OrionConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Explicit YAML document.  Overrides ``ORION_CONFIG``.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        FileNotFoundError: If the configured document does not exist.
        ConfigurationError: If any value is invalid.
    """
    env = os.environ if environ is None else environ
    path = config_path or env.get(CONFIG_PATH_ENV)

    if path:
        data = load_yaml_file(Path(path))
        source = str(path)
    else:
        data = {}
        source = "defaults"

    config = parse_config(data)

    database_url = env.get(DATABASE_URL_ENV)
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    _logger.info(
        "ORION_CONFIG_TRACE",
        extra={
            "trace_type": "ORION_CONFIG_TRACE",
            "source": source,
            "checksum": compute_checksum(data),
            "database_url_overridden": bool(database_url),
            "currency": config.presentation.currency,
        },
    )
    return config


__all__ = [
    "DatabaseConfig",
    "LoggingConfig",
    "OrionConfig",
    "PresentationConfig",
    "get_active_config",
    "load_config",
    "parse_config",
]
