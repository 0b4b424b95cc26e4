"""
OrionConfig schema.

Frozen dataclasses describing the runtime configuration of the analytics
core.  YAML documents are parsed into these types by the loader; nothing
else constructs them from raw input.

Health thresholds are deliberately absent: they are fixed constants of
``orion_engines.health`` and are not tunable per deployment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orion_kernel.domain.values import DEFAULT_CURRENCY

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PresentationConfig:
    """Rounding applied when metrics are serialized for display."""

    currency: str = DEFAULT_CURRENCY
    amount_places: int = 0
    index_places: int = 2


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingConfig:
    """Root level for the ``orion`` logger namespace."""

    level: str = "INFO"


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the mirrored snapshot database."""

    url: str | None = None
    echo: bool = False
    pool_size: int = 10


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrionConfig:
    """Complete runtime configuration."""

    presentation: PresentationConfig = field(default_factory=PresentationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
