"""
orion_engines.health -- Health status classification from SPI/CPI.

Responsibility:
    Map a (SPI, CPI) pair to a health status, and a distribution of
    project statuses to a portfolio status.  Every caller (WBS node,
    domain bucket, project, portfolio) uses the same thresholds so colors
    and labels mean the same thing on every dashboard.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Thresholds are the module constants below; they are not
      configurable.
    - A missing index is ``no_data``, never treated as 1.0.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from orion_engines.evm import DerivedMetrics

ON_TRACK_THRESHOLD = Decimal("0.95")
CRITICAL_THRESHOLD = Decimal("0.85")

# Share of classified projects at which the portfolio itself turns critical / at risk.
PORTFOLIO_CRITICAL_SHARE = Decimal("0.30")
PORTFOLIO_AT_RISK_SHARE = Decimal("0.40")

# An index of 2.0 or more scores the full 100 points.
HEALTH_SCORE_INDEX_WEIGHT = Decimal("50")
HEALTH_SCORE_MAX = Decimal("100")


class HealthStatus(str, Enum):
    """Health of a project, domain bucket, WBS node or portfolio."""

    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    CRITICAL = "critical"
    NO_DATA = "no_data"  # Indices undefined
    ERROR = "error"  # Inputs could not be assembled (e.g. corrupt WBS tree)

    @property
    def is_classified(self) -> bool:
        """True for the three statuses derived from actual indices."""
        return self in (HealthStatus.ON_TRACK, HealthStatus.AT_RISK, HealthStatus.CRITICAL)


def classify(spi: Decimal | None, cpi: Decimal | None) -> HealthStatus:
    """
    Classify a pair of performance indices.

    - either index missing -> NO_DATA
    - both >= 0.95 -> ON_TRACK
    - either < 0.85 -> CRITICAL
    - otherwise -> AT_RISK
    """
    if spi is None or cpi is None:
        return HealthStatus.NO_DATA
    if spi >= ON_TRACK_THRESHOLD and cpi >= ON_TRACK_THRESHOLD:
        return HealthStatus.ON_TRACK
    if spi < CRITICAL_THRESHOLD or cpi < CRITICAL_THRESHOLD:
        return HealthStatus.CRITICAL
    return HealthStatus.AT_RISK


def classify_metrics(derived: DerivedMetrics) -> HealthStatus:
    return classify(derived.spi, derived.cpi)


def classify_portfolio(on_track: int, at_risk: int, critical: int) -> HealthStatus:
    """
    Portfolio status from the distribution of classified projects.

    - no classified projects -> NO_DATA
    - critical share >= 30% -> CRITICAL
    - any critical, or at-risk share >= 40% -> AT_RISK
    - otherwise -> ON_TRACK
    """
    total = on_track + at_risk + critical
    if total == 0:
        return HealthStatus.NO_DATA
    critical_share = Decimal(critical) / Decimal(total)
    at_risk_share = Decimal(at_risk) / Decimal(total)
    if critical_share >= PORTFOLIO_CRITICAL_SHARE:
        return HealthStatus.CRITICAL
    if critical > 0 or at_risk_share >= PORTFOLIO_AT_RISK_SHARE:
        return HealthStatus.AT_RISK
    return HealthStatus.ON_TRACK


def _index_score(index: Decimal) -> Decimal:
    return min(HEALTH_SCORE_MAX, max(Decimal("0"), index * HEALTH_SCORE_INDEX_WEIGHT))


def calculate_health_score(spi: Decimal | None, cpi: Decimal | None) -> int | None:
    """
    0-100 gauge score: the mean of ``clamp(spi * 50)`` and ``clamp(cpi * 50)``.

    An index of 1.0 scores 50, so a project exactly on plan shows 50 and
    only out-performance pushes the gauge higher.  ``None`` when either
    index is undefined.
    """
    if spi is None or cpi is None:
        return None
    mean = (_index_score(spi) + _index_score(cpi)) / 2
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
