"""
orion_engines.portfolio -- Portfolio rollup of project results.

Responsibility:
    Combine per-project ``ProjectRollup`` results for one tenant into a
    portfolio summary (status counts, average indices, portfolio status),
    portfolio financial totals, and the budget-versus-forecast comparison.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``total_projects`` counts every project, including NO_DATA and
      ERROR ones; the on-track/at-risk/critical counts exclude them.
    - ``avg_spi`` / ``avg_cpi`` are UNWEIGHTED arithmetic means over the
      classified projects (on track, at risk, critical).  NO_DATA and ERROR
      projects never feed an average, even when one of their indices is
      defined.  This reproduces the dashboards' existing figure.  It
      differs from a budget-weighted rollup and can hide the risk of one
      large project behind several small ones; use
      ``portfolio_financials`` totals for a weighted view.
    - An empty portfolio has ``None`` averages, never 0.
    - ``portfolio_financials`` sums only projects in the reporting
      currency; the others are listed in ``excluded_project_ids``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from orion_engines.health import HealthStatus, classify_portfolio
from orion_engines.rollup import ProjectRollup
from orion_engines.tracer import traced_engine
from orion_kernel.domain.values import DEFAULT_CURRENCY, BaseSnapshot
from orion_kernel.logging_config import get_logger

logger = get_logger("engines.portfolio")


@dataclass(frozen=True)
class PortfolioRollup:
    """Portfolio summary for one tenant, recomputed on every request."""

    total_projects: int
    on_track_count: int
    at_risk_count: int
    critical_count: int
    avg_spi: Decimal | None
    avg_cpi: Decimal | None
    status: HealthStatus
    no_data_count: int = 0
    error_count: int = 0


@dataclass(frozen=True)
class PortfolioFinancials:
    """Money totals across a portfolio (summed, not averaged)."""

    total_bac: Decimal
    total_actual_cost: Decimal
    total_earned_value: Decimal
    total_planned_value: Decimal
    total_eac: Decimal
    total_vac: Decimal
    currency: str
    # Projects left out because they report in another currency
    excluded_project_ids: tuple[str | None, ...] = ()


@dataclass(frozen=True)
class BudgetComparison:
    """Budget vs. forecast for one project."""

    project_id: str | None
    bac: Decimal
    actual_cost: Decimal
    eac: Decimal
    variance: Decimal  # BAC - EAC


def _mean(values: Sequence[Decimal]) -> Decimal | None:
    if not values:
        return None
    return sum(values, Decimal("0")) / Decimal(len(values))


@traced_engine("portfolio", "1.0")
def aggregate(projects: Iterable[ProjectRollup]) -> PortfolioRollup:
    """
    Summarize project results.

    Postconditions:
        counts partition the classified projects; averages cover only
        classified projects; an empty input yields
        ``total_projects == 0`` and ``None`` averages.
    """
    projects = list(projects)
    counts = {status: 0 for status in HealthStatus}
    for project in projects:
        counts[project.status] += 1

    classified = [p for p in projects if p.status.is_classified]
    spis = [p.derived.spi for p in classified]
    cpis = [p.derived.cpi for p in classified]

    result = PortfolioRollup(
        total_projects=len(projects),
        on_track_count=counts[HealthStatus.ON_TRACK],
        at_risk_count=counts[HealthStatus.AT_RISK],
        critical_count=counts[HealthStatus.CRITICAL],
        avg_spi=_mean(spis),
        avg_cpi=_mean(cpis),
        status=classify_portfolio(
            counts[HealthStatus.ON_TRACK],
            counts[HealthStatus.AT_RISK],
            counts[HealthStatus.CRITICAL],
        ),
        no_data_count=counts[HealthStatus.NO_DATA],
        error_count=counts[HealthStatus.ERROR],
    )

    logger.info("portfolio_aggregated", extra={
        "total_projects": result.total_projects,
        "on_track_count": result.on_track_count,
        "at_risk_count": result.at_risk_count,
        "critical_count": result.critical_count,
        "no_data_count": result.no_data_count,
        "error_count": result.error_count,
        "status": result.status.value,
    })
    return result


def portfolio_financials(
    projects: Iterable[ProjectRollup],
    currency: str = DEFAULT_CURRENCY,
) -> PortfolioFinancials:
    """
    Sum money amounts across projects.

    ERROR projects contribute nothing (their base is zero).  EAC and VAC
    are summed from each project's own forecast.  Amounts in different
    currencies are never added: projects whose currency differs from
    ``currency`` are skipped and reported in ``excluded_project_ids``.
    """
    included: list[ProjectRollup] = []
    excluded: list[str | None] = []
    for project in projects:
        if project.status == HealthStatus.ERROR:
            continue
        if project.base.currency != currency:
            excluded.append(project.project_id)
            continue
        included.append(project)
    if excluded:
        logger.warning("portfolio_projects_excluded_currency", extra={
            "currency": currency,
            "excluded_project_ids": excluded,
        })
    base = BaseSnapshot.total((p.base for p in included), currency)
    total_eac = sum((p.derived.eac for p in included), Decimal("0"))
    total_vac = sum((p.derived.vac for p in included), Decimal("0"))
    return PortfolioFinancials(
        total_bac=base.bac,
        total_actual_cost=base.ac,
        total_earned_value=base.ev,
        total_planned_value=base.pv,
        total_eac=total_eac,
        total_vac=total_vac,
        currency=base.currency,
        excluded_project_ids=tuple(excluded),
    )


def budget_comparison(projects: Iterable[ProjectRollup]) -> list[BudgetComparison]:
    """Per-project BAC vs. EAC, worst variance first (ties keep input order)."""
    rows = [
        BudgetComparison(
            project_id=p.project_id,
            bac=p.base.bac,
            actual_cost=p.base.ac,
            eac=p.derived.eac,
            variance=p.derived.vac,
        )
        for p in projects
        if p.status != HealthStatus.ERROR
    ]
    return sorted(rows, key=lambda r: r.variance)
