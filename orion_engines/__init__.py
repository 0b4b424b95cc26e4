"""
Module: orion_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure EVM
    calculation engines.  This is the canonical import surface for
    ``orion_services`` and for web handlers that call the engines in
    process.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import orion_kernel domain values, the WBS tree model and
    kernel logging.  MUST NOT import orion_services.

Invariants enforced:
    - Purity: engines never read the clock, the database or the
      environment.  Identical inputs always produce identical outputs.
    - Decimal-only arithmetic for money and indices.
    - No rounding inside engines; rounding is a serialization concern.

Usage:
    from orion_engines import build_tree, rollup, aggregate

    tree = build_tree(records, project_id="10481")
    project = rollup(tree)
    summary = aggregate([project])
"""

from orion_engines.domains import (
    DOMAIN_LABELS,
    DOMAIN_ORDER,
    DomainType,
    classify_domain,
)
from orion_engines.evm import (
    DerivedMetrics,
    calculate_cpi,
    calculate_eac,
    calculate_etc,
    calculate_percent_complete,
    calculate_spi,
    calculate_tcpi,
    calculate_vac,
    compute_derived,
)
from orion_engines.health import (
    CRITICAL_THRESHOLD,
    ON_TRACK_THRESHOLD,
    HealthStatus,
    calculate_health_score,
    classify,
    classify_metrics,
    classify_portfolio,
)
from orion_engines.portfolio import (
    BudgetComparison,
    PortfolioFinancials,
    PortfolioRollup,
    aggregate,
    budget_comparison,
    portfolio_financials,
)
from orion_engines.rollup import (
    DomainBucket,
    NodeRollup,
    ProjectRollup,
    domain_buckets,
    node_totals,
    rollup,
)
from orion_kernel.domain.wbs import build_tree

__all__ = [
    # Metric calculator
    "DerivedMetrics",
    "compute_derived",
    "calculate_spi",
    "calculate_cpi",
    "calculate_eac",
    "calculate_etc",
    "calculate_vac",
    "calculate_tcpi",
    "calculate_percent_complete",
    # Health classifier
    "HealthStatus",
    "ON_TRACK_THRESHOLD",
    "CRITICAL_THRESHOLD",
    "classify",
    "classify_metrics",
    "classify_portfolio",
    "calculate_health_score",
    # Domain classifier
    "DomainType",
    "DOMAIN_ORDER",
    "DOMAIN_LABELS",
    "classify_domain",
    # Hierarchical aggregator
    "build_tree",
    "DomainBucket",
    "NodeRollup",
    "ProjectRollup",
    "domain_buckets",
    "node_totals",
    "rollup",
    # Portfolio rollup
    "PortfolioRollup",
    "PortfolioFinancials",
    "BudgetComparison",
    "aggregate",
    "portfolio_financials",
    "budget_comparison",
]
