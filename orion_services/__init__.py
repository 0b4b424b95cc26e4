"""
orion_services -- imperative shell over the pure EVM engines.

Services read snapshots through kernel selectors, call the engines, and
hand results to ``orion_services.serialization`` for the web layer.
"""

from orion_services.bootstrap import bootstrap
from orion_services.dashboard_service import (
    DashboardService,
    PortfolioReport,
    ProjectTreeView,
)

__all__ = [
    "DashboardService",
    "PortfolioReport",
    "ProjectTreeView",
    "bootstrap",
]
