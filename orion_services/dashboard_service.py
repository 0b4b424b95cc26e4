"""
DashboardService -- Read-side orchestration for the EVM dashboards.

Composes the WBS/project selectors (I/O) with the pure tree builder and
EVM engines, and returns engine results for serialization.

Architecture: orion_services -- imperative shell.
    The service owns no state beyond its collaborators.  The caller owns
    the session and its transaction; the service only reads.

Invariants enforced:
    - Every number a dashboard shows is recomputed from stored
      PV/EV/AC/BAC on each call; nothing derived is cached or persisted.
    - In a portfolio request, a project that cannot be assembled or rolled
      up (corrupt WBS, mixed-currency leaves) is reported with status
      ERROR and its error code; it never aborts the request.
    - Empty projects take the configured presentation currency.
    - Integrity errors on single-project calls propagate to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy.orm import Session

from orion_config.schema import OrionConfig
from orion_engines.portfolio import (
    BudgetComparison,
    PortfolioFinancials,
    PortfolioRollup,
    aggregate,
    budget_comparison,
    portfolio_financials,
)
from orion_engines.rollup import DomainBucket, NodeRollup, ProjectRollup, node_totals, rollup
from orion_kernel.domain.clock import Clock, SystemClock
from orion_kernel.domain.tree_state import TreeUIState, initial_state
from orion_kernel.domain.wbs import NodeId, WBSTree, build_tree
from orion_kernel.exceptions import OrionError, WBSIntegrityError
from orion_kernel.logging_config import LogContext, get_logger
from orion_kernel.selectors.project_selector import ProjectSelector
from orion_kernel.selectors.wbs_selector import WBSSelector

logger = get_logger("services.dashboard")


@dataclass(frozen=True)
class ProjectTreeView:
    """A project's WBS tree with per-node totals and the initial view state."""

    tree: WBSTree
    totals: Mapping[NodeId, NodeRollup]
    state: TreeUIState


@dataclass(frozen=True)
class PortfolioReport:
    """Everything the portfolio and CFO views render for one tenant."""

    rollup: PortfolioRollup
    projects: tuple[ProjectRollup, ...]
    financials: PortfolioFinancials
    comparison: tuple[BudgetComparison, ...]
    generated_at: datetime
    errors: Mapping[str, str] = field(default_factory=dict)


class DashboardService:
    """Service behind the project, EVM, portfolio and CFO dashboards.

    Contract:
        - ``project_tree()`` builds the WBS tree for the tree view.
        - ``project_rollup()`` / ``project_domains()`` roll one project up.
        - ``portfolio()`` rolls every project of a tenant up from WBS detail.
        - ``portfolio_from_snapshots()`` does the same from project-level
          snapshots when WBS detail is not mirrored.

    Non-goals:
        - Does NOT write to the database.
        - Does NOT cache results across calls.
    """

    def __init__(
        self,
        session: Session,
        config: OrionConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._config = config or OrionConfig()
        self._clock = clock or SystemClock()
        self._wbs = WBSSelector(session)
        self._projects = ProjectSelector(session)

    @property
    def config(self) -> OrionConfig:
        return self._config

    # ------------------------------------------------------------------
    # Single project
    # ------------------------------------------------------------------

    def _tree(self, tenant_id: str, project_id: str, as_of: date | None) -> WBSTree:
        records = self._wbs.records_for_project(tenant_id, project_id, as_of)
        return build_tree(records, project_id=project_id)

    def project_tree(
        self,
        tenant_id: str,
        project_id: str,
        *,
        as_of: date | None = None,
        expanded_ids: Iterable[NodeId] = (),
        expand_depth: int | None = 1,
    ) -> ProjectTreeView:
        """
        WBS tree with per-node rollups for the tree view.

        Raises:
            WBSIntegrityError: If the stored WBS is corrupt.
        """
        with LogContext.bind(tenant_id=tenant_id, project_id=project_id):
            tree = self._tree(tenant_id, project_id, as_of)
            return ProjectTreeView(
                tree=tree,
                totals=node_totals(tree, self._config.presentation.currency),
                state=initial_state(tree, expanded_ids, depth=expand_depth),
            )

    def project_rollup(
        self,
        tenant_id: str,
        project_id: str,
        *,
        as_of: date | None = None,
    ) -> ProjectRollup:
        """
        Project-level metrics rolled up from WBS leaves.

        A project without WBS rows rolls up to NO_DATA.

        Raises:
            WBSIntegrityError: If the stored WBS is corrupt.
        """
        with LogContext.bind(tenant_id=tenant_id, project_id=project_id):
            try:
                tree = self._tree(tenant_id, project_id, as_of)
            except WBSIntegrityError as exc:
                logger.error("project_tree_rejected", extra={
                    "error_code": exc.code,
                }, exc_info=True)
                raise
            return rollup(
                tree,
                project_id=project_id,
                currency=self._config.presentation.currency,
            )

    def project_domains(
        self,
        tenant_id: str,
        project_id: str,
        *,
        as_of: date | None = None,
    ) -> tuple[DomainBucket, ...]:
        """The five EPCIC buckets of a project, in display order."""
        return self.project_rollup(tenant_id, project_id, as_of=as_of).domains

    # ------------------------------------------------------------------
    # Portfolio
    # ------------------------------------------------------------------

    def portfolio(self, tenant_id: str, *, as_of: date | None = None) -> PortfolioReport:
        """
        Roll up every project of the tenant from WBS detail.

        Projects whose tree fails integrity checks, or whose leaves mix
        currencies, appear with status ERROR and are listed in ``errors``;
        the rest are unaffected.  Projects in another currency than the
        configured one are ranked and counted but left out of the money
        totals (see ``PortfolioFinancials.excluded_project_ids``).
        """
        currency = self._config.presentation.currency
        projects: list[ProjectRollup] = []
        errors: dict[str, str] = {}

        with LogContext.bind(tenant_id=tenant_id):
            for project_id in self._wbs.project_ids(tenant_id):
                with LogContext.bind(project_id=project_id):
                    try:
                        tree = self._tree(tenant_id, project_id, as_of)
                        project = rollup(tree, project_id=project_id, currency=currency)
                    except OrionError as exc:
                        logger.warning("project_excluded_error", extra={
                            "error_code": exc.code,
                            "detail": str(exc),
                        })
                        errors[project_id] = exc.code
                        projects.append(ProjectRollup.errored(project_id, exc.code, currency))
                        continue
                    projects.append(project)

            report = self._report(projects, errors, currency)
            logger.info("portfolio_report_generated", extra={
                "source": "wbs",
                "total_projects": report.rollup.total_projects,
                "error_count": len(errors),
                "status": report.rollup.status.value,
            })
            return report

    def portfolio_from_snapshots(self, tenant_id: str) -> PortfolioReport:
        """Roll up every project of the tenant from its latest project-level snapshot."""
        currency = self._config.presentation.currency
        with LogContext.bind(tenant_id=tenant_id):
            projects = [
                ProjectRollup.from_snapshot(row.project_id, row.base)
                for row in self._projects.latest_snapshots(tenant_id)
            ]
            report = self._report(projects, {}, currency)
            logger.info("portfolio_report_generated", extra={
                "source": "project_snapshots",
                "total_projects": report.rollup.total_projects,
                "error_count": 0,
                "status": report.rollup.status.value,
            })
            return report

    def _report(
        self,
        projects: list[ProjectRollup],
        errors: dict[str, str],
        currency: str,
    ) -> PortfolioReport:
        return PortfolioReport(
            rollup=aggregate(projects),
            projects=tuple(projects),
            financials=portfolio_financials(projects, currency),
            comparison=tuple(budget_comparison(projects)),
            generated_at=self._clock.now(),
            errors=errors,
        )
