"""
orion_services.serialization -- JSON-ready dicts for dashboard payloads.

Responsibility:
    Convert engine results into plain dicts with camelCase keys, applying
    display rounding from ``PresentationConfig``.  This is the only place
    in the codebase where metric values are rounded.

Architecture position:
    Services -- imperative shell.  Imports engines and kernel domain
    types; nothing imports this module except services and web handlers.

Invariants enforced:
    - Rounding is ROUND_HALF_UP on Decimal; floats never appear in the
      computation.
    - Undefined indices serialize as ``None`` (JSON ``null``), never 0.
    - Amounts and indices are emitted as ``float`` so payloads are
      directly ``json.dumps``-able.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from orion_config.schema import PresentationConfig
from orion_engines.evm import DerivedMetrics
from orion_engines.health import calculate_health_score
from orion_engines.portfolio import BudgetComparison, PortfolioFinancials, PortfolioRollup
from orion_engines.rollup import DomainBucket, NodeRollup, ProjectRollup
from orion_kernel.domain.tree_state import TreeUIState
from orion_kernel.domain.values import BaseSnapshot
from orion_kernel.domain.wbs import NodeId, SapMapping, WBSTree

_DEFAULT_PRESENTATION = PresentationConfig()


def round_decimal(value: Decimal | None, places: int) -> float | None:
    """Round half-up to ``places`` decimals; ``None`` passes through."""
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-places)
    return float(value.quantize(quantum, rounding=ROUND_HALF_UP))


def _amount(value: Decimal | None, presentation: PresentationConfig) -> float | None:
    return round_decimal(value, presentation.amount_places)


def _index(value: Decimal | None, presentation: PresentationConfig) -> float | None:
    return round_decimal(value, presentation.index_places)


def base_to_dict(
    base: BaseSnapshot,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
) -> dict[str, Any]:
    return {
        "plannedValue": _amount(base.pv, presentation),
        "earnedValue": _amount(base.ev, presentation),
        "actualCost": _amount(base.ac, presentation),
        "bac": _amount(base.bac, presentation),
        "currency": base.currency,
    }


def derived_to_dict(
    derived: DerivedMetrics,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
) -> dict[str, Any]:
    """Derived metrics with indices and amounts rounded for display."""
    return {
        "spi": _index(derived.spi, presentation),
        "cpi": _index(derived.cpi, presentation),
        "sv": _amount(derived.sv, presentation),
        "cv": _amount(derived.cv, presentation),
        "eac": _amount(derived.eac, presentation),
        "etc": _amount(derived.etc, presentation),
        "vac": _amount(derived.vac, presentation),
        "tcpi": _index(derived.tcpi, presentation),
        "percentComplete": derived.percent_complete,
        "healthScore": calculate_health_score(derived.spi, derived.cpi),
    }


def domain_bucket_to_dict(
    bucket: DomainBucket,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
) -> dict[str, Any]:
    return {
        "domain": bucket.domain.value,
        "label": bucket.label,
        **base_to_dict(bucket.base, presentation),
        **derived_to_dict(bucket.derived, presentation),
        "status": bucket.status.value,
    }


def project_rollup_to_dict(
    project: ProjectRollup,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
    *,
    include_domains: bool = True,
) -> dict[str, Any]:
    """Project summary payload; ``errorCode`` is present only for ERROR projects."""
    payload: dict[str, Any] = {
        "projectId": project.project_id,
        **base_to_dict(project.base, presentation),
        **derived_to_dict(project.derived, presentation),
        "status": project.status.value,
        "leafCount": project.leaf_count,
    }
    if include_domains:
        payload["domains"] = [
            domain_bucket_to_dict(bucket, presentation) for bucket in project.domains
        ]
    if project.error_code is not None:
        payload["errorCode"] = project.error_code
    return payload


def portfolio_to_dict(
    portfolio: PortfolioRollup,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
) -> dict[str, Any]:
    return {
        "status": portfolio.status.value,
        "totalProjects": portfolio.total_projects,
        "onTrackCount": portfolio.on_track_count,
        "atRiskCount": portfolio.at_risk_count,
        "criticalCount": portfolio.critical_count,
        "noDataCount": portfolio.no_data_count,
        "errorCount": portfolio.error_count,
        "avgSpi": _index(portfolio.avg_spi, presentation),
        "avgCpi": _index(portfolio.avg_cpi, presentation),
    }


def financials_to_dict(
    financials: PortfolioFinancials,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
) -> dict[str, Any]:
    return {
        "totalBac": _amount(financials.total_bac, presentation),
        "totalActualCost": _amount(financials.total_actual_cost, presentation),
        "totalEarnedValue": _amount(financials.total_earned_value, presentation),
        "totalPlannedValue": _amount(financials.total_planned_value, presentation),
        "totalEac": _amount(financials.total_eac, presentation),
        "totalVac": _amount(financials.total_vac, presentation),
        "currency": financials.currency,
        "excludedProjectIds": list(financials.excluded_project_ids),
    }


def comparison_to_dict(
    row: BudgetComparison,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
) -> dict[str, Any]:
    return {
        "projectId": row.project_id,
        "bac": _amount(row.bac, presentation),
        "actualCost": _amount(row.actual_cost, presentation),
        "eac": _amount(row.eac, presentation),
        "variance": _amount(row.variance, presentation),
    }


def sap_mapping_to_dict(mapping: SapMapping | None) -> dict[str, Any] | None:
    if mapping is None:
        return None
    return {
        "posid": mapping.posid,
        "description": mapping.description,
        "mappingStrategy": mapping.mapping_strategy,
        "confidenceScore": (
            float(mapping.confidence_score) if mapping.confidence_score is not None else None
        ),
        "isVerified": mapping.is_verified,
    }


def node_to_dict(
    tree: WBSTree,
    node_id: NodeId,
    totals: Mapping[NodeId, NodeRollup],
    state: TreeUIState | None = None,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
) -> dict[str, Any]:
    """
    Nested payload for one node and its whole subtree.

    ``totals`` is the mapping returned by ``node_totals(tree)``.  Children
    are always included; ``isExpanded`` tells the client which ones to
    render.
    """
    state = state or TreeUIState()
    node = tree.get(node_id)
    total = totals[node_id]
    return {
        "objectId": node.id,
        "parentObjectId": node.parent_id,
        "wbsCode": node.code,
        "name": node.name,
        "hierarchyLevel": node.level,
        **base_to_dict(total.base, presentation),
        **derived_to_dict(total.derived, presentation),
        "status": total.status.value,
        "isExpanded": state.is_expanded(node.id),
        "isSelected": state.is_selected(node.id),
        "sapMapped": node.sap_mapped,
        "sapMapping": sap_mapping_to_dict(node.sap_mapping),
        "children": [
            node_to_dict(tree, child_id, totals, state, presentation)
            for child_id in node.children
        ],
    }


def tree_to_list(
    tree: WBSTree,
    totals: Mapping[NodeId, NodeRollup],
    state: TreeUIState | None = None,
    presentation: PresentationConfig = _DEFAULT_PRESENTATION,
) -> list[dict[str, Any]]:
    """Nested payloads for every root, in source order."""
    return [
        node_to_dict(tree, root_id, totals, state, presentation)
        for root_id in tree.root_ids
    ]
