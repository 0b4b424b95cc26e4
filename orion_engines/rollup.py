"""
orion_engines.rollup -- Hierarchical EVM rollup over a WBS tree.

Responsibility:
    Roll raw PV/EV/AC/BAC bottom-up through the WBS tree and, in a
    parallel pass over the same leaves, into the five EPCIC domain
    buckets.  Ratios (SPI, CPI, TCPI, EAC...) are derived from the summed
    base values at the level being reported.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes ``orion_kernel.domain.wbs.WBSTree``; uses ``evm``, ``health``
    and ``domains``.

Invariants enforced:
    - Only leaves contribute amounts.  Amounts stored on internal nodes are
      ignored; an internal node's base is the component-wise sum of its
      descendant leaves.
    - Child ratios are never summed or averaged.  Averaging SPI/CPI across
      children with unequal budgets is mathematically invalid.
    - Domain bucketing groups leaves by ``classify_domain`` of their code,
      not by tree position.
    - ``rollup(tree).base.ev == sum(leaf.base.ev for leaf in tree.leaves())``.

Failure modes:
    - Empty tree -> ProjectRollup with a zero base in the caller's
      currency and status NO_DATA.
    - CurrencyMismatchError if leaves carry different currencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from orion_engines.domains import DOMAIN_ORDER, DomainType, classify_domain
from orion_engines.evm import DerivedMetrics, compute_derived
from orion_engines.health import HealthStatus, classify_metrics
from orion_engines.tracer import traced_engine
from orion_kernel.domain.values import DEFAULT_CURRENCY, BaseSnapshot
from orion_kernel.domain.wbs import NodeId, WBSNode, WBSTree
from orion_kernel.logging_config import get_logger

logger = get_logger("engines.rollup")


@dataclass(frozen=True)
class DomainBucket:
    """Summed inputs and derived metrics for one EPCIC phase of a project."""

    domain: DomainType
    base: BaseSnapshot
    derived: DerivedMetrics
    status: HealthStatus

    @property
    def label(self) -> str:
        return self.domain.label


@dataclass(frozen=True)
class NodeRollup:
    """Rolled-up values for a single WBS node."""

    node_id: NodeId
    base: BaseSnapshot
    derived: DerivedMetrics
    status: HealthStatus
    leaf_count: int


@dataclass(frozen=True)
class ProjectRollup:
    """
    Project-level result.

    ``domains`` always holds the five EPCIC buckets in ``DOMAIN_ORDER``.
    ``error_code`` is set only when the project's inputs could not be
    assembled, in which case ``status`` is ERROR.
    """

    project_id: str | None
    base: BaseSnapshot
    derived: DerivedMetrics
    status: HealthStatus
    domains: tuple[DomainBucket, ...]
    leaf_count: int = 0
    error_code: str | None = None

    def domain(self, domain: DomainType) -> DomainBucket:
        for bucket in self.domains:
            if bucket.domain == domain:
                return bucket
        raise KeyError(domain)

    @classmethod
    def errored(
        cls,
        project_id: str | None,
        error_code: str,
        currency: str = DEFAULT_CURRENCY,
    ) -> ProjectRollup:
        """Placeholder for a project whose tree failed integrity checks."""
        zero = BaseSnapshot.zero(currency)
        return cls(
            project_id=project_id,
            base=zero,
            derived=compute_derived(zero),
            status=HealthStatus.ERROR,
            domains=domain_buckets((), currency),
            error_code=error_code,
        )

    @classmethod
    def from_snapshot(cls, project_id: str | None, base: BaseSnapshot) -> ProjectRollup:
        """Project-level result from an already-summed snapshot (no WBS detail)."""
        derived = compute_derived(base)
        return cls(
            project_id=project_id,
            base=base,
            derived=derived,
            status=classify_metrics(derived),
            domains=domain_buckets((), base.currency),
        )


def _currency_of(tree: WBSTree, default: str) -> str:
    for node in tree.nodes.values():
        return node.base.currency
    return default


def _post_order_sums(
    tree: WBSTree,
    currency: str,
) -> dict[NodeId, tuple[BaseSnapshot, int]]:
    """(summed base, leaf count) per node, children resolved before parents."""
    sums: dict[NodeId, tuple[BaseSnapshot, int]] = {}
    for node in tree.iter_post_order():
        if node.is_leaf:
            sums[node.id] = (node.base, 1)
            continue
        total = BaseSnapshot.zero(currency)
        leaves = 0
        for child_id in node.children:
            child_base, child_leaves = sums[child_id]
            total = total + child_base
            leaves += child_leaves
        sums[node.id] = (total, leaves)
    return sums


def domain_buckets(
    leaves: Iterable[WBSNode],
    currency: str = DEFAULT_CURRENCY,
) -> tuple[DomainBucket, ...]:
    """Group leaves by EPCIC domain and derive each bucket's metrics."""
    totals = {d: BaseSnapshot.zero(currency) for d in DOMAIN_ORDER}
    for leaf in leaves:
        domain = classify_domain(leaf.classification_code)
        totals[domain] = totals[domain] + leaf.base
    buckets = []
    for domain in DOMAIN_ORDER:
        derived = compute_derived(totals[domain])
        buckets.append(DomainBucket(
            domain=domain,
            base=totals[domain],
            derived=derived,
            status=classify_metrics(derived),
        ))
    return tuple(buckets)


@traced_engine("node_totals", "1.0")
def node_totals(
    tree: WBSTree,
    currency: str = DEFAULT_CURRENCY,
) -> Mapping[NodeId, NodeRollup]:
    """
    Rolled-up base, derived metrics and status for every node of the tree.

    Returned in the tree's source order.
    """
    sums = _post_order_sums(tree, _currency_of(tree, currency))
    result: dict[NodeId, NodeRollup] = {}
    for node_id in tree.nodes:
        base, leaves = sums[node_id]
        derived = compute_derived(base)
        result[node_id] = NodeRollup(
            node_id=node_id,
            base=base,
            derived=derived,
            status=classify_metrics(derived),
            leaf_count=leaves,
        )
    return MappingProxyType(result)


@traced_engine("rollup", "1.0", fingerprint_fields=("project_id",))
def rollup(
    tree: WBSTree,
    *,
    project_id: str | None = None,
    currency: str = DEFAULT_CURRENCY,
) -> ProjectRollup:
    """
    Roll a WBS tree up to a project result.

    Preconditions:
        ``tree`` was produced by ``build_tree`` (acyclic, no orphans).

    Postconditions:
        ``result.base`` is the component-wise sum over all leaves;
        ``result.derived`` is computed from that sum; ``result.domains``
        holds all five EPCIC buckets.

    ``currency`` applies only when the tree is empty; otherwise the
    leaves' own currency is used.
    """
    project_id = project_id if project_id is not None else tree.project_id
    currency = _currency_of(tree, currency)
    sums = _post_order_sums(tree, currency)

    base = BaseSnapshot.zero(currency)
    leaf_count = 0
    for root_id in tree.root_ids:
        root_base, root_leaves = sums[root_id]
        base = base + root_base
        leaf_count += root_leaves

    derived = compute_derived(base)
    status = classify_metrics(derived) if leaf_count else HealthStatus.NO_DATA
    result = ProjectRollup(
        project_id=project_id,
        base=base,
        derived=derived,
        status=status,
        domains=domain_buckets(tree.leaves(), currency),
        leaf_count=leaf_count,
    )

    logger.info("project_rollup_completed", extra={
        "project_id": project_id,
        "leaf_count": leaf_count,
        "status": status.value,
        "spi": str(derived.spi) if derived.spi is not None else None,
        "cpi": str(derived.cpi) if derived.cpi is not None else None,
    })
    return result
