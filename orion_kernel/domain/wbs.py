"""
WBS Tree -- Arena-backed Work Breakdown Structure model.

Responsibility:
    Builds an immutable WBS tree from the flat, relational record list the
    data layer supplies (``{id, parent_id, code, name, pv, ev, ac, bac,
    sap_mapping?}``), and exposes the traversals the aggregator and the
    tree UI need: leaves, post-order, ancestor paths for breadcrumbs.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Consumed by ``orion_engines.rollup`` and ``orion_kernel.domain.tree_state``.

Invariants enforced:
    - Every node except a root has exactly one parent, and that parent is
      present in the same record set.
    - ``level`` of a node equals its parent's level + 1; roots are level 0.
    - No cycles.  The parent chain of every record is walked with a visited
      set before any node is attached.
    - Children keep the insertion order of the source list.  The tree never
      re-sorts.
    - Nodes reference children by id (arena), never by object pointer.

Failure modes:
    - DuplicateWBSNodeError if an id appears twice.
    - OrphanWBSNodeError if a parent id is not in the record set (strict
      mode, the default).  Every orphan is reported in one error.
    - WBSCycleError if a parent chain revisits a node.
    - WBSNodeNotFoundError on lookup of an unknown id.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from orion_kernel.domain.values import DEFAULT_CURRENCY, BaseSnapshot, to_decimal
from orion_kernel.exceptions import (
    DuplicateWBSNodeError,
    OrphanWBSNodeError,
    WBSCycleError,
    WBSNodeNotFoundError,
)
from orion_kernel.logging_config import get_logger

logger = get_logger("domain.wbs")

NodeId = Hashable


@dataclass(frozen=True)
class SapMapping:
    """Overlay linking a P6 WBS element to an SAP WBS element (PRPS POSID)."""

    posid: str | None
    confidence_score: Decimal | None = None
    description: str | None = None
    mapping_strategy: str | None = None
    is_verified: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SapMapping:
        score = _first(data, "confidenceScore", "confidence_score")
        return cls(
            posid=data.get("posid"),
            confidence_score=to_decimal(score, "confidence_score") if score is not None else None,
            description=_first(data, "post1", "description"),
            mapping_strategy=_first(data, "mappingStrategy", "mapping_strategy"),
            is_verified=bool(_first(data, "isVerified", "is_verified") or False),
        )


@dataclass(frozen=True)
class WBSRecord:
    """One flat row from the data layer."""

    id: NodeId
    parent_id: NodeId | None
    code: str
    name: str
    pv: Decimal = Decimal("0")
    ev: Decimal = Decimal("0")
    ac: Decimal = Decimal("0")
    bac: Decimal = Decimal("0")
    currency: str = DEFAULT_CURRENCY
    sap_mapping: SapMapping | None = None
    epc_code: str | None = None

    @property
    def base(self) -> BaseSnapshot:
        return BaseSnapshot.of(self.pv, self.ev, self.ac, self.bac, self.currency)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WBSRecord:
        """
        Parse a record from either the camelCase API shape or snake_case.

        Missing amounts are read as zero.
        """
        sap = _first(data, "sapMapping", "sap_mapping")
        if isinstance(sap, Mapping):
            sap = SapMapping.from_dict(sap)
        return cls(
            id=data["id"],
            parent_id=_first(data, "parentId", "parent_id"),
            code=_first(data, "code", "wbsCode", "wbs_code") or "",
            name=data.get("name") or "",
            pv=to_decimal(data.get("pv"), "pv"),
            ev=to_decimal(data.get("ev"), "ev"),
            ac=to_decimal(data.get("ac"), "ac"),
            bac=to_decimal(data.get("bac"), "bac"),
            currency=data.get("currency") or DEFAULT_CURRENCY,
            sap_mapping=sap,
            epc_code=_first(data, "epcCode", "epc_code"),
        )


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


@dataclass(frozen=True)
class WBSNode:
    """A node of the arena.  ``children`` holds child ids in source order."""

    id: NodeId
    parent_id: NodeId | None
    code: str
    name: str
    level: int
    base: BaseSnapshot
    children: tuple[NodeId, ...] = ()
    sap_mapping: SapMapping | None = None
    epc_code: str | None = None

    @property
    def is_leaf(self) -> bool:
        return len(self.children) == 0

    @property
    def sap_mapped(self) -> bool:
        return self.sap_mapping is not None and self.sap_mapping.posid is not None

    @property
    def classification_code(self) -> str:
        """Code used for EPCIC bucketing: ``epc_code`` when supplied, else ``code``."""
        return self.epc_code or self.code


@dataclass(frozen=True)
class WBSTree:
    """
    Immutable WBS tree.

    Contract:
        ``nodes`` maps every id to its node; ``root_ids`` lists top-level
        elements in source order.  A project may have several top-level
        elements.

    Guarantees:
        - Every id in any ``children`` tuple is a key of ``nodes``.
        - Traversals are deterministic and follow source order.

    Non-goals:
        - Does NOT sort children for display.
        - Does NOT hold UI state (see ``orion_kernel.domain.tree_state``).
    """

    nodes: Mapping[NodeId, WBSNode]
    root_ids: tuple[NodeId, ...]
    project_id: str | None = None
    orphan_ids: tuple[NodeId, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __iter__(self) -> Iterator[WBSNode]:
        return self.iter_pre_order()

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def roots(self) -> tuple[WBSNode, ...]:
        return tuple(self.nodes[i] for i in self.root_ids)

    def get(self, node_id: NodeId) -> WBSNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise WBSNodeNotFoundError(str(node_id)) from None

    def children_of(self, node_id: NodeId) -> tuple[WBSNode, ...]:
        return tuple(self.nodes[c] for c in self.get(node_id).children)

    def is_leaf(self, node: WBSNode | NodeId) -> bool:
        if not isinstance(node, WBSNode):
            node = self.get(node)
        return len(node.children) == 0

    def iter_pre_order(self, start: NodeId | None = None) -> Iterator[WBSNode]:
        """Parent before children, children in source order."""
        stack = list(reversed(self.root_ids if start is None else (start,)))
        while stack:
            node = self.get(stack.pop())
            yield node
            stack.extend(reversed(node.children))

    def iter_post_order(self, start: NodeId | None = None) -> Iterator[WBSNode]:
        """Children before parent, children in source order."""
        starts = self.root_ids if start is None else (start,)
        stack: list[tuple[NodeId, bool]] = [(i, False) for i in reversed(starts)]
        while stack:
            node_id, expanded = stack.pop()
            node = self.get(node_id)
            if expanded or node.is_leaf:
                yield node
                continue
            stack.append((node_id, True))
            stack.extend((c, False) for c in reversed(node.children))

    def leaves(self) -> tuple[WBSNode, ...]:
        return tuple(n for n in self.iter_pre_order() if n.is_leaf)

    def descendant_leaves(self, node_id: NodeId) -> tuple[WBSNode, ...]:
        """Leaves under ``node_id``; a leaf is its own only descendant leaf."""
        return tuple(n for n in self.iter_pre_order(node_id) if n.is_leaf)

    def find_path(self, node_id: NodeId) -> tuple[WBSNode, ...]:
        """Ancestors from the root down to and including ``node_id``."""
        path: list[WBSNode] = []
        current: NodeId | None = node_id
        while current is not None:
            node = self.get(current)
            path.append(node)
            current = node.parent_id
        path.reverse()
        return tuple(path)

    @property
    def depth(self) -> int:
        """Number of levels (0 for an empty tree)."""
        return max((n.level for n in self.nodes.values()), default=-1) + 1


def breadcrumb(tree: WBSTree, node_id: NodeId) -> list[dict[str, Any]]:
    """Breadcrumb items root -> ``node_id`` in the shape the tree UI renders."""
    return [
        {"objectId": n.id, "name": n.name, "wbsCode": n.code}
        for n in tree.find_path(node_id)
    ]


def build_tree(
    records: Iterable[WBSRecord | Mapping[str, Any]],
    *,
    project_id: str | None = None,
    strict: bool = True,
) -> WBSTree:
    """
    Build a WBS tree from a flat record list.

    Pass 1 indexes records by id and validates parent references and
    parent chains.  Pass 2 attaches children in source order and assigns
    levels top-down.

    Preconditions:
        ``records`` are ``WBSRecord`` instances or mappings accepted by
        ``WBSRecord.from_dict``.

    Postconditions:
        Returns an immutable ``WBSTree``.  In non-strict mode, orphans and
        everything beneath them are dropped and listed in ``orphan_ids``
        instead of failing the build.

    Raises:
        DuplicateWBSNodeError: an id appears twice.
        OrphanWBSNodeError: a parent id is missing (strict mode only).
        WBSCycleError: a parent chain revisits a node (always).
    """
    by_id: dict[NodeId, WBSRecord] = {}
    for raw in records:
        record = raw if isinstance(raw, WBSRecord) else WBSRecord.from_dict(raw)
        if record.id in by_id:
            logger.error("wbs_duplicate_node", extra={
                "project_id": project_id,
                "node_id": str(record.id),
            })
            raise DuplicateWBSNodeError(str(record.id), project_id=project_id)
        by_id[record.id] = record

    orphans = [
        r for r in by_id.values()
        if r.parent_id is not None and r.parent_id not in by_id
    ]
    if orphans and strict:
        logger.error("wbs_orphan_nodes", extra={
            "project_id": project_id,
            "node_ids": [str(r.id) for r in orphans],
        })
        raise OrphanWBSNodeError(
            node_ids=[str(r.id) for r in orphans],
            missing_parent_ids=sorted({str(r.parent_id) for r in orphans}),
            project_id=project_id,
        )

    _check_cycles(by_id, project_id)

    children: dict[NodeId, list[NodeId]] = {i: [] for i in by_id}
    root_ids: list[NodeId] = []
    for record in by_id.values():
        if record.parent_id is None:
            root_ids.append(record.id)
        elif record.parent_id in by_id:
            children[record.parent_id].append(record.id)

    nodes: dict[NodeId, WBSNode] = {}
    stack: list[tuple[NodeId, int]] = [(i, 0) for i in reversed(root_ids)]
    while stack:
        node_id, level = stack.pop()
        record = by_id[node_id]
        nodes[node_id] = WBSNode(
            id=record.id,
            parent_id=record.parent_id,
            code=record.code,
            name=record.name,
            level=level,
            base=record.base,
            children=tuple(children[node_id]),
            sap_mapping=record.sap_mapping,
            epc_code=record.epc_code,
        )
        stack.extend((c, level + 1) for c in reversed(children[node_id]))

    # Source order, not traversal order.
    ordered = {i: nodes[i] for i in by_id if i in nodes}
    dropped = tuple(i for i in by_id if i not in nodes)
    if dropped:
        logger.warning("wbs_orphan_nodes_dropped", extra={
            "project_id": project_id,
            "node_ids": [str(i) for i in dropped],
        })

    tree = WBSTree(
        nodes=MappingProxyType(ordered),
        root_ids=tuple(root_ids),
        project_id=project_id,
        orphan_ids=dropped,
    )
    logger.info("wbs_tree_built", extra={
        "project_id": project_id,
        "node_count": len(tree),
        "root_count": len(root_ids),
        "depth": tree.depth,
    })
    return tree


def _check_cycles(by_id: Mapping[NodeId, WBSRecord], project_id: str | None) -> None:
    """Walk every parent chain once; ``settled`` holds ids known to end at a root or an orphan."""
    settled: set[NodeId] = set()
    for start in by_id:
        chain: list[NodeId] = []
        visited: set[NodeId] = set()
        current: NodeId | None = start
        while current is not None and current in by_id and current not in settled:
            if current in visited:
                cycle_start = chain.index(current)
                path = [str(i) for i in chain[cycle_start:]] + [str(current)]
                logger.error("wbs_cycle_detected", extra={
                    "project_id": project_id,
                    "path": path,
                })
                raise WBSCycleError(path, project_id=project_id)
            visited.add(current)
            chain.append(current)
            current = by_id[current].parent_id
        settled.update(chain)
