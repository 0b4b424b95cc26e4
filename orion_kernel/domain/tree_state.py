"""
Tree UI State -- Expanded/selected ids for the WBS tree view.

Responsibility:
    Models the only mutable state around a WBS tree -- which nodes are
    expanded and which one is selected -- as an immutable value.  Every
    operation returns a new ``TreeUIState``; callers replace the old value
    atomically.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    The aggregator never reads or writes this state.

Invariants enforced:
    - ``expanded_ids`` is a ``frozenset``; no operation mutates a state in
      place.
    - Operations that take a tree validate node ids against it
      (``WBSNodeNotFoundError`` on unknown ids).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from orion_kernel.domain.wbs import NodeId, WBSNode, WBSTree


@dataclass(frozen=True)
class TreeUIState:
    """Immutable expanded/selected state for one user's tree view."""

    expanded_ids: frozenset[NodeId] = field(default_factory=frozenset)
    selected_id: NodeId | None = None

    def is_expanded(self, node_id: NodeId) -> bool:
        return node_id in self.expanded_ids

    def is_selected(self, node_id: NodeId) -> bool:
        return self.selected_id is not None and self.selected_id == node_id


def initial_state(
    tree: WBSTree,
    expanded_ids: Iterable[NodeId] = (),
    depth: int | None = None,
) -> TreeUIState:
    """
    Seed a state from explicitly expanded ids plus, optionally, every
    non-leaf node shallower than ``depth``.

    Ids not present in ``tree`` are ignored; stale ids from a previous
    session are expected here.
    """
    seeded = {i for i in expanded_ids if i in tree}
    if depth is not None:
        seeded.update(
            n.id for n in tree.nodes.values()
            if n.level < depth and not n.is_leaf
        )
    return TreeUIState(expanded_ids=frozenset(seeded))


def toggle_expanded(state: TreeUIState, node_id: NodeId) -> TreeUIState:
    """Add ``node_id`` to the expanded set if absent, remove it if present."""
    if node_id in state.expanded_ids:
        return replace(state, expanded_ids=state.expanded_ids - {node_id})
    return replace(state, expanded_ids=state.expanded_ids | {node_id})


def select(
    state: TreeUIState,
    node_id: NodeId | None,
    tree: WBSTree | None = None,
) -> TreeUIState:
    """Select ``node_id`` (``None`` clears the selection)."""
    if node_id is not None and tree is not None:
        tree.get(node_id)
    return replace(state, selected_id=node_id)


def expand_all(state: TreeUIState, tree: WBSTree) -> TreeUIState:
    return replace(
        state,
        expanded_ids=frozenset(n.id for n in tree.nodes.values() if not n.is_leaf),
    )


def collapse_all(state: TreeUIState) -> TreeUIState:
    return replace(state, expanded_ids=frozenset())


def expand_to(state: TreeUIState, tree: WBSTree, node_id: NodeId) -> TreeUIState:
    """Expand every ancestor of ``node_id`` so the node becomes visible."""
    ancestors = {n.id for n in tree.find_path(node_id)[:-1]}
    return replace(state, expanded_ids=state.expanded_ids | ancestors)


def visible_nodes(tree: WBSTree, state: TreeUIState) -> list[tuple[WBSNode, int]]:
    """
    Rows the tree view renders, in display order, with their depth.

    Children of a collapsed node are skipped.
    """
    rows: list[tuple[WBSNode, int]] = []
    stack = [(i, 0) for i in reversed(tree.root_ids)]
    while stack:
        node_id, depth = stack.pop()
        node = tree.nodes[node_id]
        rows.append((node, depth))
        if node.id in state.expanded_ids:
            stack.extend((c, depth + 1) for c in reversed(node.children))
    return rows
