"""
Pure domain layer.

This module contains immutable value objects and the WBS tree model
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from orion_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from orion_kernel.domain.tree_state import (
    TreeUIState,
    collapse_all,
    expand_all,
    expand_to,
    initial_state,
    select,
    toggle_expanded,
    visible_nodes,
)
from orion_kernel.domain.values import BaseSnapshot
from orion_kernel.domain.wbs import (
    SapMapping,
    WBSNode,
    WBSRecord,
    WBSTree,
    breadcrumb,
    build_tree,
)

__all__ = [
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Values
    "BaseSnapshot",
    # WBS tree
    "SapMapping",
    "WBSNode",
    "WBSRecord",
    "WBSTree",
    "breadcrumb",
    "build_tree",
    # Tree UI state
    "TreeUIState",
    "collapse_all",
    "expand_all",
    "expand_to",
    "initial_state",
    "select",
    "toggle_expanded",
    "visible_nodes",
]
