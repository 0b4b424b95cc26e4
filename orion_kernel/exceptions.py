"""
Typed Exception Hierarchy for the ORION analytics kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Dashboards and API handlers must tell a broken WBS tree apart from a bad
configuration file without parsing message strings.  Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (node ids, paths, currencies)

Arithmetic degeneracies (zero PV, zero AC, no remaining budget) are NOT
errors.  They are represented as ``None`` in the derived metrics and never
raise.  Only structural corruption of the input is exceptional.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    OrionError (base)
    |
    +-- WBSIntegrityError
    |   +-- OrphanWBSNodeError
    |   +-- WBSCycleError
    |   +-- DuplicateWBSNodeError
    |
    +-- WBSNodeNotFoundError
    +-- CurrencyMismatchError
    +-- ConfigurationError
    +-- ProjectNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Tree            | WBS_INTEGRITY_ERROR         | Base class for tree corruption
                | WBS_ORPHAN_NODE             | parent_id not present in the record set
                | WBS_CYCLE                   | Parent chain revisits a node
                | WBS_DUPLICATE_NODE          | Same node id supplied twice
                | WBS_NODE_NOT_FOUND          | Lookup of an id that is not in the tree
----------------|-----------------------------|-----------------------------------------
Values          | CURRENCY_MISMATCH           | Summing snapshots in different currencies
----------------|-----------------------------|-----------------------------------------
Config          | CONFIGURATION_ERROR         | Invalid YAML value or environment override
----------------|-----------------------------|-----------------------------------------
Data            | PROJECT_NOT_FOUND           | No snapshot rows for tenant/project

===============================================================================
HANDLING PATTERNS
===============================================================================

Errors are scoped to a single project.  A portfolio request catches them
per project and reports that project with status ``error``:

    try:
        tree = build_tree(records, project_id=project_id)
        project = rollup(tree, project_id=project_id, currency=currency)
    except OrionError as e:
        errors[project_id] = e.code
        continue
"""

from __future__ import annotations


class OrionError(Exception):
    """
    Base exception for all ORION kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "ORION_ERROR"


# WBS tree integrity


class WBSIntegrityError(OrionError):
    """Base exception for structural corruption of a WBS record set."""

    code: str = "WBS_INTEGRITY_ERROR"

    def __init__(self, message: str, project_id: str | None = None):
        self.project_id = project_id
        super().__init__(message)


class OrphanWBSNodeError(WBSIntegrityError):
    """
    One or more records reference a parent that is not in the record set.

    Orphans are never re-attached to the root; the whole tree is rejected
    and every orphan is reported at once.
    """

    code: str = "WBS_ORPHAN_NODE"

    def __init__(
        self,
        node_ids: list[str],
        missing_parent_ids: list[str],
        project_id: str | None = None,
    ):
        self.node_ids = node_ids
        self.missing_parent_ids = missing_parent_ids
        super().__init__(
            f"Orphaned WBS records {node_ids}: "
            f"parents {missing_parent_ids} not found",
            project_id=project_id,
        )


class WBSCycleError(WBSIntegrityError):
    """The parent chain of a record revisits itself."""

    code: str = "WBS_CYCLE"

    def __init__(self, path: list[str], project_id: str | None = None):
        self.path = path
        path_str = " -> ".join(path)
        super().__init__(
            f"Cycle detected in WBS parent chain: {path_str}",
            project_id=project_id,
        )


class DuplicateWBSNodeError(WBSIntegrityError):
    """The same WBS id appears more than once in the record set."""

    code: str = "WBS_DUPLICATE_NODE"

    def __init__(self, node_id: str, project_id: str | None = None):
        self.node_id = node_id
        super().__init__(
            f"Duplicate WBS record id: {node_id}",
            project_id=project_id,
        )


class WBSNodeNotFoundError(OrionError):
    """Requested node id is not part of the tree."""

    code: str = "WBS_NODE_NOT_FOUND"

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"WBS node not found: {node_id}")


# Values


class CurrencyMismatchError(OrionError):
    """Operation mixes snapshots denominated in different currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, expected: str, received: str):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Currency mismatch: expected {expected}, received {received}"
        )


# Configuration


class ConfigurationError(OrionError):
    """A configuration value is missing or invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")


# Data access


class ProjectNotFoundError(OrionError):
    """No snapshot rows exist for the requested tenant/project."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, tenant_id: str, project_id: str):
        self.tenant_id = tenant_id
        self.project_id = project_id
        super().__init__(
            f"Project not found: {project_id} (tenant {tenant_id})"
        )
