"""Read-only query selectors over the snapshot tables."""

from orion_kernel.selectors.base import BaseSelector
from orion_kernel.selectors.project_selector import ProjectSelector, ProjectSnapshotRow
from orion_kernel.selectors.wbs_selector import WBSSelector

__all__ = [
    "BaseSelector",
    "ProjectSelector",
    "ProjectSnapshotRow",
    "WBSSelector",
]
