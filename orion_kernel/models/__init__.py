"""ORM models for the mirrored snapshot tables."""

from orion_kernel.models.project_snapshot import ProjectSnapshotModel
from orion_kernel.models.wbs_metric import WBSMetricModel

__all__ = [
    "ProjectSnapshotModel",
    "WBSMetricModel",
]
