"""
Module: orion_kernel.selectors.project_selector
Responsibility: Read the latest project-level EVM snapshot per project.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Exactly one row per project: the one with the greatest snapshot date.
    - Returns frozen DTOs; amounts are coerced to the BaseSnapshot rules
      (null reads as zero).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import and_, func, select

from orion_kernel.domain.values import BaseSnapshot
from orion_kernel.exceptions import ProjectNotFoundError
from orion_kernel.models.project_snapshot import ProjectSnapshotModel
from orion_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ProjectSnapshotRow:
    """Latest project-level snapshot, detached from the session."""

    project_id: str
    project_name: str | None
    snapshot_date: date
    base: BaseSnapshot


class ProjectSelector(BaseSelector[ProjectSnapshotModel]):
    """Read-side queries over ``project_snapshots``."""

    def latest_snapshots(self, tenant_id: str) -> list[ProjectSnapshotRow]:
        """Latest snapshot of every project of the tenant, ordered by project id."""
        latest = (
            select(
                ProjectSnapshotModel.project_id.label("project_id"),
                func.max(ProjectSnapshotModel.snapshot_date).label("max_date"),
            )
            .where(ProjectSnapshotModel.tenant_id == tenant_id)
            .group_by(ProjectSnapshotModel.project_id)
            .subquery()
        )
        rows = self.session.execute(
            select(ProjectSnapshotModel)
            .join(
                latest,
                and_(
                    ProjectSnapshotModel.project_id == latest.c.project_id,
                    ProjectSnapshotModel.snapshot_date == latest.c.max_date,
                ),
            )
            .where(ProjectSnapshotModel.tenant_id == tenant_id)
            .order_by(ProjectSnapshotModel.project_id)
        ).scalars().all()
        return [self._to_dto(row) for row in rows]

    def latest_for_project(self, tenant_id: str, project_id: str) -> ProjectSnapshotRow:
        """
        Latest snapshot of a single project.

        Raises:
            ProjectNotFoundError: If the project has no snapshot rows.
        """
        row = self.session.execute(
            select(ProjectSnapshotModel)
            .where(
                ProjectSnapshotModel.tenant_id == tenant_id,
                ProjectSnapshotModel.project_id == project_id,
            )
            .order_by(ProjectSnapshotModel.snapshot_date.desc())
            .limit(1)
        ).scalar_one_or_none()
        if row is None:
            raise ProjectNotFoundError(tenant_id, project_id)
        return self._to_dto(row)

    def project_ids(self, tenant_id: str) -> list[str]:
        """Distinct project ids with snapshots for the tenant, sorted."""
        return list(self.session.execute(
            select(ProjectSnapshotModel.project_id)
            .where(ProjectSnapshotModel.tenant_id == tenant_id)
            .distinct()
            .order_by(ProjectSnapshotModel.project_id)
        ).scalars().all())

    @staticmethod
    def _to_dto(row: ProjectSnapshotModel) -> ProjectSnapshotRow:
        return ProjectSnapshotRow(
            project_id=row.project_id,
            project_name=row.project_name,
            snapshot_date=row.snapshot_date,
            base=BaseSnapshot.of(row.pv, row.ev, row.ac, row.bac, row.currency),
        )
