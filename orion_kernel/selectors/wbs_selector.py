"""
Module: orion_kernel.selectors.wbs_selector
Responsibility: Read the flat WBS record list of a project at its latest
    snapshot date, in the shape ``build_tree`` consumes.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Records are returned in source order (sequence number, then the
      order rows were mirrored).  The tree preserves this order.
    - Only rows of a single snapshot date are returned; mixing dates
      would sum values that were never simultaneously true.

Failure modes:
    - Returns an empty list when the project has no rows.  An empty record
      list is not an error; it rolls up to NO_DATA.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import func, select

from orion_kernel.domain.wbs import SapMapping, WBSRecord
from orion_kernel.logging_config import get_logger
from orion_kernel.models.wbs_metric import WBSMetricModel
from orion_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.wbs")


class WBSSelector(BaseSelector[WBSMetricModel]):
    """Read-side queries over ``wbs_metrics``."""

    def latest_snapshot_date(
        self,
        tenant_id: str,
        project_id: str,
        as_of: date | None = None,
    ) -> date | None:
        """Most recent snapshot date for the project, on or before ``as_of``."""
        query = select(func.max(WBSMetricModel.snapshot_date)).where(
            WBSMetricModel.tenant_id == tenant_id,
            WBSMetricModel.project_id == project_id,
        )
        if as_of is not None:
            query = query.where(WBSMetricModel.snapshot_date <= as_of)
        return self.session.execute(query).scalar_one_or_none()

    def records_for_project(
        self,
        tenant_id: str,
        project_id: str,
        as_of: date | None = None,
    ) -> list[WBSRecord]:
        """Flat WBS records of the latest snapshot on or before ``as_of``."""
        snapshot_date = self.latest_snapshot_date(tenant_id, project_id, as_of)
        if snapshot_date is None:
            logger.info("wbs_records_not_found", extra={
                "tenant_id": tenant_id,
                "project_id": project_id,
            })
            return []

        rows = self.session.execute(
            select(WBSMetricModel)
            .where(
                WBSMetricModel.tenant_id == tenant_id,
                WBSMetricModel.project_id == project_id,
                WBSMetricModel.snapshot_date == snapshot_date,
            )
            .order_by(WBSMetricModel.sequence_number, WBSMetricModel.wbs_code)
        ).scalars().all()

        records = [self._to_record(row) for row in rows]
        logger.debug("wbs_records_loaded", extra={
            "tenant_id": tenant_id,
            "project_id": project_id,
            "snapshot_date": snapshot_date.isoformat(),
            "record_count": len(records),
        })
        return records

    def project_ids(self, tenant_id: str) -> list[str]:
        """Distinct project ids with WBS rows for the tenant, sorted."""
        return list(self.session.execute(
            select(WBSMetricModel.project_id)
            .where(WBSMetricModel.tenant_id == tenant_id)
            .distinct()
            .order_by(WBSMetricModel.project_id)
        ).scalars().all())

    @staticmethod
    def _to_record(row: WBSMetricModel) -> WBSRecord:
        sap_mapping = None
        if row.sap_posid is not None:
            sap_mapping = SapMapping(
                posid=row.sap_posid,
                confidence_score=row.sap_confidence,
                description=row.sap_description,
                mapping_strategy=row.sap_mapping_strategy,
                is_verified=row.sap_verified,
            )
        return WBSRecord(
            id=row.wbs_object_id,
            parent_id=row.parent_object_id,
            code=row.wbs_code,
            name=row.name,
            pv=row.pv,
            ev=row.ev,
            ac=row.ac,
            bac=row.bac,
            currency=row.currency,
            sap_mapping=sap_mapping,
            epc_code=row.epc_code,
        )
