"""
Module: orion_kernel.models.wbs_metric
Responsibility: ORM mapping of the mirrored per-WBS EVM metrics table
    (one row per WBS element per snapshot date, with the SAP mapping
    overlay denormalized onto the row).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (tenant_id, project_id, wbs_object_id, snapshot_date) is unique.
    - Amounts are Numeric(38, 9); null amounts are read as zero by the
      domain layer.

Non-goals:
    - This table is written by the P6/SAP sync jobs.  Nothing in this
      repository inserts or updates rows outside of tests.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from orion_kernel.db.base import Base


class WBSMetricModel(Base):
    """Snapshot of one WBS element's PV/EV/AC/BAC at a snapshot date."""

    __tablename__ = "wbs_metrics"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "project_id",
            "wbs_object_id",
            "snapshot_date",
            name="uq_wbs_metric_snapshot",
        ),
        Index("idx_wbs_metric_project", "tenant_id", "project_id", "snapshot_date"),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # P6 identifiers
    wbs_object_id: Mapped[str] = mapped_column(String(64), nullable=False)
    parent_object_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    wbs_code: Mapped[str] = mapped_column(String(100), nullable=False)
    epc_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)

    pv: Mapped[Decimal | None] = mapped_column(nullable=True)
    ev: Mapped[Decimal | None] = mapped_column(nullable=True)
    ac: Mapped[Decimal | None] = mapped_column(nullable=True)
    bac: Mapped[Decimal | None] = mapped_column(nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    # SAP mapping overlay (PRPS)
    sap_posid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sap_description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sap_mapping_strategy: Mapped[str | None] = mapped_column(String(50), nullable=True)
    sap_confidence: Mapped[Decimal | None] = mapped_column(nullable=True)
    sap_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<WBSMetric {self.project_id}/{self.wbs_object_id} "
            f"{self.wbs_code} @ {self.snapshot_date}>"
        )
