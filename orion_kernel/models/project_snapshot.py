"""
Module: orion_kernel.models.project_snapshot
Responsibility: ORM mapping of project-level EVM snapshots (one row per
    project per snapshot date), used for portfolio views that do not need
    WBS detail.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from orion_kernel.db.base import Base


class ProjectSnapshotModel(Base):
    """Project-level PV/EV/AC/BAC at a snapshot date."""

    __tablename__ = "project_snapshots"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "project_id",
            "snapshot_date",
            name="uq_project_snapshot",
        ),
        Index("idx_project_snapshot_tenant", "tenant_id", "snapshot_date"),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)

    pv: Mapped[Decimal | None] = mapped_column(nullable=True)
    ev: Mapped[Decimal | None] = mapped_column(nullable=True)
    ac: Mapped[Decimal | None] = mapped_column(nullable=True)
    bac: Mapped[Decimal | None] = mapped_column(nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    def __repr__(self) -> str:
        return f"<ProjectSnapshot {self.project_id} @ {self.snapshot_date}>"
