"""
Pytest fixtures for the ORION analytics test suite.

Provides:
- Structured logging configured for the session, with per-test capture
- An in-memory SQLite database with the snapshot tables
- Small WBS record builders shared by the engine and service tests
"""

import json
import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

import orion_kernel.models  # noqa: F401  (registers tables on Base.metadata)
from orion_kernel.db.base import Base
from orion_kernel.domain.clock import DeterministicClock
from orion_kernel.domain.wbs import WBSRecord
from orion_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from orion_kernel.models import ProjectSnapshotModel, WBSMetricModel

TEST_TENANT_ID = "tenant-ohio"
SNAPSHOT_DATE = date(2026, 1, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture orion logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            rollup(tree)
            logs = captured_logs()
            assert any(r["message"] == "project_rollup_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("orion")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC))


# =============================================================================
# Record builders
# =============================================================================


def make_record(
    node_id,
    parent_id=None,
    code="C",
    pv=0,
    ev=0,
    ac=0,
    bac=0,
    name=None,
    **kwargs,
) -> WBSRecord:
    """WBSRecord with integer amounts converted to Decimal."""
    return WBSRecord(
        id=node_id,
        parent_id=parent_id,
        code=code,
        name=name or f"WBS {node_id}",
        pv=Decimal(pv),
        ev=Decimal(ev),
        ac=Decimal(ac),
        bac=Decimal(bac),
        **kwargs,
    )


@pytest.fixture
def epc_records() -> list[WBSRecord]:
    """
    A small EPC project::

        root (no amounts)
        +-- E  engineering leaf   pv 100 ev  90 ac  80 bac 200
        +-- P  procurement group
        |   +-- P.1 leaf          pv 300 ev 240 ac 300 bac 500
        |   +-- P.2 leaf          pv 100 ev 100 ac 100 bac 100
        +-- C  construction leaf  pv   0 ev   0 ac   0 bac 200
    """
    return [
        make_record("root", None, code="PRJ", pv=999, ev=999, ac=999, bac=999),
        make_record("E", "root", code="E.100", pv=100, ev=90, ac=80, bac=200),
        make_record("P", "root", code="P.000"),
        make_record("P.1", "P", code="P.100", pv=300, ev=240, ac=300, bac=500),
        make_record("P.2", "P", code="P.200", pv=100, ev=100, ac=100, bac=100),
        make_record("C", "root", code="C.100", pv=0, ev=0, ac=0, bac=200),
    ]


def add_wbs_rows(session, project_id, records, snapshot_date=SNAPSHOT_DATE, tenant_id=TEST_TENANT_ID):
    """Insert WBSRecords as wbs_metrics rows, preserving list order as sequence."""
    for seq, record in enumerate(records):
        sap = record.sap_mapping
        session.add(WBSMetricModel(
            tenant_id=tenant_id,
            project_id=project_id,
            wbs_object_id=str(record.id),
            parent_object_id=str(record.parent_id) if record.parent_id is not None else None,
            wbs_code=record.code,
            epc_code=record.epc_code,
            name=record.name,
            sequence_number=seq,
            snapshot_date=snapshot_date,
            pv=record.pv,
            ev=record.ev,
            ac=record.ac,
            bac=record.bac,
            currency=record.currency,
            sap_posid=sap.posid if sap else None,
            sap_description=sap.description if sap else None,
            sap_mapping_strategy=sap.mapping_strategy if sap else None,
            sap_confidence=sap.confidence_score if sap else None,
            sap_verified=sap.is_verified if sap else False,
        ))
    session.flush()


def add_project_snapshot(
    session,
    project_id,
    pv,
    ev,
    ac,
    bac,
    snapshot_date=SNAPSHOT_DATE,
    tenant_id=TEST_TENANT_ID,
    name=None,
):
    session.add(ProjectSnapshotModel(
        tenant_id=tenant_id,
        project_id=project_id,
        project_name=name,
        snapshot_date=snapshot_date,
        pv=Decimal(pv) if pv is not None else None,
        ev=Decimal(ev) if ev is not None else None,
        ac=Decimal(ac) if ac is not None else None,
        bac=Decimal(bac) if bac is not None else None,
    ))
    session.flush()
