"""
Tests for DashboardService (orion_services/dashboard_service.py).

Runs against the in-memory SQLite fixture: WBS rows are written with the
conftest helpers, then read back through the selectors and rolled up.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from orion_config.schema import OrionConfig, PresentationConfig
from orion_engines.domains import DomainType
from orion_engines.health import HealthStatus
from orion_kernel.exceptions import OrphanWBSNodeError, WBSCycleError
from orion_services.dashboard_service import DashboardService
from tests.conftest import TEST_TENANT_ID, add_project_snapshot, add_wbs_rows, make_record


@pytest.fixture
def service(db_session, clock):
    return DashboardService(db_session, clock=clock)


@pytest.fixture
def seeded(db_session, epc_records):
    add_wbs_rows(db_session, "10481", epc_records)
    add_wbs_rows(db_session, "BROKEN", [
        make_record("root", None),
        make_record("x", "gone", pv=10, ev=10, ac=10, bac=10),
    ])
    add_wbs_rows(db_session, "CYCLE", [
        make_record("a", "b"),
        make_record("b", "a"),
    ])


class TestProjectRollup:
    def test_rolls_up_from_stored_wbs(self, service, db_session, epc_records):
        add_wbs_rows(db_session, "10481", epc_records)

        result = service.project_rollup(TEST_TENANT_ID, "10481")

        assert result.project_id == "10481"
        assert result.base.ev == Decimal("430")
        assert result.status == HealthStatus.AT_RISK

    def test_project_without_rows_is_no_data(self, service):
        result = service.project_rollup(TEST_TENANT_ID, "empty")
        assert result.status == HealthStatus.NO_DATA
        assert result.leaf_count == 0

    def test_integrity_error_propagates(self, service, seeded, captured_logs):
        with pytest.raises(OrphanWBSNodeError):
            service.project_rollup(TEST_TENANT_ID, "BROKEN")

        rejected = [r for r in captured_logs() if r["message"] == "project_tree_rejected"]
        assert rejected[0]["error_code"] == "WBS_ORPHAN_NODE"
        assert rejected[0]["project_id"] == "BROKEN"
        assert rejected[0]["tenant_id"] == TEST_TENANT_ID

    def test_domains(self, service, db_session, epc_records):
        add_wbs_rows(db_session, "10481", epc_records)

        domains = service.project_domains(TEST_TENANT_ID, "10481")

        assert len(domains) == 5
        assert domains[0].domain == DomainType.ENGINEERING
        assert domains[1].base.pv == Decimal("400")


class TestProjectTree:
    def test_tree_view(self, service, db_session, epc_records):
        add_wbs_rows(db_session, "10481", epc_records)

        view = service.project_tree(TEST_TENANT_ID, "10481")

        assert view.tree.project_id == "10481"
        assert len(view.tree) == 6
        assert view.totals["P"].base.pv == Decimal("400")
        assert view.state.expanded_ids == {"root"}

    def test_explicit_expansion(self, service, db_session, epc_records):
        add_wbs_rows(db_session, "10481", epc_records)

        view = service.project_tree(TEST_TENANT_ID, "10481", expanded_ids=["P"], expand_depth=None)

        assert view.state.expanded_ids == {"P"}

    def test_cycle_propagates(self, service, seeded):
        with pytest.raises(WBSCycleError):
            service.project_tree(TEST_TENANT_ID, "CYCLE")


class TestPortfolio:
    def test_corrupt_projects_reported_not_fatal(self, service, seeded, clock):
        report = service.portfolio(TEST_TENANT_ID)

        assert [p.project_id for p in report.projects] == ["10481", "BROKEN", "CYCLE"]
        assert report.errors == {"BROKEN": "WBS_ORPHAN_NODE", "CYCLE": "WBS_CYCLE"}
        assert report.rollup.total_projects == 3
        assert report.rollup.error_count == 2
        assert report.rollup.at_risk_count == 1
        assert report.rollup.status == HealthStatus.AT_RISK
        assert report.generated_at == clock.now()

    def test_errored_projects_excluded_from_money(self, service, seeded):
        report = service.portfolio(TEST_TENANT_ID)

        assert report.financials.total_bac == Decimal("1000")
        assert [row.project_id for row in report.comparison] == ["10481"]

    def test_errored_project_has_error_status(self, service, seeded):
        report = service.portfolio(TEST_TENANT_ID)
        broken = next(p for p in report.projects if p.project_id == "BROKEN")
        assert broken.status == HealthStatus.ERROR
        assert broken.error_code == "WBS_ORPHAN_NODE"

    def test_logs_exclusion(self, service, seeded, captured_logs):
        service.portfolio(TEST_TENANT_ID)
        logs = captured_logs()
        excluded = [r for r in logs if r["message"] == "project_excluded_error"]
        assert {r["project_id"] for r in excluded} == {"BROKEN", "CYCLE"}
        generated = [r for r in logs if r["message"] == "portfolio_report_generated"]
        assert generated[0]["error_count"] == 2

    def test_empty_tenant(self, service):
        report = service.portfolio("nobody")
        assert report.projects == ()
        assert report.rollup.total_projects == 0
        assert report.rollup.avg_spi is None
        assert report.rollup.status == HealthStatus.NO_DATA

    def test_uses_configured_currency_for_empty_totals(self, db_session, clock):
        config = OrionConfig(presentation=PresentationConfig(currency="NGN"))
        report = DashboardService(db_session, config=config, clock=clock).portfolio("nobody")
        assert report.financials.currency == "NGN"


class TestPortfolioCurrencies:
    @pytest.fixture
    def eur_service(self, db_session, clock):
        config = OrionConfig(presentation=PresentationConfig(currency="EUR"))
        return DashboardService(db_session, config=config, clock=clock)

    @staticmethod
    def _in(currency, records):
        return [replace(r, currency=currency) for r in records]

    def test_project_before_first_snapshot_takes_configured_currency(
        self, eur_service, db_session, epc_records
    ):
        add_wbs_rows(db_session, "A", self._in("EUR", epc_records), snapshot_date=date(2026, 1, 1))
        add_wbs_rows(db_session, "B", self._in("EUR", epc_records), snapshot_date=date(2026, 3, 1))

        report = eur_service.portfolio(TEST_TENANT_ID, as_of=date(2026, 2, 1))

        late = next(p for p in report.projects if p.project_id == "B")
        assert late.status == HealthStatus.NO_DATA
        assert late.base.currency == "EUR"
        assert report.errors == {}
        assert report.financials.currency == "EUR"
        assert report.financials.total_bac == Decimal("1000")
        assert report.financials.excluded_project_ids == ()

    def test_mixed_currency_leaves_reported_as_error(self, service, db_session, epc_records):
        add_wbs_rows(db_session, "10481", epc_records)
        add_wbs_rows(db_session, "MIXED", [
            make_record("r", None),
            make_record("a", "r", pv=1, bac=1, currency="USD"),
            make_record("b", "r", pv=1, bac=1, currency="NGN"),
        ])

        report = service.portfolio(TEST_TENANT_ID)

        assert report.errors == {"MIXED": "CURRENCY_MISMATCH"}
        mixed = next(p for p in report.projects if p.project_id == "MIXED")
        assert mixed.status == HealthStatus.ERROR
        assert report.financials.total_bac == Decimal("1000")

    def test_project_in_other_currency_left_out_of_totals(
        self, eur_service, db_session, epc_records
    ):
        add_wbs_rows(db_session, "A", self._in("EUR", epc_records))
        add_wbs_rows(db_session, "B", epc_records)

        report = eur_service.portfolio(TEST_TENANT_ID)

        assert report.rollup.total_projects == 2
        assert report.rollup.at_risk_count == 2
        assert report.financials.total_bac == Decimal("1000")
        assert report.financials.excluded_project_ids == ("B",)
        assert [row.project_id for row in report.comparison] == ["A", "B"]


class TestPortfolioFromSnapshots:
    def test_latest_snapshot_per_project(self, service, db_session):
        add_project_snapshot(db_session, "10481", 235_000_000, 192_500_000, 80_000_000, 250_000_000)
        add_project_snapshot(db_session, "OSLOB3", 105, 102, 100, 120)
        add_project_snapshot(db_session, "NEW", 0, 0, 0, 500)

        report = service.portfolio_from_snapshots(TEST_TENANT_ID)

        statuses = {p.project_id: p.status for p in report.projects}
        assert statuses == {
            "10481": HealthStatus.CRITICAL,
            "NEW": HealthStatus.NO_DATA,
            "OSLOB3": HealthStatus.ON_TRACK,
        }
        assert report.rollup.total_projects == 3
        assert report.rollup.no_data_count == 1
        assert report.errors == {}
        assert report.rollup.avg_cpi == (Decimal("2.40625") + Decimal("1.02")) / 2
