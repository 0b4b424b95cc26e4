"""
Tests for the EVM metric calculator (orion_engines/evm.py).

Covers the individual index formulas, the undefined-ratio rules (a missing
index is None, never 0 or 1), and the dashboard reference scenario.
"""

from decimal import Decimal

import pytest

from orion_engines.evm import (
    DerivedMetrics,
    calculate_cpi,
    calculate_eac,
    calculate_etc,
    calculate_percent_complete,
    calculate_spi,
    calculate_tcpi,
    calculate_vac,
    compute_derived,
)
from orion_kernel.domain.values import BaseSnapshot


def _close(actual, expected, tolerance="0.0001"):
    return abs(Decimal(actual) - Decimal(expected)) < Decimal(tolerance)


class TestIndexFormulas:
    def test_spi(self):
        assert calculate_spi(Decimal("90"), Decimal("100")) == Decimal("0.9")

    def test_spi_undefined_without_planned_value(self):
        assert calculate_spi(Decimal("90"), Decimal("0")) is None

    def test_cpi(self):
        assert calculate_cpi(Decimal("90"), Decimal("60")) == Decimal("1.5")

    def test_cpi_undefined_without_actual_cost(self):
        assert calculate_cpi(Decimal("90"), Decimal("0")) is None

    def test_eac_divides_budget_by_cpi(self):
        assert calculate_eac(Decimal("1000"), Decimal("0.8")) == Decimal("1250")

    def test_eac_falls_back_to_budget_without_cpi(self):
        assert calculate_eac(Decimal("1000"), None) == Decimal("1000")

    def test_eac_falls_back_to_budget_for_zero_cpi(self):
        """Work was paid for but nothing was earned: CPI is 0, not undefined."""
        assert calculate_eac(Decimal("1000"), Decimal("0")) == Decimal("1000")

    def test_etc_and_vac(self):
        assert calculate_etc(Decimal("1250"), Decimal("400")) == Decimal("850")
        assert calculate_vac(Decimal("1000"), Decimal("1250")) == Decimal("-250")

    def test_tcpi(self):
        assert calculate_tcpi(Decimal("1000"), Decimal("400"), Decimal("500")) == Decimal("1.2")

    def test_tcpi_undefined_when_budget_spent(self):
        assert calculate_tcpi(Decimal("1000"), Decimal("400"), Decimal("1000")) is None

    def test_tcpi_defined_when_overspent(self):
        # Negative remaining budget is still a defined ratio.
        assert calculate_tcpi(Decimal("100"), Decimal("50"), Decimal("150")) == Decimal("-1")


class TestPercentComplete:
    @pytest.mark.parametrize("ev,bac,expected", [
        ("0", "200", 0),
        ("50", "200", 25),
        ("1", "200", 1),      # 0.5% rounds half up
        ("0.99", "200", 0),   # 0.495%
        ("199", "200", 100),  # 99.5%
        ("300", "200", 150),  # over-earned is not clamped
    ])
    def test_half_up_rounding(self, ev, bac, expected):
        assert calculate_percent_complete(Decimal(ev), Decimal(bac)) == expected

    def test_zero_without_budget(self):
        assert calculate_percent_complete(Decimal("50"), Decimal("0")) == 0

    def test_returns_int(self):
        assert isinstance(calculate_percent_complete(Decimal("50"), Decimal("200")), int)


class TestComputeDerived:
    def test_reference_scenario(self):
        """PV 235M, EV 192.5M, AC 80M, BAC 250M."""
        base = BaseSnapshot.of(235_000_000, 192_500_000, 80_000_000, 250_000_000)
        d = compute_derived(base)

        assert _close(d.spi, "0.8191")
        assert d.cpi == Decimal("2.40625")
        assert d.sv == Decimal("-42500000")
        assert d.cv == Decimal("112500000")
        assert _close(d.eac, "103896103.896", "0.001")
        assert _close(d.vac, "146103896.104", "0.001")
        assert _close(d.etc, "23896103.896", "0.001")
        assert _close(d.tcpi, "0.3382")
        assert d.percent_complete == 77

    def test_all_zero_snapshot(self):
        d = compute_derived(BaseSnapshot.zero())
        assert d.spi is None
        assert d.cpi is None
        assert d.tcpi is None
        assert d.eac == Decimal("0")
        assert d.etc == Decimal("0")
        assert d.vac == Decimal("0")
        assert d.percent_complete == 0

    def test_no_actual_cost_uses_budget_as_estimate(self):
        d = compute_derived(BaseSnapshot.of(100, 50, 0, 400))
        assert d.cpi is None
        assert d.eac == Decimal("400")
        assert d.etc == Decimal("400")
        assert d.vac == Decimal("0")

    def test_variance_identities(self):
        base = BaseSnapshot.of("1234.5", "987.25", "1100", "5000")
        d = compute_derived(base)
        assert d.sv == base.ev - base.pv
        assert d.cv == base.ev - base.ac
        assert d.etc == d.eac - base.ac
        assert d.vac == base.bac - d.eac

    def test_no_rounding_applied(self):
        d = compute_derived(BaseSnapshot.of(3, 1, 3, 3))
        assert d.spi == Decimal(1) / Decimal(3)

    def test_deterministic(self):
        base = BaseSnapshot.of(235, 192, 80, 250)
        assert compute_derived(base) == compute_derived(base)

    def test_result_is_frozen(self):
        d = compute_derived(BaseSnapshot.of(1, 1, 1, 1))
        assert isinstance(d, DerivedMetrics)
        with pytest.raises(AttributeError):
            d.spi = Decimal("2")
