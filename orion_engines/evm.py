"""
Earned Value Management (EVM) Calculations -- Pure Functions.

All functions are pure: no I/O, no side effects, no database.
They compute EVM metrics from a ``BaseSnapshot``.

Undefined ratios (zero PV, zero AC, no remaining budget) are ``None``,
never 0 or 1.  Nothing here rounds: values keep full Decimal precision so
that multi-level rollups do not accumulate rounding error.  Rounding
happens once, in ``orion_services.serialization``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from orion_kernel.domain.values import BaseSnapshot

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class DerivedMetrics:
    """
    Metrics derived from one BaseSnapshot.

    ``sv = ev - pv``, ``cv = ev - ac``, ``vac = bac - eac``, ``etc = eac - ac``.
    """

    spi: Decimal | None   # Schedule Performance Index
    cpi: Decimal | None   # Cost Performance Index
    sv: Decimal           # Schedule Variance
    cv: Decimal           # Cost Variance
    eac: Decimal          # Estimate at Completion
    etc: Decimal          # Estimate to Complete
    vac: Decimal          # Variance at Completion
    tcpi: Decimal | None  # To-Complete Performance Index
    percent_complete: int


def calculate_spi(ev: Decimal, pv: Decimal) -> Decimal | None:
    """Schedule Performance Index = EV / PV. >1 = ahead of schedule."""
    if pv <= 0:
        return None
    return ev / pv


def calculate_cpi(ev: Decimal, ac: Decimal) -> Decimal | None:
    """Cost Performance Index = EV / AC. >1 = under budget."""
    if ac <= 0:
        return None
    return ev / ac


def calculate_eac(bac: Decimal, cpi: Decimal | None) -> Decimal:
    """
    Estimate at Completion = BAC / CPI.

    Without a positive CPI there is no cost performance to extrapolate;
    the budget itself is the estimate.
    """
    if cpi is None or cpi <= 0:
        return bac
    return bac / cpi


def calculate_etc(eac: Decimal, ac: Decimal) -> Decimal:
    """Estimate to Complete = EAC - AC."""
    return eac - ac


def calculate_vac(bac: Decimal, eac: Decimal) -> Decimal:
    """Variance at Completion = BAC - EAC."""
    return bac - eac


def calculate_tcpi(bac: Decimal, ev: Decimal, ac: Decimal) -> Decimal | None:
    """To-Complete Performance Index = (BAC - EV) / (BAC - AC)."""
    remaining_budget = bac - ac
    if remaining_budget == 0:
        return None
    return (bac - ev) / remaining_budget


def calculate_percent_complete(ev: Decimal, bac: Decimal) -> int:
    """EV as a whole percentage of BAC, half-up; 0 when there is no budget."""
    if bac <= 0:
        return 0
    return int((ev / bac * _HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_derived(base: BaseSnapshot) -> DerivedMetrics:
    """
    Derive the full EVM metric set from a snapshot.

    Preconditions:
        ``base`` is a valid BaseSnapshot (non-negative Decimal amounts).

    Postconditions:
        Returns a DerivedMetrics whose variance identities hold exactly.
        The same snapshot always yields an equal result.
    """
    pv, ev, ac, bac = base.pv, base.ev, base.ac, base.bac
    spi = calculate_spi(ev, pv)
    cpi = calculate_cpi(ev, ac)
    eac = calculate_eac(bac, cpi)
    return DerivedMetrics(
        spi=spi,
        cpi=cpi,
        sv=ev - pv,
        cv=ev - ac,
        eac=eac,
        etc=calculate_etc(eac, ac),
        vac=calculate_vac(bac, eac),
        tcpi=calculate_tcpi(bac, ev, ac),
        percent_complete=calculate_percent_complete(ev, bac),
    )
