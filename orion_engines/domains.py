"""
orion_engines.domains -- EPCIC phase classification of WBS codes.

Responsibility:
    Map a WBS (or EPC) code to one of the five EPCIC phases by its first
    character.  The mapping is deliberately a single-character prefix
    lookup and must stay that way: dashboards compare these buckets with
    figures produced by the same rule elsewhere.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Failure modes:
    None.  Unrecognized, empty or missing codes fall back to
    CONSTRUCTION.
"""

from __future__ import annotations

from enum import Enum


class DomainType(str, Enum):
    """EPCIC project phase."""

    ENGINEERING = "engineering"
    PROCUREMENT = "procurement"
    CONSTRUCTION = "construction"
    INSTALLATION = "installation"
    COMMISSIONING = "commissioning"

    @property
    def label(self) -> str:
        return DOMAIN_LABELS[self]


DOMAIN_ORDER: tuple[DomainType, ...] = (
    DomainType.ENGINEERING,
    DomainType.PROCUREMENT,
    DomainType.CONSTRUCTION,
    DomainType.INSTALLATION,
    DomainType.COMMISSIONING,
)

DOMAIN_LABELS: dict[DomainType, str] = {
    DomainType.ENGINEERING: "Engineering",
    DomainType.PROCUREMENT: "Procurement",
    DomainType.CONSTRUCTION: "Construction",
    DomainType.INSTALLATION: "Installation",
    DomainType.COMMISSIONING: "Commissioning",
}

_PREFIX_MAP: dict[str, DomainType] = {
    "E": DomainType.ENGINEERING,
    "P": DomainType.PROCUREMENT,
    "C": DomainType.CONSTRUCTION,
    "I": DomainType.INSTALLATION,
    "M": DomainType.COMMISSIONING,
}

FALLBACK_DOMAIN = DomainType.CONSTRUCTION


def classify_domain(wbs_code: str | None) -> DomainType:
    """First character of ``wbs_code``, upper-cased, looked up in the EPCIC map."""
    if not wbs_code:
        return FALLBACK_DOMAIN
    return _PREFIX_MAP.get(wbs_code[0].upper(), FALLBACK_DOMAIN)
