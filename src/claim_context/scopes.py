"""Repair scope vocabulary shared by every stage."""

from __future__ import annotations

from enum import Enum


class Scope(str, Enum):
    """Named categories of repair work used to partition line items."""

    INTERIOR = "interior"
    ROOF = "roof"
    SIDING = "siding"
    GUTTERS = "gutters"
    STRUCTURAL = "structural"
    EXTERIOR = "exterior"
    GENERAL = "general"
    OTHER = "other"


# Scopes a photo finding may carry.
FINDING_SCOPES: tuple[str, ...] = (
    Scope.INTERIOR.value,
    Scope.ROOF.value,
    Scope.SIDING.value,
    Scope.GUTTERS.value,
    Scope.OTHER.value,
)

# Candidate universe for classification and estimation, in display order.
ESTIMATE_SCOPES: tuple[str, ...] = (
    Scope.INTERIOR.value,
    Scope.ROOF.value,
    Scope.SIDING.value,
    Scope.GUTTERS.value,
    Scope.STRUCTURAL.value,
    Scope.EXTERIOR.value,
)

GENERAL_ONLY: list[str] = [Scope.GENERAL.value]

MEASUREMENT_SECTIONS: tuple[str, ...] = ("roof", "gutters", "siding", "interior", "openings")

# Which measurement section can back a ``measured`` quantity for a scope.
# Scopes absent here (structural, general, other) are always allowance-based.
SCOPE_SECTIONS: dict[str, str] = {
    Scope.ROOF.value: "roof",
    Scope.GUTTERS.value: "gutters",
    Scope.SIDING.value: "siding",
    Scope.INTERIOR.value: "interior",
    Scope.EXTERIOR.value: "openings",
}


def primary_scopes_from_confidence(confidence: dict[str, float], threshold: float) -> list[str]:
    """Scopes at or above *threshold* in universe order, else ``["general"]``."""
    primary = [s for s in ESTIMATE_SCOPES if confidence.get(s, 0.0) >= threshold]
    return primary or list(GENERAL_ONLY)


def excluded_scopes(primary_scopes: list[str]) -> list[str]:
    return [s for s in ESTIMATE_SCOPES if s not in primary_scopes]
