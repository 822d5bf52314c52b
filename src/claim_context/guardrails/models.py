"""Guardrail correction records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class GuardrailRule(str, Enum):
    """Deterministic corrections applied to untrusted generator output."""

    SCOPE_ENUM = "GR-SCOPE-ENUM"
    CONFIDENCE_RANGE = "GR-CONFIDENCE-RANGE"
    UNKNOWN_SCOPE = "GR-UNKNOWN-SCOPE"
    ROOF_EVIDENCE = "GR-ROOF-EVIDENCE"
    PRIMARY_RECOMPUTE = "GR-PRIMARY-RECOMPUTE"
    EXCLUDED_SCOPE = "GR-EXCLUDED-SCOPE"
    MEASURED_BASIS = "GR-MEASURED-BASIS"
    ALLOWANCE_ASSUMPTIONS = "GR-ALLOWANCE-ASSUMPTIONS"
    OP_LINE = "GR-OP-LINE"


@dataclass(frozen=True)
class GuardrailCorrection:
    """One change made to generator output to satisfy an invariant."""

    rule: GuardrailRule
    stage: str
    message: str
    field_path: str = ""
    actual_value: str = ""
    corrected_value: str = ""
