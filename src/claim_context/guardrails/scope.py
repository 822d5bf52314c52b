"""Scope classification checks: confidence normalization, roof evidence, primary scope derivation."""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from claim_context.exceptions import MalformedOutputError
from claim_context.guardrails.models import GuardrailCorrection, GuardrailRule
from claim_context.models import DamageFinding
from claim_context.scopes import ESTIMATE_SCOPES, Scope, primary_scopes_from_confidence

_STAGE = "classify"


def has_roof_evidence(
    description: str,
    findings: Iterable[DamageFinding],
    keywords: Iterable[str],
) -> bool:
    """Direct evidence of roof damage: a roof finding or a roof keyword in the description.

    Roof measurement data is deliberately not consulted.
    """
    if any(f.scope == Scope.ROOF.value for f in findings):
        return True
    text = (description or "").lower()
    return any(kw.lower() in text for kw in keywords)


def normalize_confidence(raw: Any) -> tuple[dict[str, float], list[GuardrailCorrection]]:
    """Coerce a generator confidence map onto the scope universe, each value in [0, 1].

    Non-finite values (``NaN`` is valid to ``json.loads``) count as 0.0.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise MalformedOutputError("Scope confidence is not a JSON object")

    corrections: list[GuardrailCorrection] = []
    confidence = {scope: 0.0 for scope in ESTIMATE_SCOPES}

    for key, value in raw.items():
        scope = str(key).strip().lower()
        if scope not in confidence:
            corrections.append(
                GuardrailCorrection(
                    rule=GuardrailRule.UNKNOWN_SCOPE,
                    stage=_STAGE,
                    message="Confidence reported for a scope outside the estimate universe",
                    field_path=f"confidence.{key}",
                    actual_value=str(value),
                    corrected_value="dropped",
                )
            )
            continue
        if value is None:
            value = 0.0
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedOutputError(f"Confidence for {scope!r} is not a number: {value!r}")
        clamped = min(max(float(value), 0.0), 1.0) if math.isfinite(value) else 0.0
        if clamped != value:
            corrections.append(
                GuardrailCorrection(
                    rule=GuardrailRule.CONFIDENCE_RANGE,
                    stage=_STAGE,
                    message="Scope confidence outside [0, 1]",
                    field_path=f"confidence.{scope}",
                    actual_value=str(value),
                    corrected_value=str(clamped),
                )
            )
        confidence[scope] = clamped

    return confidence, corrections


def clamp_roof_confidence(
    confidence: dict[str, float],
    *,
    roof_evidence: bool,
    ceiling: float,
) -> tuple[dict[str, float], list[GuardrailCorrection]]:
    """Cap roof confidence at *ceiling* when there is no direct roof evidence."""
    roof = confidence.get(Scope.ROOF.value, 0.0)
    if roof_evidence or roof <= ceiling:
        return confidence, []
    clamped = {**confidence, Scope.ROOF.value: min(roof, ceiling)}
    return clamped, [
        GuardrailCorrection(
            rule=GuardrailRule.ROOF_EVIDENCE,
            stage=_STAGE,
            message="Roof confidence clamped: no roof finding or roof keyword in description",
            field_path="confidence.roof",
            actual_value=str(roof),
            corrected_value=str(ceiling),
        )
    ]


def derive_primary_scopes(
    confidence: dict[str, float],
    *,
    threshold: float,
    proposed: Any = None,
) -> tuple[list[str], list[GuardrailCorrection]]:
    """Recompute primary scopes from *confidence*; record a correction if the generator disagreed."""
    primary = primary_scopes_from_confidence(confidence, threshold)
    proposed_set = (
        {str(s).strip().lower() for s in proposed} if isinstance(proposed, list) else None
    )
    if proposed_set is None or proposed_set == set(primary):
        return primary, []
    return primary, [
        GuardrailCorrection(
            rule=GuardrailRule.PRIMARY_RECOMPUTE,
            stage=_STAGE,
            message="Generator primary_scopes disagree with the confidence threshold",
            field_path="primary_scopes",
            actual_value=",".join(sorted(proposed_set)),
            corrected_value=",".join(primary),
        )
    ]
