"""Photo finding checks: scope enum closure and confidence range."""

from __future__ import annotations

import math
from typing import Any

from pydantic import ValidationError

from claim_context.exceptions import MalformedOutputError
from claim_context.guardrails.models import GuardrailCorrection, GuardrailRule
from claim_context.models import DamageFinding
from claim_context.scopes import FINDING_SCOPES, Scope

_STAGE = "extract"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def sanitize_findings(raw: Any) -> tuple[list[DamageFinding], list[GuardrailCorrection]]:
    """Validate generator findings, coercing out-of-enum scopes to ``other``.

    Accepts a bare array or an object wrapping one under ``findings`` /
    ``photo_findings``.  Anything else is malformed output.
    """
    if isinstance(raw, dict):
        raw = raw.get("findings", raw.get("photo_findings"))
    if not isinstance(raw, list):
        raise MalformedOutputError("Photo findings response is not a JSON array")

    findings: list[DamageFinding] = []
    corrections: list[GuardrailCorrection] = []

    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise MalformedOutputError(f"Photo finding [{i}] is not a JSON object")
        item = dict(item)

        scope = item.get("scope")
        normalized = scope.strip().lower() if isinstance(scope, str) else scope
        if normalized not in FINDING_SCOPES:
            corrections.append(
                GuardrailCorrection(
                    rule=GuardrailRule.SCOPE_ENUM,
                    stage=_STAGE,
                    message="Finding scope outside the allowed set",
                    field_path=f"photo_findings[{i}].scope",
                    actual_value=str(scope),
                    corrected_value=Scope.OTHER.value,
                )
            )
            item["scope"] = Scope.OTHER.value

        confidence = item.get("confidence")
        if _is_number(confidence) and not 0.0 <= confidence <= 1.0:
            clamped = min(max(float(confidence), 0.0), 1.0) if math.isfinite(confidence) else 0.0
            corrections.append(
                GuardrailCorrection(
                    rule=GuardrailRule.CONFIDENCE_RANGE,
                    stage=_STAGE,
                    message="Finding confidence outside [0, 1]",
                    field_path=f"photo_findings[{i}].confidence",
                    actual_value=str(confidence),
                    corrected_value=str(clamped),
                )
            )
            item["confidence"] = clamped

        try:
            findings.append(DamageFinding.model_validate(item))
        except ValidationError as exc:
            raise MalformedOutputError(f"Photo finding [{i}] failed validation: {exc}") from exc

    return findings, corrections
