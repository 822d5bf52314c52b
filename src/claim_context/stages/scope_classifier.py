"""Stage 3: decide which repair scopes the claim covers."""

from __future__ import annotations

import json
import logging
from typing import Any

from claim_context.core.config import AppSettings
from claim_context.exceptions import MalformedOutputError
from claim_context.guardrails import log_corrections
from claim_context.guardrails.scope import (
    clamp_roof_confidence,
    derive_primary_scopes,
    has_roof_evidence,
    normalize_confidence,
)
from claim_context.models import DamageFinding, MeasurementReport, ScopeClassification
from claim_context.prompts.registry import get_prompt
from claim_context.providers.llm.json_parser import extract_json
from claim_context.providers.llm.protocols import IGenerator
from claim_context.scopes import ESTIMATE_SCOPES, Scope

log = logging.getLogger(__name__)


def string_list(value: Any) -> list[str]:
    """Coerce a generator list-of-strings field; a bare string becomes one entry."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None and str(v).strip()]
    raise MalformedOutputError(f"Expected a list of strings, got {type(value).__name__}")


class ScopeClassifier:
    """Assigns per-scope confidence, then applies the conservative roof guardrail.

    The generator's ``primary_scopes`` is advisory only: the returned set is
    always recomputed from the clamped confidence map.
    """

    def __init__(self, generator: IGenerator, settings: AppSettings) -> None:
        self._generator = generator
        self._settings = settings

    def _user_prompt(
        self,
        description: str,
        loss_cause: str | None,
        findings: list[DamageFinding],
        report: MeasurementReport | None,
    ) -> str:
        photo_scopes = list(dict.fromkeys(f.scope for f in findings))
        return get_prompt("claims", "classification", "SCOPE_USER_PROMPT").format(
            description=description or "none",
            loss_cause=loss_cause or "unknown",
            finding_count=len(findings),
            photo_findings=json.dumps([f.model_dump(mode="json") for f in findings]),
            photo_scopes=json.dumps(photo_scopes),
            has_roof_findings=str(Scope.ROOF.value in photo_scopes).lower(),
            has_interior_findings=str(Scope.INTERIOR.value in photo_scopes).lower(),
            has_measured_roof=str(report is not None and report.section_has_data("roof")).lower(),
            sections_with_data=json.dumps(report.sections_with_data() if report else []),
        )

    async def classify(
        self,
        description: str | None,
        loss_cause: str | None,
        photo_findings: list[DamageFinding] | None,
        measurement_report: MeasurementReport | None,
    ) -> ScopeClassification:
        cfg = self._settings.pipeline
        description = description or ""
        findings = photo_findings or []

        system_prompt = get_prompt("claims", "classification", "SCOPE_SYSTEM_PROMPT").format(
            scope_universe=", ".join(ESTIMATE_SCOPES),
            threshold=cfg.scope_threshold,
            ceiling=cfg.roof_confidence_ceiling,
        )
        raw = await self._generator.complete(
            self._user_prompt(description, loss_cause, findings, measurement_report),
            system_prompt=system_prompt,
            model=self._settings.model_for("classification"),
        )
        parsed = extract_json(raw, expect=dict)
        if not isinstance(parsed, dict):
            raise MalformedOutputError("Scope classification response is not a JSON object", raw_response=raw)

        confidence, corrections = normalize_confidence(parsed.get("confidence"))
        confidence, roof_fixes = clamp_roof_confidence(
            confidence,
            roof_evidence=has_roof_evidence(description, findings, cfg.roof_keywords),
            ceiling=cfg.roof_confidence_ceiling,
        )
        primary, primary_fixes = derive_primary_scopes(
            confidence,
            threshold=cfg.scope_threshold,
            proposed=parsed.get("primary_scopes"),
        )
        corrections += roof_fixes + primary_fixes
        log_corrections("classify", corrections)

        classification = ScopeClassification(
            confidence=confidence,
            primary_scopes=primary,
            missing_info=string_list(parsed.get("missing_info")),
        )
        log.info("Classified claim scopes: primary=%s", classification.primary_scopes)
        return classification
