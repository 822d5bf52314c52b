"""Stage 4: generate scope-constrained line items from the full claim context."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from claim_context.core.config import AppSettings
from claim_context.exceptions import InsufficientEvidenceError, MalformedOutputError
from claim_context.guardrails import log_corrections
from claim_context.guardrails.estimate import (
    enforce_allowance_assumptions,
    enforce_measured_basis,
    enforce_op_line,
    filter_excluded_scopes,
)
from claim_context.models import ClaimContext, EstimateResult, EstimateScopeGroup
from claim_context.prompts.registry import get_prompt
from claim_context.providers.llm.json_parser import extract_json
from claim_context.providers.llm.protocols import IGenerator
from claim_context.scopes import (
    ESTIMATE_SCOPES,
    GENERAL_ONLY,
    Scope,
    excluded_scopes,
    primary_scopes_from_confidence,
)
from claim_context.stages.scope_classifier import string_list

log = logging.getLogger(__name__)

INSUFFICIENT_EVIDENCE_MESSAGE = (
    "Insufficient information. Need at least one of: photo findings, "
    "claim description, or measurements."
)
NO_MATCHING_ITEMS_NOTE = "No line items matched the identified scopes. More detail needed."


def ensure_sufficient_evidence(context: ClaimContext) -> None:
    """Refuse to estimate from nothing.

    Raises:
        InsufficientEvidenceError: When description, findings and measurements are all empty.
    """
    has_description = bool(context.description.strip())
    has_findings = bool(context.photo_findings)
    has_measurements = context.measurement_report is not None and context.measurement_report.has_data()
    if not (has_description or has_findings or has_measurements):
        raise InsufficientEvidenceError(INSUFFICIENT_EVIDENCE_MESSAGE)


def resolve_primary_scopes(context: ClaimContext, threshold: float) -> list[str]:
    """In-scope set for the estimate, re-derived from confidence whenever one is present."""
    classification = context.scope_classification
    if classification is None:
        return list(GENERAL_ONLY)
    if classification.confidence:
        return primary_scopes_from_confidence(classification.confidence, threshold)
    return list(classification.primary_scopes) or list(GENERAL_ONLY)


def _scope_rules(primary: list[str]) -> str:
    rules = []
    for scope in ESTIMATE_SCOPES:
        if scope in primary:
            rule = get_prompt("claims", "estimate", "SCOPE_ALLOWED_RULE").format(scope_label=scope.capitalize())
        elif scope == Scope.ROOF.value:
            rule = get_prompt("claims", "estimate", "ROOF_FORBIDDEN_RULE")
        else:
            rule = get_prompt("claims", "estimate", "SCOPE_FORBIDDEN_RULE").format(scope_label=scope.upper())
        rules.append(rule)
    return "\n".join(rules)


class EstimateGenerator:
    """Produces an ``EstimateResult`` restricted to the classified primary scopes."""

    def __init__(self, generator: IGenerator, settings: AppSettings) -> None:
        self._generator = generator
        self._settings = settings

    def _prompts(self, context: ClaimContext, primary: list[str]) -> tuple[str, str]:
        overrides = context.user_overrides
        report = context.measurement_report
        system_prompt = get_prompt("claims", "estimate", "ESTIMATE_SYSTEM_PROMPT").format(
            primary_scopes=json.dumps(primary),
            excluded_scopes=json.dumps(excluded_scopes(primary)),
            scope_rules=_scope_rules(primary),
            measured_sections=json.dumps(report.sections_with_data() if report else []),
            quality_grade=overrides.quality_grade,
            include_op=str(overrides.include_op).lower(),
            min_op_scopes=self._settings.pipeline.min_op_scopes,
            tax_rate=overrides.tax_rate,
            price_list=overrides.price_list or "default",
        )
        payload = context.model_dump(mode="json", exclude={"estimate_result"})
        user_prompt = get_prompt("claims", "estimate", "ESTIMATE_USER_PROMPT").format(
            primary_scopes=json.dumps(primary),
            claim_context=json.dumps(payload, indent=2),
        )
        return system_prompt, user_prompt

    async def generate(self, context: ClaimContext) -> EstimateResult:
        ensure_sufficient_evidence(context)
        primary = resolve_primary_scopes(context, self._settings.pipeline.scope_threshold)

        system_prompt, user_prompt = self._prompts(context, primary)
        raw = await self._generator.complete(
            user_prompt,
            system_prompt=system_prompt,
            model=self._settings.model_for("estimate"),
        )
        parsed = extract_json(raw, expect=dict)
        if not isinstance(parsed, dict):
            raise MalformedOutputError("Estimate response is not a JSON object", raw_response=raw)

        raw_groups = parsed.get("estimate") or []
        if not isinstance(raw_groups, list) or not all(isinstance(g, dict) for g in raw_groups):
            raise MalformedOutputError("Estimate 'estimate' field is not a list of scope groups", raw_response=raw)

        kept, corrections = filter_excluded_scopes(raw_groups, primary)
        try:
            groups = [EstimateScopeGroup.model_validate(g) for g in kept]
        except ValidationError as exc:
            raise MalformedOutputError(f"Estimate scope group failed validation: {exc}", raw_response=raw) from exc

        groups, fixes = enforce_measured_basis(groups, context.measurement_report)
        corrections += fixes
        groups, fixes = enforce_allowance_assumptions(groups)
        corrections += fixes
        groups, fixes = enforce_op_line(
            groups,
            include_op=context.user_overrides.include_op,
            min_scopes=self._settings.pipeline.min_op_scopes,
        )
        corrections += fixes
        log_corrections("estimate", corrections)

        missing_info = string_list(parsed.get("missing_info_to_finalize"))
        if not groups and Scope.GENERAL.value not in primary:
            missing_info.append(NO_MATCHING_ITEMS_NOTE)

        result = EstimateResult(
            estimate=groups,
            missing_info_to_finalize=missing_info,
            questions_for_user=string_list(parsed.get("questions_for_user")),
        )
        log.info(
            "Generated estimate: scopes=%s line_items=%d corrections=%d",
            result.scopes, result.total_line_items, len(corrections),
        )
        return result
