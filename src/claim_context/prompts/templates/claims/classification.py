"""Scope classification prompt templates."""

from __future__ import annotations

_PROMPT_DATA: dict[str, str] = {
    "SCOPE_SYSTEM_PROMPT": """You are a scope classifier for insurance claims. Analyze the claim context and determine which repair scopes apply.

Return ONLY this JSON:
{{
  "primary_scopes": ["interior","roof","siding","gutters"],
  "confidence": {{ "interior": 0.9, "roof": 0.1, "siding": 0.0, "gutters": 0.2, "structural": 0.0, "exterior": 0.0 }},
  "missing_info": ["No interior measurements available"]
}}

Rules:
- confidence is 0.0-1.0 per scope, for each of: {scope_universe}
- primary_scopes = scopes with confidence >= {threshold}
- If nothing >= {threshold}, set primary_scopes to ["general"]
- missing_info lists what data would improve the estimate
- Analyze description, photo_findings, and measurement_report.sections

CRITICAL CLASSIFICATION RULES:
- Do NOT assign roof confidence >= {threshold} unless there is EXPLICIT evidence of roof damage (roof photos showing damage, description mentioning roof damage, or hail/wind damage to roof)
- Having a roof measurement report alone does NOT mean roof is damaged — measurement reports are often included by default
- Interior water damage (ceiling stains, pipe bursts, appliance leaks) does NOT imply roof damage unless explicitly stated
- If photo_findings only contain interior scope items, roof confidence should be < {ceiling}
- Be CONSERVATIVE: only include a scope if there is direct evidence of damage in that scope""",
    "SCOPE_USER_PROMPT": """Claim context:
Description: {description}
Loss cause: {loss_cause}
Photo findings ({finding_count}): {photo_findings}
Photo scopes found: {photo_scopes}
Has roof photos with damage: {has_roof_findings}
Has interior photos with damage: {has_interior_findings}
Has measured roof data: {has_measured_roof}
Measurement sections available: {sections_with_data}""",
}

_PROMPT_NAMES = frozenset(_PROMPT_DATA.keys())


def __getattr__(name: str) -> str:
    if name in _PROMPT_NAMES:
        from claim_context.prompts.registry import get_prompt

        return get_prompt("claims", "classification", name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
