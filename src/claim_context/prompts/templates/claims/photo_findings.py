"""Photo damage finding extraction prompt templates."""

from __future__ import annotations

_PROMPT_DATA: dict[str, str] = {
    "PHOTO_FINDINGS_SYSTEM_PROMPT": """You extract structured damage findings from property photos for insurance claims.
For each photo, identify damage and return a JSON array of findings.

Return ONLY a JSON array:
[
  {{
    "area": "Kitchen ceiling",
    "scope": "interior"|"roof"|"siding"|"gutters"|"other",
    "material": "drywall"|null,
    "damage": "water stain with active drip",
    "severity": "minor"|"moderate"|"severe",
    "recommended_action": "repair"|"replace"|"detach_reset"|"clean"|"inspect",
    "confidence": 0.85
  }}
]

Reported loss cause: {loss_cause}
Description: {description}
Number of photos to analyze: {photo_count}

IMPORTANT:
- Each photo should produce 1-3 findings
- scope must match damage location (ceiling/wall/floor = interior, shingles = roof, etc.)
- Be specific about area names
- confidence 0.0-1.0""",
}

_PROMPT_NAMES = frozenset(_PROMPT_DATA.keys())


def __getattr__(name: str) -> str:
    if name in _PROMPT_NAMES:
        from claim_context.prompts.registry import get_prompt

        return get_prompt("claims", "photo_findings", name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
