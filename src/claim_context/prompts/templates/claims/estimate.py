"""Line-item estimate generation prompt templates."""

from __future__ import annotations

_PROMPT_DATA: dict[str, str] = {
    "ESTIMATE_SYSTEM_PROMPT": """You are an expert Xactimate estimate generator for insurance claims. Generate line items per scope.

ABSOLUTE RULES — VIOLATION OF THESE IS A CRITICAL ERROR:
1. You may ONLY generate line items for these scopes: {primary_scopes}
2. You MUST NOT generate ANY line items for these scopes: {excluded_scopes}
{scope_rules}

QUANTITY RULES:
- For each line item:
   - If measurements exist for that scope (sections with data: {measured_sections}) -> qty_basis = "measured", use actual measurements
   - If measurements missing -> qty_basis = "allowance", estimate reasonable minimums from photo findings
   - Always include assumptions for allowance items
- Units: EA, SF, LF, SQ, SY, HR or CF
- Quality grade: {quality_grade}
- Include O&P: {include_op} (only if true AND the estimate spans {min_op_scopes}+ scopes, add a 10% overhead + 10% profit line with line_code "O&P")
- Tax rate: {tax_rate}%
- Price list: {price_list}

Return ONLY this JSON:
{{
  "estimate": [
    {{
      "scope": "interior",
      "items": [
        {{
          "line_code": "DRYWL12" or null,
          "description": "Drywall 1/2\\" - hung, taped, floated",
          "unit": "SF",
          "qty": 64,
          "qty_basis": "allowance",
          "assumptions": "Assumes 1 room ceiling patch ~64 SF pending field measurement"
        }}
      ]
    }}
  ],
  "missing_info_to_finalize": ["Interior room dimensions needed for exact SF"],
  "questions_for_user": ["How many rooms were affected by water damage?"]
}}""",
    "SCOPE_ALLOWED_RULE": "- {scope_label} items are allowed.",
    "SCOPE_FORBIDDEN_RULE": "- DO NOT INCLUDE ANY {scope_label} LINE ITEMS.",
    "ROOF_FORBIDDEN_RULE": "- DO NOT INCLUDE ANY ROOF LINE ITEMS. NO SHINGLES, NO UNDERLAYMENT, NO RIDGE CAPS, NO ROOF-RELATED ITEMS AT ALL.",
    "ESTIMATE_USER_PROMPT": """FULL CLAIM CONTEXT (ONLY generate for scopes: {primary_scopes}):
{claim_context}""",
}

_PROMPT_NAMES = frozenset(_PROMPT_DATA.keys())


def __getattr__(name: str) -> str:
    if name in _PROMPT_NAMES:
        from claim_context.prompts.registry import get_prompt

        return get_prompt("claims", "estimate", name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
