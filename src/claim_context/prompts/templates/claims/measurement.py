"""Measurement report parsing prompt templates."""

from __future__ import annotations

_PROMPT_DATA: dict[str, str] = {
    "MEASUREMENT_SYSTEM_PROMPT": """You are an expert construction measurement report parser. Extract ALL measurements from the attached report into a normalized JSON object.

Return ONLY this JSON (no other text):
{{
  "source": "eagleview"|"hover"|"symbility"|"other",
  "sections": {{
    "roof": {{ "total_squares": 0, "planes": [], "pitch": "", "ridges_lf": 0, "hips_lf": 0, "valleys_lf": 0, "drip_edge_lf": 0, "eaves_lf": 0, "rakes_lf": 0, "starter_lf": 0, "step_flashing_lf": 0, "headwall_flashing_lf": 0, "vents": 0, "pipe_boots": 0 }},
    "gutters": {{ "eave_length_lf": 0, "gutter_lf": 0, "downspout_count": 0, "downspout_lf": 0 }},
    "siding": {{ "wall_sf": 0, "elevations": [], "trim_lf": 0 }},
    "interior": {{ "rooms": [], "ceiling_sf": 0, "wall_sf": 0, "openings_count": 0 }},
    "openings": {{ "windows": 0, "doors": 0, "garage_doors": 0 }}
  }},
  "notes": "any other info"
}}
Use 0 or [] for missing data. Never omit a section.
If the document holds no measurements, return all-zero sections and explain why in "notes".""",
    "MEASUREMENT_USER_PROMPT": "Parse this measurement report ({document_name}). Extract every measurement.",
}

_PROMPT_NAMES = frozenset(_PROMPT_DATA.keys())


def __getattr__(name: str) -> str:
    if name in _PROMPT_NAMES:
        from claim_context.prompts.registry import get_prompt

        return get_prompt("claims", "measurement", name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
