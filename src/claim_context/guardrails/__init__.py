"""Post-generation guardrails.

Each check takes untrusted generator output and returns the corrected value
together with the ``GuardrailCorrection`` records describing what changed.
``log_corrections`` emits them under a dedicated event name so model drift
shows up in logs separately from clean passes.
"""

from __future__ import annotations

import logging

from claim_context.guardrails.models import GuardrailCorrection, GuardrailRule
from claim_context.hooks.run_tracker import record_guardrail_corrections

log = logging.getLogger(__name__)

__all__ = ["GuardrailCorrection", "GuardrailRule", "log_corrections"]


def log_corrections(stage: str, corrections: list[GuardrailCorrection]) -> None:
    """Log each correction at WARNING, or a single DEBUG line when none fired."""
    if not corrections:
        log.debug("guardrail_passed stage=%s", stage, extra={"guardrail_stage": stage})
        return
    record_guardrail_corrections(len(corrections))
    for c in corrections:
        log.warning(
            "guardrail_correction rule=%s stage=%s field=%s: %s (%s -> %s)",
            c.rule.value, c.stage, c.field_path, c.message, c.actual_value, c.corrected_value,
            extra={
                "guardrail_rule": c.rule.value,
                "guardrail_stage": c.stage,
                "field_path": c.field_path,
            },
        )
