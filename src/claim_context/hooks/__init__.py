"""Observability hooks: structured logging and per-run stage tracking."""

from __future__ import annotations

from claim_context.hooks.logging_config import setup_logging
from claim_context.hooks.run_tracker import (
    end_run,
    get_current_run,
    record_guardrail_corrections,
    start_run,
    track_stage,
)

__all__ = [
    "end_run",
    "get_current_run",
    "record_guardrail_corrections",
    "setup_logging",
    "start_run",
    "track_stage",
]
