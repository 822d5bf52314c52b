"""Per-run analytics tracker using ContextVars.

Opt-in and zero overhead when no run is active.

Usage::

    analytics = start_run(claim_id="claim-1")
    with track_stage("classify") as stage:
        ...
    analytics = end_run()
    print(analytics.total_duration_ms)
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Generator

import structlog

from claim_context.models import RunAnalytics, StageMetrics

_current_run: ContextVar[RunAnalytics | None] = ContextVar("claimctx_current_run", default=None)
_current_stage: ContextVar[StageMetrics | None] = ContextVar("claimctx_current_stage", default=None)


def get_current_run() -> RunAnalytics | None:
    """Get the active RunAnalytics, or None if no run is active."""
    return _current_run.get()


def start_run(claim_id: str = "", run_id: str | None = None) -> RunAnalytics:
    """Create and activate a new RunAnalytics for the current context."""
    analytics = RunAnalytics(
        run_id=run_id or uuid.uuid4().hex[:12],
        claim_id=claim_id,
        started_at=datetime.now(timezone.utc),
        status="running",
    )
    _current_run.set(analytics)
    structlog.contextvars.bind_contextvars(run_id=analytics.run_id)
    return analytics


def end_run() -> RunAnalytics | None:
    """Finalize the current run and return its analytics. Returns None if no run is active."""
    analytics = _current_run.get()
    if analytics is None:
        return None

    analytics.finalize()
    _current_run.set(None)
    structlog.contextvars.unbind_contextvars("run_id")
    return analytics


def record_guardrail_corrections(count: int) -> None:
    """Add *count* corrections to the active stage, if any."""
    stage = _current_stage.get()
    if stage is not None:
        stage.guardrail_corrections += count


@contextmanager
def track_stage(name: str) -> Generator[StageMetrics, None, None]:
    """Context manager that records a StageMetrics entry on the current run.

    Stage timing is always measured; the entry is only appended when a run
    is active.  Exceptions are recorded on the metrics and re-raised.
    """
    analytics = _current_run.get()
    stage = StageMetrics(stage=name, started_at=datetime.now(timezone.utc))
    token = _current_stage.set(stage)
    structlog.contextvars.bind_contextvars(stage=name)

    try:
        yield stage
    except Exception as exc:
        stage.error = f"{type(exc).__name__}: {exc}"
        raise
    finally:
        stage.ended_at = datetime.now(timezone.utc)
        if stage.started_at:
            stage.duration_ms = (stage.ended_at - stage.started_at).total_seconds() * 1000

        if analytics is not None:
            analytics.stages.append(stage)

        _current_stage.reset(token)
        structlog.contextvars.unbind_contextvars("stage")
