"""Orchestration and record-keeping around the four stages."""

from __future__ import annotations

from claim_context.services.pipeline_service import ClaimContextPipeline
from claim_context.services.pipeline_store import PipelineStore

__all__ = ["ClaimContextPipeline", "PipelineStore"]
