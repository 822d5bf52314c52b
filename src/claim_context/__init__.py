"""claim-context: staged insurance claim estimate generation with scope guardrails.

Four stateless stages thread one ``ClaimContext`` from a measurement report
and claim photos to a scope-constrained line-item estimate::

    from claim_context import AppSettings, ClaimContextPipeline, LLMClient

    settings = AppSettings()
    pipeline = ClaimContextPipeline(LLMClient(settings.llm), settings)
    context = await pipeline.run_all(context, document_bytes=pdf_bytes)
"""

from __future__ import annotations

from claim_context.core.config import AppSettings
from claim_context.exceptions import (
    ClaimContextError,
    InsufficientEvidenceError,
    MalformedOutputError,
    NonRetryableError,
    RetryableError,
    TransportError,
)
from claim_context.models import (
    ClaimContext,
    ClaimPhoto,
    DamageFinding,
    EstimateLineItem,
    EstimateResult,
    EstimateScopeGroup,
    MeasurementReport,
    ScopeClassification,
    UserOverrides,
)
from claim_context.providers.llm.client import LLMClient
from claim_context.services.pipeline_service import ClaimContextPipeline

__all__ = [
    "AppSettings",
    "ClaimContext",
    "ClaimContextError",
    "ClaimContextPipeline",
    "ClaimPhoto",
    "DamageFinding",
    "EstimateLineItem",
    "EstimateResult",
    "EstimateScopeGroup",
    "InsufficientEvidenceError",
    "LLMClient",
    "MalformedOutputError",
    "MeasurementReport",
    "NonRetryableError",
    "RetryableError",
    "ScopeClassification",
    "TransportError",
    "UserOverrides",
]
