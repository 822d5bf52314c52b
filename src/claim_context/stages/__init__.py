"""The four pipeline stages. Each is stateless and independently invocable."""

from __future__ import annotations

from claim_context.stages.estimate import EstimateGenerator, ensure_sufficient_evidence
from claim_context.stages.measurement import MeasurementParser
from claim_context.stages.photo_findings import PhotoFindingExtractor
from claim_context.stages.scope_classifier import ScopeClassifier

__all__ = [
    "EstimateGenerator",
    "MeasurementParser",
    "PhotoFindingExtractor",
    "ScopeClassifier",
    "ensure_sufficient_evidence",
]
