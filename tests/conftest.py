"""Shared fixtures for claim-context tests."""

from __future__ import annotations

import pytest

from claim_context.core.config import AppSettings, LLMConfig, PersistenceConfig, PipelineConfig
from claim_context.models import (
    ClaimContext,
    ClaimPhoto,
    DamageFinding,
    MeasurementReport,
    ScopeClassification,
)
from claim_context.prompts import reset as reset_prompts
from tests.fakes.fake_generator import FakeGenerator
from tests.fakes.payloads import KITCHEN_DESCRIPTION


@pytest.fixture(autouse=True)
def _fresh_prompt_registry():
    reset_prompts()
    yield
    reset_prompts()


@pytest.fixture
def settings() -> AppSettings:
    """Default test settings (local model name, in-memory persistence)."""
    return AppSettings(
        llm=LLMConfig(provider="ollama", model="test-model", api_key="no-key"),
        pipeline=PipelineConfig(stage_timeout=5.0),
        persistence=PersistenceConfig(backend="memory"),
    )


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def kitchen_finding() -> DamageFinding:
    return DamageFinding(
        area="Kitchen ceiling",
        scope="interior",
        damage="water stain",
        severity="moderate",
        recommended_action="repair",
        confidence=0.9,
    )


@pytest.fixture
def roof_only_report() -> MeasurementReport:
    """A roof report attached by default, unrelated to an interior loss."""
    return MeasurementReport.model_validate(
        {"source": "eagleview", "sections": {"roof": {"total_squares": 22, "pitch": "6/12"}}}
    )


@pytest.fixture
def kitchen_context(kitchen_finding: DamageFinding, roof_only_report: MeasurementReport) -> ClaimContext:
    return ClaimContext(
        claim_id="CLM-1001",
        description=KITCHEN_DESCRIPTION,
        loss_cause="water",
        photos=[ClaimPhoto(id="p1", file_name="kitchen.jpg", category="interior")],
        measurement_report=roof_only_report,
        photo_findings=[kitchen_finding],
        scope_classification=ScopeClassification(
            confidence={"interior": 0.9, "roof": 0.2, "siding": 0.0, "gutters": 0.0, "structural": 0.0, "exterior": 0.0},
            primary_scopes=["interior"],
        ),
    )
