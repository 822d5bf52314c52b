"""Integration test: the kitchen-ceiling claim through all four stages via mocked LiteLLM."""

from __future__ import annotations

import base64
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from claim_context.core.config import AppSettings, LLMConfig, PersistenceConfig
from claim_context.models import ClaimContext, ClaimPhoto, PipelineStatus
from claim_context.persistence import create_backend
from claim_context.providers.llm.client import LLMClient
from claim_context.services.pipeline_service import ClaimContextPipeline
from claim_context.services.pipeline_store import PipelineStore
from tests.fakes.payloads import KITCHEN_DESCRIPTION, confidence, estimate_payload, line_item

pytestmark = pytest.mark.integration

MEASUREMENT_REPLY = {
    "source": "eagleview",
    "sections": {
        "roof": {"total_squares": 22, "pitch": "6/12", "ridges_lf": 40},
        "gutters": {"gutter_lf": 0},
        "siding": {},
        "interior": {},
        "openings": {},
    },
    "notes": "",
}

FINDINGS_REPLY = [
    {
        "area": "Kitchen ceiling",
        "scope": "interior",
        "material": "drywall",
        "damage": "water stain",
        "severity": "moderate",
        "recommended_action": "repair",
        "confidence": 0.9,
    }
]

# The model over-reads the roof report attached by default.
CLASSIFICATION_REPLY = {
    "primary_scopes": ["interior", "roof"],
    "confidence": confidence(interior=0.9, roof=0.7),
    "missing_info": ["Interior room dimensions"],
}

ESTIMATE_REPLY = estimate_payload(
    {
        "scope": "interior",
        "items": [
            line_item(),
            line_item(line_code="PNT", description="Seal and paint ceiling", qty=64, qty_basis="measured", assumptions=None),
        ],
    },
    {
        "scope": "roof",
        "items": [line_item(line_code="RFG240", description="Laminated shingles", unit="SQ", qty=22, qty_basis="measured")],
    },
    missing_info_to_finalize=["Kitchen ceiling dimensions"],
    questions_for_user=["Was the pipe repaired by a plumber?"],
)


def _mock_response(payload: Any) -> MagicMock:
    """Build a mock LiteLLM response wrapping *payload* in a code fence."""
    message = MagicMock()
    message.content = f"```json\n{json.dumps(payload)}\n```"
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        llm=LLMConfig(provider="openai", base_url="http://test-llm:4000/v1", api_key="test-key", model="test-model"),
        persistence=PersistenceConfig(backend="file", store_path=tmp_path / "pipelines"),
    )


@pytest.fixture
def pipeline(settings: AppSettings) -> ClaimContextPipeline:
    store = PipelineStore(create_backend(settings.persistence))
    return ClaimContextPipeline(LLMClient(settings.llm), settings, store=store)


@pytest.fixture
def claim() -> ClaimContext:
    return ClaimContext(
        claim_id="CLM-2042",
        description=KITCHEN_DESCRIPTION,
        loss_cause="water",
        photos=[ClaimPhoto(id="p1", file_name="kitchen_ceiling.jpg", category="interior", caption="Brown stain")],
    )


@pytest.mark.asyncio
class TestKitchenCeilingClaim:
    async def test_roof_never_reaches_the_estimate(self, pipeline, claim) -> None:
        replies = [MEASUREMENT_REPLY, FINDINGS_REPLY, CLASSIFICATION_REPLY, ESTIMATE_REPLY]
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp:
            mock_acomp.side_effect = [_mock_response(r) for r in replies]
            result = await pipeline.run_all(
                claim,
                document_bytes=b"%PDF-1.7 eagleview",
                document_name="eagleview.pdf",
                pipeline_id="kitchen",
            )

        assert mock_acomp.call_count == 4
        pdf_block = mock_acomp.call_args_list[0].kwargs["messages"][-1]["content"][1]
        assert pdf_block["image_url"]["url"].endswith(base64.b64encode(b"%PDF-1.7 eagleview").decode())

        assert result.measurement_report.section_has_data("roof")
        assert [f.scope for f in result.photo_findings] == ["interior"]

        classification = result.scope_classification
        assert classification.confidence["roof"] <= 0.2
        assert classification.primary_scopes == ["interior"]

        estimate = result.estimate_result
        assert estimate.scopes == ["interior"]
        assert estimate.total_line_items == 2
        painted = estimate.estimate[0].items[1]
        assert painted.qty_basis == "allowance"
        assert painted.assumptions
        assert estimate.questions_for_user == ["Was the pipe repaired by a plumber?"]

        estimate_prompt = mock_acomp.call_args_list[3].kwargs["messages"][0]["content"]
        assert "DO NOT INCLUDE ANY ROOF LINE ITEMS" in estimate_prompt

        record = pipeline.store.load("kitchen")
        assert record.status is PipelineStatus.COMPLETE
        assert record.claim_id == "CLM-2042"
        assert record.estimate_result == estimate

    async def test_explicit_roof_damage_keeps_roof(self, pipeline) -> None:
        claim = ClaimContext(description="Hail storm tore off shingles; water stain on bedroom ceiling")
        findings = FINDINGS_REPLY + [
            {
                "area": "North slope",
                "scope": "roof",
                "damage": "missing shingles",
                "severity": "severe",
                "recommended_action": "replace",
                "confidence": 0.95,
            }
        ]
        classification = {"confidence": confidence(interior=0.8, roof=0.9), "primary_scopes": [], "missing_info": []}
        replies = [findings, classification, ESTIMATE_REPLY]
        claim = claim.merge(photos=[ClaimPhoto(id="p1"), ClaimPhoto(id="p2")], measurement_report=None)

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp:
            mock_acomp.side_effect = [_mock_response(r) for r in replies]
            result = await pipeline.run_all(claim)

        assert mock_acomp.call_count == 3
        assert result.scope_classification.primary_scopes == ["interior", "roof"]
        assert result.estimate_result.scopes == ["interior", "roof"]
        roof_item = result.estimate_result.estimate[1].items[0]
        assert roof_item.qty_basis == "allowance"
