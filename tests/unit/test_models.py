"""Tests for the pipeline data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from claim_context.models import (
    ClaimContext,
    DamageFinding,
    EstimateLineItem,
    EstimateResult,
    EstimateScopeGroup,
    MeasurementReport,
    MeasurementSections,
    PipelineRecord,
    PipelineStage,
    PipelineStatus,
    UserOverrides,
)
from claim_context.scopes import MEASUREMENT_SECTIONS


class TestMeasurementReport:
    def test_empty_report_has_all_five_sections(self) -> None:
        report = MeasurementReport()
        dumped = report.model_dump()
        assert set(dumped["sections"]) == set(MEASUREMENT_SECTIONS)
        assert dumped["sections"]["roof"]["total_squares"] == 0
        assert dumped["sections"]["roof"]["planes"] == []
        assert not report.has_data()

    def test_missing_sections_and_nulls_fall_back_to_defaults(self) -> None:
        report = MeasurementReport.model_validate(
            {"source": "hover", "sections": {"roof": {"total_squares": None, "vents": 4}, "gutters": None}}
        )
        assert report.sections.roof.total_squares == 0
        assert report.sections.roof.vents == 4
        assert report.sections.gutters.gutter_lf == 0
        assert report.sections.openings.windows == 0

    def test_unknown_source_normalizes_to_other(self) -> None:
        assert MeasurementReport.model_validate({"source": "RoofSnap"}).source == "other"
        assert MeasurementReport.model_validate({"source": "EagleView"}).source == "eagleview"
        assert MeasurementReport.model_validate({"source": None}).source == "other"

    def test_nested_notes_lifted_to_top_level(self) -> None:
        report = MeasurementReport.model_validate({"sections": {"notes": "Pitch estimated from imagery"}})
        assert report.notes == "Pitch estimated from imagery"

    def test_text_only_section_has_no_data(self) -> None:
        report = MeasurementReport.model_validate({"sections": {"roof": {"pitch": "6/12"}}})
        assert not report.section_has_data("roof")

    def test_list_field_counts_as_data(self) -> None:
        report = MeasurementReport.model_validate({"sections": {"interior": {"rooms": [{"name": "Kitchen"}]}}})
        assert report.section_has_data("interior")
        assert report.sections_with_data() == ["interior"]

    def test_scope_has_measurements_maps_exterior_to_openings(self) -> None:
        report = MeasurementReport.model_validate({"sections": {"openings": {"windows": 3}}})
        assert report.scope_has_measurements("exterior")
        assert not report.scope_has_measurements("structural")
        assert not report.scope_has_measurements("roof")

    def test_unknown_section_name_raises(self) -> None:
        with pytest.raises(KeyError):
            MeasurementSections().get("basement")


class TestDamageFinding:
    def test_enum_fields_are_normalized(self) -> None:
        finding = DamageFinding(
            area="Kitchen ceiling",
            scope="Interior",
            damage="stain",
            severity="MODERATE",
            recommended_action="Repair",
            confidence=0.5,
        )
        assert (finding.scope, finding.severity, finding.recommended_action) == ("interior", "moderate", "repair")

    def test_rejects_out_of_range_confidence(self) -> None:
        with pytest.raises(ValidationError):
            DamageFinding(
                area="a", scope="roof", damage="d", severity="minor", recommended_action="repair", confidence=1.5
            )

    def test_rejects_unknown_scope(self) -> None:
        with pytest.raises(ValidationError):
            DamageFinding(
                area="a", scope="basement", damage="d", severity="minor", recommended_action="repair", confidence=0.5
            )


class TestEstimateModels:
    def test_unit_is_upper_cased(self) -> None:
        item = EstimateLineItem(description="Shingles", unit="sq", qty=22, qty_basis="measured")
        assert item.unit == "SQ"

    def test_unsupported_unit_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EstimateLineItem(description="Paint", unit="GAL", qty=2, qty_basis="allowance")

    def test_negative_quantity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EstimateLineItem(description="Paint", unit="SF", qty=-1, qty_basis="allowance")

    def test_result_helpers(self) -> None:
        item = EstimateLineItem(description="x", unit="EA", qty=1, qty_basis="allowance", assumptions="a")
        result = EstimateResult(
            estimate=[
                EstimateScopeGroup(scope="Interior", items=[item, item]),
                EstimateScopeGroup(scope="gutters", items=[item]),
                EstimateScopeGroup(scope="interior", items=[]),
            ]
        )
        assert result.total_line_items == 3
        assert result.scopes == ["interior", "gutters"]


class TestClaimContext:
    def test_merge_returns_new_instance(self) -> None:
        ctx = ClaimContext(description="Hail")
        merged = ctx.merge(photo_findings=[])
        assert ctx.photo_findings is None
        assert merged.photo_findings == []
        assert merged.description == "Hail"

    def test_none_description_becomes_empty(self) -> None:
        assert ClaimContext(description=None).description == ""

    def test_default_overrides(self) -> None:
        overrides = UserOverrides()
        assert overrides.quality_grade == "standard"
        assert overrides.include_op is True
        assert overrides.tax_rate == 0.0

    def test_json_round_trip_of_record(self) -> None:
        record = PipelineRecord(pipeline_id="p1", claim_context=ClaimContext(claim_id="C1"))
        loaded = PipelineRecord.model_validate_json(record.model_dump_json())
        assert loaded.stage is PipelineStage.INGEST
        assert loaded.status is PipelineStatus.DRAFT
        assert loaded.claim_context.claim_id == "C1"
