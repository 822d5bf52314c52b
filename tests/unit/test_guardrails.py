"""Tests for the post-generation guardrail checks."""

from __future__ import annotations

import logging

import pytest

from claim_context.exceptions import MalformedOutputError
from claim_context.guardrails import GuardrailRule, log_corrections
from claim_context.guardrails.estimate import (
    DEFAULT_ALLOWANCE_ASSUMPTION,
    enforce_allowance_assumptions,
    enforce_measured_basis,
    enforce_op_line,
    filter_excluded_scopes,
    is_op_item,
    trade_scope_count,
)
from claim_context.guardrails.findings import sanitize_findings
from claim_context.guardrails.scope import (
    clamp_roof_confidence,
    derive_primary_scopes,
    has_roof_evidence,
    normalize_confidence,
)
from claim_context.models import DamageFinding, EstimateLineItem, EstimateScopeGroup, MeasurementReport
from tests.fakes.payloads import confidence, line_item

ROOF_KEYWORDS = ["roof", "shingle", "hail", "wind damage to roof", "missing shingles", "ridge", "flashing"]


def _finding(scope: str = "interior", **overrides) -> dict:
    data = {
        "area": "Kitchen ceiling",
        "scope": scope,
        "material": "drywall",
        "damage": "water stain",
        "severity": "moderate",
        "recommended_action": "repair",
        "confidence": 0.8,
    }
    data.update(overrides)
    return data


def _group(scope: str, *items: dict) -> EstimateScopeGroup:
    return EstimateScopeGroup.model_validate({"scope": scope, "items": list(items)})


class TestSanitizeFindings:
    def test_valid_findings_pass_untouched(self) -> None:
        findings, corrections = sanitize_findings([_finding(), _finding("roof")])
        assert [f.scope for f in findings] == ["interior", "roof"]
        assert corrections == []

    def test_out_of_enum_scope_coerced_to_other(self) -> None:
        findings, corrections = sanitize_findings([_finding("basement")])
        assert findings[0].scope == "other"
        assert corrections[0].rule is GuardrailRule.SCOPE_ENUM
        assert corrections[0].actual_value == "basement"

    def test_missing_scope_coerced_to_other(self) -> None:
        raw = _finding()
        del raw["scope"]
        findings, _ = sanitize_findings([raw])
        assert findings[0].scope == "other"

    def test_confidence_clamped(self) -> None:
        findings, corrections = sanitize_findings([_finding(confidence=1.4)])
        assert findings[0].confidence == 1.0
        assert corrections[0].rule is GuardrailRule.CONFIDENCE_RANGE

    def test_nan_confidence_is_zero(self) -> None:
        findings, corrections = sanitize_findings([_finding(confidence=float("nan"))])
        assert findings[0].confidence == 0.0
        assert corrections[0].rule is GuardrailRule.CONFIDENCE_RANGE

    def test_wrapped_object_accepted(self) -> None:
        findings, _ = sanitize_findings({"findings": [_finding()]})
        assert len(findings) == 1

    @pytest.mark.parametrize("raw", [{"summary": "no damage"}, "text", [1, 2]])
    def test_wrong_shape_is_malformed(self, raw) -> None:
        with pytest.raises(MalformedOutputError):
            sanitize_findings(raw)

    def test_invalid_severity_is_malformed(self) -> None:
        with pytest.raises(MalformedOutputError):
            sanitize_findings([_finding(severity="catastrophic")])


class TestRoofEvidence:
    def test_roof_finding_is_evidence(self) -> None:
        finding = DamageFinding.model_validate(_finding("roof"))
        assert has_roof_evidence("Interior leak", [finding], ROOF_KEYWORDS)

    @pytest.mark.parametrize("description", ["Hail storm last night", "Several MISSING SHINGLES", "Flashing torn"])
    def test_keyword_is_evidence(self, description) -> None:
        assert has_roof_evidence(description, [], ROOF_KEYWORDS)

    def test_interior_only_is_not_evidence(self) -> None:
        finding = DamageFinding.model_validate(_finding("interior"))
        assert not has_roof_evidence("Water damage to kitchen ceiling from pipe burst", [finding], ROOF_KEYWORDS)


class TestNormalizeConfidence:
    def test_fills_missing_scopes_with_zero(self) -> None:
        conf, corrections = normalize_confidence({"interior": 0.9})
        assert conf == confidence(interior=0.9)
        assert corrections == []

    def test_drops_unknown_scopes(self) -> None:
        conf, corrections = normalize_confidence({"interior": 0.9, "basement": 0.7})
        assert "basement" not in conf
        assert corrections[0].rule is GuardrailRule.UNKNOWN_SCOPE

    def test_clamps_out_of_range(self) -> None:
        conf, corrections = normalize_confidence({"roof": 1.3, "siding": -0.2})
        assert conf["roof"] == 1.0
        assert conf["siding"] == 0.0
        assert {c.rule for c in corrections} == {GuardrailRule.CONFIDENCE_RANGE}

    def test_null_value_is_zero(self) -> None:
        conf, _ = normalize_confidence({"gutters": None})
        assert conf["gutters"] == 0.0

    def test_missing_map_is_all_zero(self) -> None:
        conf, _ = normalize_confidence(None)
        assert conf == confidence()

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_is_zero(self, value) -> None:
        conf, corrections = normalize_confidence({"interior": 0.9, "roof": value})
        assert conf["roof"] == 0.0
        assert conf["interior"] == 0.9
        assert corrections[0].rule is GuardrailRule.CONFIDENCE_RANGE
        assert corrections[0].field_path == "confidence.roof"

    @pytest.mark.parametrize("raw", [["interior"], {"roof": "high"}, {"roof": True}])
    def test_non_numeric_is_malformed(self, raw) -> None:
        with pytest.raises(MalformedOutputError):
            normalize_confidence(raw)


class TestClampRoofConfidence:
    def test_clamps_without_evidence(self) -> None:
        conf, corrections = clamp_roof_confidence(confidence(roof=0.8), roof_evidence=False, ceiling=0.2)
        assert conf["roof"] == 0.2
        assert corrections[0].rule is GuardrailRule.ROOF_EVIDENCE

    def test_keeps_value_with_evidence(self) -> None:
        conf, corrections = clamp_roof_confidence(confidence(roof=0.8), roof_evidence=True, ceiling=0.2)
        assert conf["roof"] == 0.8
        assert corrections == []

    def test_low_value_untouched_and_not_reported(self) -> None:
        conf, corrections = clamp_roof_confidence(confidence(roof=0.1), roof_evidence=False, ceiling=0.2)
        assert conf["roof"] == 0.1
        assert corrections == []


class TestDerivePrimaryScopes:
    def test_threshold_is_inclusive(self) -> None:
        primary, _ = derive_primary_scopes(confidence(interior=0.5, gutters=0.49), threshold=0.5)
        assert primary == ["interior"]

    def test_falls_back_to_general(self) -> None:
        primary, _ = derive_primary_scopes(confidence(), threshold=0.5)
        assert primary == ["general"]

    def test_disagreement_recorded(self) -> None:
        primary, corrections = derive_primary_scopes(
            confidence(interior=0.9), threshold=0.5, proposed=["interior", "roof"]
        )
        assert primary == ["interior"]
        assert corrections[0].rule is GuardrailRule.PRIMARY_RECOMPUTE

    def test_agreement_in_any_order_not_recorded(self) -> None:
        _, corrections = derive_primary_scopes(
            confidence(interior=0.9, siding=0.6), threshold=0.5, proposed=["Siding", "interior"]
        )
        assert corrections == []


class TestFilterExcludedScopes:
    def test_drops_groups_outside_primary(self) -> None:
        raw = [
            {"scope": "interior", "items": [line_item()]},
            {"scope": "roof", "items": [line_item(), line_item()]},
        ]
        kept, corrections = filter_excluded_scopes(raw, ["interior"])
        assert [g["scope"] for g in kept] == ["interior"]
        assert corrections[0].rule is GuardrailRule.EXCLUDED_SCOPE
        assert "2 line item" in corrections[0].message

    def test_malformed_excluded_group_is_discarded_not_validated(self) -> None:
        raw = [{"scope": "ROOF", "items": "shingles everywhere"}]
        kept, corrections = filter_excluded_scopes(raw, ["interior"])
        assert kept == []
        assert len(corrections) == 1

    def test_scope_match_is_case_insensitive(self) -> None:
        kept, corrections = filter_excluded_scopes([{"scope": " Interior ", "items": []}], ["interior"])
        assert len(kept) == 1
        assert corrections == []


class TestEnforceMeasuredBasis:
    def test_downgrades_without_measurements(self) -> None:
        groups = [_group("interior", line_item(qty_basis="measured", assumptions=None))]
        fixed, corrections = enforce_measured_basis(groups, MeasurementReport())
        item = fixed[0].items[0]
        assert item.qty_basis == "allowance"
        assert "No interior measurements" in item.assumptions
        assert corrections[0].rule is GuardrailRule.MEASURED_BASIS

    def test_keeps_measured_when_section_has_data(self, roof_only_report) -> None:
        groups = [_group("roof", line_item(unit="SQ", qty=22, qty_basis="measured"))]
        fixed, corrections = enforce_measured_basis(groups, roof_only_report)
        assert fixed[0].items[0].qty_basis == "measured"
        assert corrections == []

    def test_structural_is_never_measured(self, roof_only_report) -> None:
        groups = [_group("structural", line_item(qty_basis="measured"))]
        fixed, _ = enforce_measured_basis(groups, roof_only_report)
        assert fixed[0].items[0].qty_basis == "allowance"

    def test_missing_report_downgrades(self) -> None:
        fixed, _ = enforce_measured_basis([_group("roof", line_item(qty_basis="measured"))], None)
        assert fixed[0].items[0].qty_basis == "allowance"

    def test_existing_assumptions_preserved(self) -> None:
        groups = [_group("gutters", line_item(qty_basis="measured", assumptions="Front elevation only."))]
        fixed, _ = enforce_measured_basis(groups, MeasurementReport())
        assert fixed[0].items[0].assumptions.startswith("Front elevation only.")


class TestEnforceAllowanceAssumptions:
    def test_blank_assumptions_filled(self) -> None:
        fixed, corrections = enforce_allowance_assumptions([_group("interior", line_item(assumptions="  "))])
        assert fixed[0].items[0].assumptions == DEFAULT_ALLOWANCE_ASSUMPTION
        assert corrections[0].rule is GuardrailRule.ALLOWANCE_ASSUMPTIONS

    def test_present_assumptions_untouched(self) -> None:
        _, corrections = enforce_allowance_assumptions([_group("interior", line_item())])
        assert corrections == []


class TestOverheadAndProfit:
    OP = {"line_code": "O&P", "description": "Overhead & Profit 10/10", "unit": "EA", "qty": 1, "qty_basis": "allowance"}

    def test_detects_op_by_code_and_description(self) -> None:
        assert is_op_item(EstimateLineItem.model_validate(self.OP))
        assert is_op_item(
            EstimateLineItem.model_validate({**self.OP, "line_code": None, "description": "Overhead and profit"})
        )
        assert not is_op_item(EstimateLineItem.model_validate(line_item()))

    def test_stripped_when_disabled(self) -> None:
        groups = [_group(s, line_item(), self.OP) for s in ("interior", "siding", "gutters")]
        fixed, corrections = enforce_op_line(groups, include_op=False, min_scopes=3)
        assert all(not is_op_item(i) for g in fixed for i in g.items)
        assert all(c.rule is GuardrailRule.OP_LINE for c in corrections)

    def test_stripped_below_scope_minimum(self) -> None:
        groups = [_group("interior", line_item()), _group("general", self.OP)]
        fixed, corrections = enforce_op_line(groups, include_op=True, min_scopes=3)
        assert [g.scope for g in fixed] == ["interior"]
        assert len(corrections) == 1

    def test_kept_when_enabled_with_enough_scopes(self) -> None:
        groups = [_group("interior", line_item()), _group("siding", line_item()), _group("gutters", line_item(), self.OP)]
        fixed, corrections = enforce_op_line(groups, include_op=True, min_scopes=3)
        assert trade_scope_count(fixed) == 3
        assert is_op_item(fixed[2].items[1])
        assert corrections == []


class TestLogCorrections:
    def test_corrections_logged_as_warning(self, caplog) -> None:
        _, corrections = clamp_roof_confidence(confidence(roof=0.9), roof_evidence=False, ceiling=0.2)
        with caplog.at_level(logging.DEBUG, logger="claim_context.guardrails"):
            log_corrections("classify", corrections)
        records = [r for r in caplog.records if "guardrail_correction" in r.getMessage()]
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert records[0].guardrail_rule == GuardrailRule.ROOF_EVIDENCE.value

    def test_clean_pass_logged_at_debug(self, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="claim_context.guardrails"):
            log_corrections("classify", [])
        assert any("guardrail_passed" in r.getMessage() and r.levelno == logging.DEBUG for r in caplog.records)
        assert not any(r.levelno >= logging.WARNING for r in caplog.records)
