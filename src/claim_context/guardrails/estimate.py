"""Estimate checks: scope containment, quantity basis soundness, O&P eligibility."""

from __future__ import annotations

import re
from typing import Any

from claim_context.guardrails.models import GuardrailCorrection, GuardrailRule
from claim_context.models import EstimateLineItem, EstimateScopeGroup, MeasurementReport

_STAGE = "estimate"

_OP_CODES = frozenset({"O&P", "OP", "O/P", "OANDP"})
_OP_DESCRIPTION_RE = re.compile(r"\bo\s*&\s*p\b|overhead\s*(?:&|and|\+)\s*profit", re.IGNORECASE)

DEFAULT_ALLOWANCE_ASSUMPTION = (
    "Allowance quantity inferred from photos and description; pending field measurement."
)


def is_op_item(item: EstimateLineItem) -> bool:
    """Whether *item* is an overhead-and-profit markup line."""
    code = (item.line_code or "").strip().upper().replace(" ", "")
    return code in _OP_CODES or bool(_OP_DESCRIPTION_RE.search(item.description))


def filter_excluded_scopes(
    groups: list[dict[str, Any]],
    primary_scopes: list[str],
) -> tuple[list[dict[str, Any]], list[GuardrailCorrection]]:
    """Drop every raw scope group whose scope is not in *primary_scopes*.

    Runs before schema validation so a malformed group for an excluded scope
    is discarded rather than failing the whole estimate.
    """
    allowed = set(primary_scopes)
    kept: list[dict[str, Any]] = []
    corrections: list[GuardrailCorrection] = []
    for i, group in enumerate(groups):
        scope = str(group.get("scope") or "").strip().lower()
        if scope in allowed:
            kept.append(group)
            continue
        items = group.get("items")
        count = len(items) if isinstance(items, list) else 0
        corrections.append(
            GuardrailCorrection(
                rule=GuardrailRule.EXCLUDED_SCOPE,
                stage=_STAGE,
                message=f"Dropped {count} line item(s) for excluded scope",
                field_path=f"estimate[{i}].scope",
                actual_value=scope,
                corrected_value="removed",
            )
        )
    return kept, corrections


def enforce_measured_basis(
    groups: list[EstimateScopeGroup],
    report: MeasurementReport | None,
) -> tuple[list[EstimateScopeGroup], list[GuardrailCorrection]]:
    """Downgrade ``measured`` items to ``allowance`` when their scope has no measurement data."""
    corrections: list[GuardrailCorrection] = []
    result: list[EstimateScopeGroup] = []
    for gi, group in enumerate(groups):
        backed = report is not None and report.scope_has_measurements(group.scope)
        items: list[EstimateLineItem] = []
        for ii, item in enumerate(group.items):
            if item.qty_basis == "measured" and not backed:
                note = f"No {group.scope} measurements on file; quantity treated as an allowance."
                assumptions = f"{item.assumptions} {note}".strip() if item.assumptions else note
                item = item.model_copy(update={"qty_basis": "allowance", "assumptions": assumptions})
                corrections.append(
                    GuardrailCorrection(
                        rule=GuardrailRule.MEASURED_BASIS,
                        stage=_STAGE,
                        message="Measured quantity without supporting measurement data",
                        field_path=f"estimate[{gi}].items[{ii}].qty_basis",
                        actual_value="measured",
                        corrected_value="allowance",
                    )
                )
            items.append(item)
        result.append(group.model_copy(update={"items": items}))
    return result, corrections


def enforce_allowance_assumptions(
    groups: list[EstimateScopeGroup],
) -> tuple[list[EstimateScopeGroup], list[GuardrailCorrection]]:
    """Every allowance item must explain its inferred basis."""
    corrections: list[GuardrailCorrection] = []
    result: list[EstimateScopeGroup] = []
    for gi, group in enumerate(groups):
        items: list[EstimateLineItem] = []
        for ii, item in enumerate(group.items):
            if item.qty_basis == "allowance" and not (item.assumptions or "").strip():
                item = item.model_copy(update={"assumptions": DEFAULT_ALLOWANCE_ASSUMPTION})
                corrections.append(
                    GuardrailCorrection(
                        rule=GuardrailRule.ALLOWANCE_ASSUMPTIONS,
                        stage=_STAGE,
                        message="Allowance item missing assumptions",
                        field_path=f"estimate[{gi}].items[{ii}].assumptions",
                        actual_value="",
                        corrected_value=DEFAULT_ALLOWANCE_ASSUMPTION,
                    )
                )
            items.append(item)
        result.append(group.model_copy(update={"items": items}))
    return result, corrections


def trade_scope_count(groups: list[EstimateScopeGroup]) -> int:
    """Distinct scopes carrying at least one non-O&P line item."""
    return len({g.scope for g in groups if any(not is_op_item(i) for i in g.items)})


def enforce_op_line(
    groups: list[EstimateScopeGroup],
    *,
    include_op: bool,
    min_scopes: int,
) -> tuple[list[EstimateScopeGroup], list[GuardrailCorrection]]:
    """Strip O&P lines unless enabled and the estimate spans *min_scopes* or more scopes.

    Groups left empty by the stripping are dropped.
    """
    if include_op and trade_scope_count(groups) >= min_scopes:
        return groups, []

    reason = "O&P disabled" if not include_op else f"fewer than {min_scopes} scopes"
    corrections: list[GuardrailCorrection] = []
    result: list[EstimateScopeGroup] = []
    for gi, group in enumerate(groups):
        items = [i for i in group.items if not is_op_item(i)]
        removed = len(group.items) - len(items)
        if removed:
            corrections.append(
                GuardrailCorrection(
                    rule=GuardrailRule.OP_LINE,
                    stage=_STAGE,
                    message=f"Removed {removed} O&P line(s): {reason}",
                    field_path=f"estimate[{gi}].items",
                    actual_value=str(removed),
                    corrected_value="0",
                )
            )
            if not items:
                continue
        result.append(group.model_copy(update={"items": items}))
    return result, corrections
