"""Pydantic data models for the claim context pipeline.

``ClaimContext`` is the envelope threaded through all four stages.  Each stage
reads a prefix of its fields and produces exactly one new value, which the
orchestrator merges back with :meth:`ClaimContext.merge`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from claim_context.scopes import GENERAL_ONLY, MEASUREMENT_SECTIONS, SCOPE_SECTIONS

MeasurementSource = Literal["eagleview", "hover", "symbility", "other"]
FindingScope = Literal["interior", "roof", "siding", "gutters", "other"]
Severity = Literal["minor", "moderate", "severe"]
RecommendedAction = Literal["repair", "replace", "detach_reset", "clean", "inspect"]
QtyBasis = Literal["measured", "allowance"]
QualityGrade = Literal["economy", "standard", "premium"]

LINE_ITEM_UNITS = frozenset({"EA", "SF", "LF", "SQ", "SY", "HR", "CF"})

_SOURCES = ("eagleview", "hover", "symbility", "other")


def _lower(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


# ── Measurement report ───────────────────────────────────────────────


class MeasurementSection(BaseModel):
    """Base for one domain section. Nulls from the generator fall back to defaults."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def has_data(self) -> bool:
        """True when any numeric field is positive or any list is non-empty."""
        for value in self.__dict__.values():
            if isinstance(value, bool):
                continue
            if isinstance(value, (int, float)) and value > 0:
                return True
            if isinstance(value, list) and value:
                return True
        return False


class RoofSection(MeasurementSection):
    total_squares: float = 0
    planes: list[Any] = Field(default_factory=list)
    pitch: str = ""
    ridges_lf: float = 0
    hips_lf: float = 0
    valleys_lf: float = 0
    drip_edge_lf: float = 0
    eaves_lf: float = 0
    rakes_lf: float = 0
    starter_lf: float = 0
    step_flashing_lf: float = 0
    headwall_flashing_lf: float = 0
    vents: int = 0
    pipe_boots: int = 0


class GuttersSection(MeasurementSection):
    eave_length_lf: float = 0
    gutter_lf: float = 0
    downspout_count: int = 0
    downspout_lf: float = 0


class SidingSection(MeasurementSection):
    wall_sf: float = 0
    elevations: list[Any] = Field(default_factory=list)
    trim_lf: float = 0


class InteriorSection(MeasurementSection):
    rooms: list[Any] = Field(default_factory=list)
    ceiling_sf: float = 0
    wall_sf: float = 0
    openings_count: int = 0


class OpeningsSection(MeasurementSection):
    windows: int = 0
    doors: int = 0
    garage_doors: int = 0


class MeasurementSections(BaseModel):
    """All five domain sections, always present."""

    model_config = ConfigDict(extra="ignore")

    roof: RoofSection = Field(default_factory=RoofSection)
    gutters: GuttersSection = Field(default_factory=GuttersSection)
    siding: SidingSection = Field(default_factory=SidingSection)
    interior: InteriorSection = Field(default_factory=InteriorSection)
    openings: OpeningsSection = Field(default_factory=OpeningsSection)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def get(self, name: str) -> MeasurementSection:
        if name not in MEASUREMENT_SECTIONS:
            raise KeyError(f"Unknown measurement section: {name}")
        return getattr(self, name)


class MeasurementReport(BaseModel):
    """Normalized third-party measurement report (stage 1 output)."""

    source: MeasurementSource = "other"
    raw_text: Optional[str] = None
    sections: MeasurementSections = Field(default_factory=MeasurementSections)
    notes: str = ""

    @model_validator(mode="before")
    @classmethod
    def _lift_section_notes(cls, data: Any) -> Any:
        # Some reports nest ``notes`` inside ``sections``.
        if isinstance(data, dict) and isinstance(data.get("sections"), dict):
            sections = dict(data["sections"])
            nested = sections.pop("notes", None)
            data = {**data, "sections": sections}
            if nested and not data.get("notes"):
                data["notes"] = str(nested)
        return data

    @field_validator("source", mode="before")
    @classmethod
    def _normalize_source(cls, value: Any) -> str:
        value = _lower(value)
        return value if value in _SOURCES else "other"

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    def section_has_data(self, name: str) -> bool:
        return self.sections.get(name).has_data()

    def has_data(self) -> bool:
        """True when at least one section carries a nonzero measurement."""
        return any(self.section_has_data(name) for name in MEASUREMENT_SECTIONS)

    def sections_with_data(self) -> list[str]:
        return [name for name in MEASUREMENT_SECTIONS if self.section_has_data(name)]

    def scope_has_measurements(self, scope: str) -> bool:
        """Whether a ``measured`` quantity for *scope* can be backed by this report."""
        section = SCOPE_SECTIONS.get(scope)
        return section is not None and self.section_has_data(section)


# ── Photos and findings ──────────────────────────────────────────────


class ClaimPhoto(BaseModel):
    """A photo reference, optionally carrying a prior per-photo analysis."""

    id: str
    url: Optional[str] = None
    caption: Optional[str] = None
    file_name: Optional[str] = None
    category: Optional[str] = None
    material_type: Optional[str] = None
    condition_rating: Optional[str] = None
    detected_damages: list[Any] = Field(default_factory=list)
    analysis_summary: Optional[str] = None


class DamageFinding(BaseModel):
    """One typed damage observation derived from claim photos."""

    area: str
    scope: FindingScope
    material: Optional[str] = None
    damage: str
    severity: Severity
    recommended_action: RecommendedAction
    confidence: float = Field(ge=0.0, le=1.0)

    @field_validator("scope", "severity", "recommended_action", mode="before")
    @classmethod
    def _normalize_enum(cls, value: Any) -> Any:
        return _lower(value)


# ── Scope classification ─────────────────────────────────────────────


class ScopeClassification(BaseModel):
    """Per-scope confidence and the derived in-scope set (stage 3 output)."""

    confidence: dict[str, float] = Field(default_factory=dict)
    primary_scopes: list[str] = Field(default_factory=lambda: list(GENERAL_ONLY))
    missing_info: list[str] = Field(default_factory=list)


# ── Estimate ─────────────────────────────────────────────────────────


class EstimateLineItem(BaseModel):
    """Leaf unit of an estimate."""

    line_code: Optional[str] = None
    description: str
    unit: str
    qty: float = Field(ge=0)
    qty_basis: QtyBasis
    assumptions: Optional[str] = None

    @field_validator("unit", mode="before")
    @classmethod
    def _normalize_unit(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        unit = value.strip().upper()
        if unit not in LINE_ITEM_UNITS:
            raise ValueError(f"unsupported unit {value!r}")
        return unit

    @field_validator("qty_basis", mode="before")
    @classmethod
    def _normalize_basis(cls, value: Any) -> Any:
        return _lower(value)


class EstimateScopeGroup(BaseModel):
    scope: str
    items: list[EstimateLineItem] = Field(default_factory=list)

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: Any) -> Any:
        return _lower(value)


class EstimateResult(BaseModel):
    """Stage 4 output."""

    estimate: list[EstimateScopeGroup] = Field(default_factory=list)
    missing_info_to_finalize: list[str] = Field(default_factory=list)
    questions_for_user: list[str] = Field(default_factory=list)

    @property
    def total_line_items(self) -> int:
        return sum(len(group.items) for group in self.estimate)

    @property
    def scopes(self) -> list[str]:
        seen: list[str] = []
        for group in self.estimate:
            if group.scope not in seen:
                seen.append(group.scope)
        return seen


class UserOverrides(BaseModel):
    """Estimator settings chosen by the user."""

    quality_grade: QualityGrade = "standard"
    include_op: bool = True
    tax_rate: float = Field(default=0.0, ge=0.0)
    price_list: Optional[str] = None


# ── Claim context envelope ───────────────────────────────────────────


class ClaimContext(BaseModel):
    """Accumulating state passed between stages."""

    claim_id: str = ""
    description: str = ""
    loss_cause: Optional[str] = None
    policy_notes: Optional[str] = None
    photos: list[ClaimPhoto] = Field(default_factory=list)
    measurement_report: Optional[MeasurementReport] = None
    photo_findings: Optional[list[DamageFinding]] = None
    scope_classification: Optional[ScopeClassification] = None
    estimate_result: Optional[EstimateResult] = None
    user_overrides: UserOverrides = Field(default_factory=UserOverrides)

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    def merge(self, **fields: Any) -> ClaimContext:
        """Return a copy with stage output(s) applied. The original is untouched."""
        return self.model_copy(update=fields)


# ── Pipeline bookkeeping ─────────────────────────────────────────────


class PipelineStage(str, Enum):
    INGEST = "ingest"
    EXTRACT = "extract"
    CLASSIFY = "classify"
    ESTIMATE = "estimate"


class PipelineStatus(str, Enum):
    DRAFT = "draft"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class PipelineRecord(BaseModel):
    """Persisted snapshot of one pipeline run, used to resume after a failed stage."""

    pipeline_id: str
    claim_id: str = ""
    stage: PipelineStage = PipelineStage.INGEST
    status: PipelineStatus = PipelineStatus.DRAFT
    claim_context: ClaimContext = Field(default_factory=ClaimContext)
    estimate_result: Optional[EstimateResult] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ── Run analytics ────────────────────────────────────────────────────


class StageMetrics(BaseModel):
    """Timing for a single stage invocation."""

    stage: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_ms: float = 0.0
    guardrail_corrections: int = 0
    error: Optional[str] = None


class RunAnalytics(BaseModel):
    """Aggregated metrics for one pipeline run."""

    run_id: str
    claim_id: str = ""
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    total_duration_ms: float = 0.0
    status: str = "running"
    stages: list[StageMetrics] = Field(default_factory=list)

    def finalize(self) -> None:
        self.ended_at = datetime.now(timezone.utc)
        if self.started_at:
            self.total_duration_ms = (self.ended_at - self.started_at).total_seconds() * 1000
        if self.status == "running":
            self.status = "failed" if any(s.error for s in self.stages) else "complete"
