"""The four external operations, each returning a ``{success, ...}`` envelope.

Every exception is translated into ``{success: false, error, error_type,
retryable}`` plus an HTTP status, so no failure crosses the boundary
unformatted.  Routes and the CLI both go through these functions.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from claim_context.exceptions import (
    ClaimContextError,
    InsufficientEvidenceError,
    InvalidRequestError,
    MalformedOutputError,
    PersistenceError,
    StageOrderError,
    TransportError,
)
from claim_context.models import (
    ClaimContext,
    ClaimPhoto,
    DamageFinding,
    MeasurementReport,
    ScopeClassification,
    UserOverrides,
)
from claim_context.services.pipeline_service import ClaimContextPipeline

log = logging.getLogger(__name__)


class OperationResult(NamedTuple):
    status_code: int
    body: dict[str, Any]


# ── Request bodies ───────────────────────────────────────────────────


class ParseMeasurementRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    measurement_pdf_base64: Optional[str] = Field(default=None, alias="measurementPdfBase64")
    measurement_pdf_name: Optional[str] = Field(default=None, alias="measurementPdfName")
    pipeline_id: Optional[str] = None


class ExtractPhotoFindingsRequest(BaseModel):
    photos: list[ClaimPhoto] = Field(default_factory=list)
    description: Optional[str] = None
    loss_cause: Optional[str] = None
    pipeline_id: Optional[str] = None


class ClassifyScopeRequest(BaseModel):
    description: Optional[str] = None
    loss_cause: Optional[str] = None
    photo_findings: Optional[list[DamageFinding]] = None
    measurement_report: Optional[MeasurementReport] = None
    pipeline_id: Optional[str] = None


class GenerateEstimateRequest(BaseModel):
    claim_id: str = ""
    description: Optional[str] = None
    loss_cause: Optional[str] = None
    policy_notes: Optional[str] = None
    photos: list[ClaimPhoto] = Field(default_factory=list)
    photo_findings: Optional[list[DamageFinding]] = None
    measurement_report: Optional[MeasurementReport] = None
    scope_classification: Optional[ScopeClassification] = None
    user_overrides: Optional[UserOverrides] = None
    pipeline_id: Optional[str] = None

    def to_context(self) -> ClaimContext:
        fields = self.model_dump(exclude={"pipeline_id", "user_overrides"}, exclude_none=True)
        context = ClaimContext.model_validate(fields)
        if self.user_overrides is not None:
            context = context.merge(user_overrides=self.user_overrides)
        return context


# ── Error translation ────────────────────────────────────────────────


def _transport_status(exc: TransportError) -> int:
    if exc.status_code is not None and 400 <= exc.status_code < 600:
        return exc.status_code
    return 503 if exc.retryable else 502


def error_response(exc: Exception) -> OperationResult:
    """Map any exception onto the failure envelope and an HTTP status."""
    retryable = False
    if isinstance(exc, (InvalidRequestError, InsufficientEvidenceError)):
        status, error_type = 400, "insufficient_evidence" if isinstance(exc, InsufficientEvidenceError) else "invalid_request"
    elif isinstance(exc, StageOrderError):
        status, error_type = 409, "stage_order"
    elif isinstance(exc, MalformedOutputError):
        status, error_type = 422, "malformed_output"
    elif isinstance(exc, TransportError):
        status, error_type, retryable = _transport_status(exc), "transport", exc.retryable
    elif isinstance(exc, KeyError):
        status, error_type = 404, "not_found"
    elif isinstance(exc, PersistenceError):
        status, error_type = 500, "persistence"
    elif isinstance(exc, ClaimContextError):
        status, error_type = 500, "claim_context_error"
    else:
        log.exception("Unhandled error in pipeline operation")
        status, error_type = 500, "internal"

    message = exc.args[0] if isinstance(exc, KeyError) and exc.args else str(exc)
    body: dict[str, Any] = {
        "success": False,
        "error": str(message) or type(exc).__name__,
        "error_type": error_type,
        "retryable": retryable,
    }
    if isinstance(exc, TransportError) and exc.status_code is not None:
        body["status_code"] = exc.status_code
    return OperationResult(status, body)


def _decode_document(encoded: str | None) -> bytes | None:
    if not encoded:
        return None
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidRequestError(f"measurementPdfBase64 is not valid base64: {exc}") from exc


# ── Operations ───────────────────────────────────────────────────────


async def parse_measurement(pipeline: ClaimContextPipeline, request: ParseMeasurementRequest) -> OperationResult:
    try:
        report = await pipeline.parse_measurement(
            _decode_document(request.measurement_pdf_base64),
            request.measurement_pdf_name,
            pipeline_id=request.pipeline_id,
        )
    except Exception as exc:
        return error_response(exc)
    return OperationResult(200, {"success": True, "measurement_report": report.model_dump(mode="json")})


async def extract_photo_findings(
    pipeline: ClaimContextPipeline,
    request: ExtractPhotoFindingsRequest,
) -> OperationResult:
    context = ClaimContext(
        description=request.description,
        loss_cause=request.loss_cause,
        photos=request.photos,
    )
    try:
        findings = await pipeline.extract_photo_findings(context, pipeline_id=request.pipeline_id)
    except Exception as exc:
        return error_response(exc)
    return OperationResult(200, {"success": True, "photo_findings": [f.model_dump(mode="json") for f in findings]})


async def classify_scope(pipeline: ClaimContextPipeline, request: ClassifyScopeRequest) -> OperationResult:
    context = ClaimContext(
        description=request.description,
        loss_cause=request.loss_cause,
        photo_findings=request.photo_findings,
        measurement_report=request.measurement_report,
    )
    try:
        classification = await pipeline.classify_scope(context, pipeline_id=request.pipeline_id)
    except Exception as exc:
        return error_response(exc)
    return OperationResult(200, {"success": True, "scope_classification": classification.model_dump(mode="json")})


async def generate_estimate(pipeline: ClaimContextPipeline, request: GenerateEstimateRequest) -> OperationResult:
    try:
        result = await pipeline.generate_estimate(request.to_context(), pipeline_id=request.pipeline_id)
    except Exception as exc:
        return error_response(exc)
    return OperationResult(200, {"success": True, "estimate_result": result.model_dump(mode="json")})
