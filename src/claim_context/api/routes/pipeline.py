"""Stage endpoints: one POST per pipeline operation."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from claim_context.api import operations
from claim_context.api.operations import (
    ClassifyScopeRequest,
    ExtractPhotoFindingsRequest,
    GenerateEstimateRequest,
    OperationResult,
    ParseMeasurementRequest,
)
from claim_context.services.pipeline_service import ClaimContextPipeline

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


def _pipeline(request: Request) -> ClaimContextPipeline:
    return request.app.state.pipeline


def _respond(result: OperationResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.post("/parse_measurement")
async def parse_measurement(body: ParseMeasurementRequest, request: Request) -> JSONResponse:
    """Normalize a base64-encoded measurement report document."""
    return _respond(await operations.parse_measurement(_pipeline(request), body))


@router.post("/extract_photo_findings")
async def extract_photo_findings(body: ExtractPhotoFindingsRequest, request: Request) -> JSONResponse:
    return _respond(await operations.extract_photo_findings(_pipeline(request), body))


@router.post("/classify_scope")
async def classify_scope(body: ClassifyScopeRequest, request: Request) -> JSONResponse:
    return _respond(await operations.classify_scope(_pipeline(request), body))


@router.post("/generate_estimate")
async def generate_estimate(body: GenerateEstimateRequest, request: Request) -> JSONResponse:
    """Generate line items; with ``pipeline_id`` the result is persisted and the record completed."""
    return _respond(await operations.generate_estimate(_pipeline(request), body))
