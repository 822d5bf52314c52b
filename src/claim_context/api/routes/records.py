"""Pipeline record endpoints: create, inspect and resume stored runs."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from claim_context.api.operations import error_response
from claim_context.models import ClaimContext, PipelineRecord
from claim_context.services.pipeline_service import ClaimContextPipeline
from claim_context.services.pipeline_store import PipelineStore

router = APIRouter(prefix="/pipelines", tags=["pipelines"])


class CreatePipelineRequest(BaseModel):
    claim_context: ClaimContext
    pipeline_id: Optional[str] = None


def _store(request: Request) -> PipelineStore:
    store = request.app.state.pipeline.store
    if store is None:
        raise HTTPException(status_code=503, detail="Pipeline persistence is not configured")
    return store


@router.post("", status_code=201, response_model=PipelineRecord)
async def create_pipeline(body: CreatePipelineRequest, request: Request) -> PipelineRecord:
    store = _store(request)
    if body.pipeline_id and store.exists(body.pipeline_id):
        raise HTTPException(status_code=409, detail=f"Pipeline {body.pipeline_id} already exists")
    return store.create(body.claim_context, pipeline_id=body.pipeline_id)


@router.get("", response_model=list[PipelineRecord])
async def list_pipelines(request: Request) -> list[PipelineRecord]:
    return _store(request).list_records()


@router.get("/{pipeline_id}", response_model=PipelineRecord)
async def get_pipeline(pipeline_id: str, request: Request) -> PipelineRecord:
    store = _store(request)
    if not store.exists(pipeline_id):
        raise HTTPException(status_code=404, detail=f"Pipeline {pipeline_id} not found")
    return store.load(pipeline_id)


@router.post("/{pipeline_id}/resume")
async def resume_pipeline(pipeline_id: str, request: Request) -> Any:
    """Re-run a stored pipeline from the stage where it stopped."""
    pipeline: ClaimContextPipeline = request.app.state.pipeline
    _store(request)
    try:
        record = await pipeline.resume(pipeline_id)
    except Exception as exc:
        result = error_response(exc)
        return JSONResponse(status_code=result.status_code, content=result.body)
    return JSONResponse(status_code=200, content={"success": True, "pipeline": record.model_dump(mode="json")})
