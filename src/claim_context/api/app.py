"""FastAPI application with lifespan management."""

from __future__ import annotations

import importlib.metadata
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from claim_context.api.middleware.error_handler import register_error_handlers
from claim_context.api.routes import health, pipeline, records
from claim_context.core.config import APIConfig, AppSettings
from claim_context.core.startup_checks import validate_settings
from claim_context.hooks import setup_logging
from claim_context.persistence import create_backend
from claim_context.prompts import configure as configure_prompts
from claim_context.providers.llm.client import LLMClient
from claim_context.services.pipeline_service import ClaimContextPipeline
from claim_context.services.pipeline_store import PipelineStore


def _get_version() -> str:
    """Read package version from installed metadata, with dev fallback."""
    try:
        return importlib.metadata.version("claim-context")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup/shutdown lifecycle."""
    settings = AppSettings()
    validate_settings(settings)
    setup_logging(settings.observability)
    configure_prompts()

    client = LLMClient(settings.llm)
    store = PipelineStore(create_backend(settings.persistence))

    app.state.settings = settings
    app.state.pipeline = ClaimContextPipeline(client, settings, store=store)
    yield
    await client.close()


_api_config = APIConfig()

app = FastAPI(
    title=_api_config.title,
    description=_api_config.description,
    version=_get_version(),
    lifespan=lifespan,
)

register_error_handlers(app)
app.include_router(health.router)
app.include_router(pipeline.router, prefix="/api")
app.include_router(records.router, prefix="/api")
