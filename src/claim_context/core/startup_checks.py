"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claim_context.core.config import AppSettings

log = logging.getLogger(__name__)

# Providers that use IAM/local auth and do not require an API key
_NO_KEY_PROVIDERS = frozenset({"bedrock", "ollama"})


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_api_key(settings)
    _check_guardrail_thresholds(settings)
    _check_persistence(settings)


def _check_api_key(settings: AppSettings) -> None:
    """Reject placeholder API keys for providers that need real ones."""
    if settings.llm.provider not in _NO_KEY_PROVIDERS:
        if settings.llm.api_key in ("no-key", ""):
            raise ValueError(
                f"CLAIMCTX_LLM_API_KEY is required for provider '{settings.llm.provider}'. "
                f"Set it via environment variable or secrets manager."
            )


def _check_guardrail_thresholds(settings: AppSettings) -> None:
    """The roof ceiling must sit below the inclusion threshold or the clamp is a no-op."""
    threshold = settings.pipeline.scope_threshold
    ceiling = settings.pipeline.roof_confidence_ceiling
    if not 0.0 < threshold <= 1.0:
        raise ValueError(f"CLAIMCTX_PIPELINE_SCOPE_THRESHOLD must be in (0, 1], got {threshold}")
    if not 0.0 <= ceiling < threshold:
        raise ValueError(
            f"CLAIMCTX_PIPELINE_ROOF_CONFIDENCE_CEILING ({ceiling}) must be >= 0 "
            f"and below the scope threshold ({threshold})"
        )


def _check_persistence(settings: AppSettings) -> None:
    """Reject S3 without a bucket; warn about file persistence in containers."""
    if settings.persistence.backend == "s3" and not settings.persistence.s3_bucket:
        raise ValueError("CLAIMCTX_PERSISTENCE_S3_BUCKET is required when backend is 's3'.")

    is_container = bool(
        os.environ.get("ECS_CONTAINER_METADATA_URI")
        or os.environ.get("KUBERNETES_SERVICE_HOST")
    )
    if is_container and settings.persistence.backend == "file":
        log.warning(
            "CLAIMCTX_PERSISTENCE_BACKEND=file in a container environment. "
            "Pipeline records will be lost on container restart. "
            "Consider setting CLAIMCTX_PERSISTENCE_BACKEND=s3."
        )
