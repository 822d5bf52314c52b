"""Nested pydantic-settings configuration for the application.

Each group reads its own ``CLAIMCTX_<GROUP>_*`` env vars, e.g.::

    export CLAIMCTX_LLM_PROVIDER=openai
    export CLAIMCTX_LLM_MODEL=gpt-4o-mini
    export CLAIMCTX_STAGE_MODELS_ESTIMATE_MODEL=gpt-4o
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMConfig(BaseSettings):
    """LLM backend configuration.

    Env vars use ``CLAIMCTX_LLM_`` prefix::

        export CLAIMCTX_LLM_PROVIDER=ollama
        export CLAIMCTX_LLM_MODEL=ollama/qwen3-14b
    """

    model_config = {"env_prefix": "CLAIMCTX_LLM_"}

    provider: Literal["bedrock", "openai", "ollama", "litellm", "anthropic", "gemini"] = "ollama"
    base_url: str = "http://localhost:11434/v1"
    api_key: str = "no-key"
    model: str = "ollama/qwen3-14b"
    temperature: float = 0.0
    top_p: float = 1.0
    seed: int | None = None
    timeout: float = 120.0
    # A single attempt by default: stage retries belong to the orchestrator.
    max_retries: int = Field(default=1, ge=1)
    retry_max_delay: float = 30.0
    retry_jitter_factor: float = 0.5
    max_tokens: int = 16_000


class StageModelConfig(BaseSettings):
    """Per-stage model overrides. Empty values fall back to ``LLMConfig.model``.

    Env vars use ``CLAIMCTX_STAGE_MODELS_`` prefix.
    """

    model_config = {"env_prefix": "CLAIMCTX_STAGE_MODELS_"}

    measurement_model: str = ""
    photo_findings_model: str = ""
    classification_model: str = ""
    estimate_model: str = ""


class PipelineConfig(BaseSettings):
    """Scope guardrail thresholds.

    Env vars use ``CLAIMCTX_PIPELINE_`` prefix.
    """

    model_config = {"env_prefix": "CLAIMCTX_PIPELINE_"}

    scope_threshold: float = 0.5
    roof_confidence_ceiling: float = 0.2
    roof_keywords: list[str] = Field(
        default_factory=lambda: [
            "roof",
            "shingle",
            "hail",
            "wind damage to roof",
            "missing shingles",
            "ridge",
            "flashing",
        ]
    )
    min_op_scopes: int = 3
    stage_timeout: float = 180.0


class PersistenceConfig(BaseSettings):
    """Persistence configuration.

    Env vars use ``CLAIMCTX_PERSISTENCE_`` prefix.
    """

    model_config = {"env_prefix": "CLAIMCTX_PERSISTENCE_"}

    backend: Literal["file", "s3", "memory"] = "file"
    store_path: Path = Path("./pipelines")
    s3_bucket: str = ""
    s3_prefix: str = "pipelines/"
    aws_region: str = "us-east-1"


class ObservabilityConfig(BaseSettings):
    """Observability configuration.

    Env vars use ``CLAIMCTX_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "CLAIMCTX_OBSERVABILITY_"}

    service_name: str = "claim-context"
    log_level: str = "INFO"


class APIConfig(BaseSettings):
    """HTTP API configuration.

    Env vars use ``CLAIMCTX_API_`` prefix.
    """

    model_config = {"env_prefix": "CLAIMCTX_API_"}

    title: str = "claim-context"
    description: str = "Staged claim estimate generation with scope guardrails"
    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs."""

    llm: LLMConfig = LLMConfig()
    stage_models: StageModelConfig = StageModelConfig()
    pipeline: PipelineConfig = PipelineConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    observability: ObservabilityConfig = ObservabilityConfig()
    api: APIConfig = APIConfig()

    def model_for(self, stage: str) -> str:
        """Effective model for a stage (``measurement``, ``estimate``, ...)."""
        override = getattr(self.stage_models, f"{stage}_model", "")
        return override or self.llm.model
