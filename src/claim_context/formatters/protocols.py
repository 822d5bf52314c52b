"""Estimate formatter protocol."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from claim_context.models import EstimateResult


@runtime_checkable
class IEstimateFormatter(Protocol):
    """Renders an ``EstimateResult`` for export (JSON, tab-separated, ...)."""

    def format(self, result: EstimateResult, **kwargs: Any) -> bytes:
        ...

    def format_to_file(self, result: EstimateResult, path: Path, **kwargs: Any) -> Path:
        """Render and write to *path*. Returns the output path."""
        ...

    @property
    def content_type(self) -> str:
        ...


__all__ = ["IEstimateFormatter"]
