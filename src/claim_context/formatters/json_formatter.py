"""JSON export of an estimate."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from claim_context.models import EstimateResult


class JSONFormatter:
    """Renders an ``EstimateResult`` as indented JSON bytes."""

    def format(self, result: EstimateResult, *, indent: int = 2, **kwargs: Any) -> bytes:
        return result.model_dump_json(indent=indent).encode()

    def format_to_file(self, result: EstimateResult, path: Path, **kwargs: Any) -> Path:
        path.write_bytes(self.format(result, **kwargs))
        return path

    @property
    def content_type(self) -> str:
        return "application/json"
