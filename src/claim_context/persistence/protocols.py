"""Storage contract for pipeline records, plus the key rules every backend shares."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from claim_context.exceptions import PersistenceError


def record_key(pipeline_id: str) -> str:
    """Normalize a pipeline id into a storage key.

    Path separators are flattened so ``a/b`` and ``a_b`` name the same
    record on every backend.
    """
    key = str(pipeline_id).strip().replace("/", "_").replace("\\", "_")
    if not key:
        raise PersistenceError("Pipeline id must not be empty")
    return key


@runtime_checkable
class IPersistenceBackend(Protocol):
    """Holds one serialized ``PipelineRecord`` per pipeline id.

    Write failures raise ``PersistenceError``; a missing record is a
    ``KeyError`` so callers can map it to "not found".
    """

    def save(self, key: str, data: str) -> None:
        """Write the record JSON under *key*, replacing any previous snapshot."""
        ...

    def load(self, key: str) -> str:
        ...

    def exists(self, key: str) -> bool:
        ...

    def delete(self, key: str) -> None:
        """Missing keys are ignored."""
        ...

    def list_keys(self, prefix: str = "") -> list[str]:
        """Normalized keys starting with *prefix*, sorted."""
        ...
