"""Persistence for ``PipelineRecord`` snapshots."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from claim_context.models import ClaimContext, PipelineRecord
from claim_context.persistence.protocols import IPersistenceBackend

log = logging.getLogger(__name__)


class PipelineStore:
    """Save, load and update pipeline records on any ``IPersistenceBackend``."""

    def __init__(self, backend: IPersistenceBackend) -> None:
        self._backend = backend

    def create(self, context: ClaimContext, pipeline_id: str | None = None) -> PipelineRecord:
        """Start a new ``draft`` record for *context*."""
        record = PipelineRecord(
            pipeline_id=pipeline_id or uuid.uuid4().hex,
            claim_id=context.claim_id,
            claim_context=context,
        )
        self._backend.save(record.pipeline_id, record.model_dump_json(indent=2))
        log.info("Created pipeline %s for claim %r", record.pipeline_id, record.claim_id)
        return record

    def exists(self, pipeline_id: str) -> bool:
        return self._backend.exists(pipeline_id)

    def load(self, pipeline_id: str) -> PipelineRecord:
        """Raises KeyError if no record exists."""
        return PipelineRecord.model_validate_json(self._backend.load(pipeline_id))

    def save(self, record: PipelineRecord) -> PipelineRecord:
        record = record.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        self._backend.save(record.pipeline_id, record.model_dump_json(indent=2))
        return record

    def update(self, pipeline_id: str, **fields: Any) -> PipelineRecord:
        """Apply *fields* to an existing record, creating it if this is the first write."""
        if self._backend.exists(pipeline_id):
            record = self.load(pipeline_id)
        else:
            record = PipelineRecord(pipeline_id=pipeline_id)
        if "claim_context" in fields and "claim_id" not in fields:
            fields["claim_id"] = fields["claim_context"].claim_id
        record = self.save(record.model_copy(update=fields))
        log.debug("Updated pipeline %s: stage=%s status=%s", pipeline_id, record.stage.value, record.status.value)
        return record

    def list_records(self) -> list[PipelineRecord]:
        return [self.load(key) for key in self._backend.list_keys()]
