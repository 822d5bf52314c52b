"""Process-local backend for the ``memory`` persistence setting."""

from __future__ import annotations

import logging

from claim_context.persistence.protocols import record_key

log = logging.getLogger(__name__)


class MemoryPersistenceBackend:
    """Pipeline records held in a dict and lost on restart.

    Keys are normalized like the file and S3 backends, so a record saved as
    ``claims/42`` is listed as ``claims_42`` here too.
    """

    def __init__(self) -> None:
        self._records: dict[str, str] = {}

    def save(self, key: str, data: str) -> None:
        key = record_key(key)
        replaced = key in self._records
        self._records[key] = data
        log.debug("%s pipeline record %s in memory", "Replaced" if replaced else "Stored", key)

    def load(self, key: str) -> str:
        try:
            return self._records[record_key(key)]
        except KeyError:
            raise KeyError(f"No pipeline record in memory: {key}") from None

    def exists(self, key: str) -> bool:
        return record_key(key) in self._records

    def delete(self, key: str) -> None:
        self._records.pop(record_key(key), None)

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._records if k.startswith(prefix))
