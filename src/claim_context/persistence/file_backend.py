"""Local-disk backend: one JSON file per pipeline record."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from claim_context.exceptions import PersistenceError
from claim_context.persistence.protocols import record_key

log = logging.getLogger(__name__)


class FilePersistenceBackend:
    """Stores each key as ``<base_path>/<key>.json``.

    Writes go through a temp file and ``os.replace`` so a crash mid-save never
    leaves a truncated record behind.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    def _key_path(self, key: str) -> Path:
        return self._base / f"{record_key(key)}.json"

    def save(self, key: str, data: str) -> None:
        path = self._key_path(key)
        try:
            fd, tmp = tempfile.mkstemp(dir=self._base, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
            os.replace(tmp, path)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {key} to {path}: {exc}") from exc
        log.debug("Saved %s to %s", key, path)

    def load(self, key: str) -> str:
        path = self._key_path(key)
        if not path.is_file():
            raise KeyError(f"Not found: {key} (path: {path})")
        return path.read_text(encoding="utf-8")

    def exists(self, key: str) -> bool:
        return self._key_path(key).is_file()

    def delete(self, key: str) -> None:
        self._key_path(key).unlink(missing_ok=True)

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(p.stem for p in self._base.glob("*.json") if p.stem.startswith(prefix))
