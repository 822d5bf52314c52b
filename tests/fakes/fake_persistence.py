"""In-memory persistence backend for testing."""

from __future__ import annotations


class FakePersistenceBackend:
    """Dict-backed storage that can be told to fail on save."""

    def __init__(self, *, fail_on_save: Exception | None = None) -> None:
        self._store: dict[str, str] = {}
        self._fail_on_save = fail_on_save
        self.saves: list[str] = []

    def save(self, key: str, data: str) -> None:
        if self._fail_on_save is not None:
            raise self._fail_on_save
        self.saves.append(key)
        self._store[key] = data

    def load(self, key: str) -> str:
        if key not in self._store:
            raise KeyError(f"Not found: {key}")
        return self._store[key]

    def exists(self, key: str) -> bool:
        return key in self._store

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._store if k.startswith(prefix))
