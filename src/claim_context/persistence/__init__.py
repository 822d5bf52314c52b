"""Pluggable persistence backends for pipeline records."""

from __future__ import annotations

from claim_context.core.config import PersistenceConfig
from claim_context.persistence.file_backend import FilePersistenceBackend
from claim_context.persistence.memory_backend import MemoryPersistenceBackend
from claim_context.persistence.protocols import IPersistenceBackend

__all__ = [
    "FilePersistenceBackend",
    "IPersistenceBackend",
    "MemoryPersistenceBackend",
    "create_backend",
]


def create_backend(config: PersistenceConfig) -> IPersistenceBackend:
    """Build the backend selected by ``CLAIMCTX_PERSISTENCE_BACKEND``."""
    if config.backend == "memory":
        return MemoryPersistenceBackend()
    if config.backend == "s3":
        from claim_context.persistence.s3_backend import S3PersistenceBackend

        return S3PersistenceBackend(
            bucket=config.s3_bucket,
            prefix=config.s3_prefix,
            region=config.aws_region,
        )
    return FilePersistenceBackend(config.store_path)
