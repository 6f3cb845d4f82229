from __future__ import annotations

from ..settings import Settings
from .port import IndexPage, Saved, SaveResult, StoragePort, VersionConflict


def build_store(settings: Settings) -> StoragePort:
    backend = settings.normalized_storage_backend
    if backend == "memory":
        from .memory_store import InMemoryDocumentStore

        return InMemoryDocumentStore()
    if backend == "dynamodb":
        from ..db.dynamodb.table import DynamoTable
        from .dynamodb_store import DynamoDocumentStore

        return DynamoDocumentStore(DynamoTable(table_name=settings.table_name))
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")


__all__ = [
    "IndexPage",
    "SaveResult",
    "Saved",
    "StoragePort",
    "VersionConflict",
    "build_store",
]
