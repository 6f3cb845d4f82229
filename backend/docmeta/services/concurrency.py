from __future__ import annotations

from ..errors import OptimisticLockConflict
from ..models.document import Document
from ..observability.logging import get_logger
from ..storage.port import Saved, StoragePort, VersionConflict

log = get_logger("optimistic_lock")

CONFLICT_MESSAGE = "Document was modified by another writer. Re-read it and try again."


class OptimisticConcurrencyGuard:
    """
    Save path with at-most-one-winner semantics per document version.

    Safety rests entirely on the store's atomic conditional write. The guard
    only turns a VersionConflict result into OptimisticLockConflict; it never
    retries and never touches the caller's document.
    """

    def __init__(self, store: StoragePort):
        self._store = store

    def save(self, document: Document) -> Document:
        result = self._store.put_with_version_check(document)

        if isinstance(result, Saved):
            return result.document

        if isinstance(result, VersionConflict):
            log.warning(
                "optimistic_lock_conflict",
                document_id=result.document_id,
                attempted_version=result.attempted_version,
            )
            raise OptimisticLockConflict(
                message=CONFLICT_MESSAGE,
                document_id=result.document_id,
                attempted_version=result.attempted_version,
                cause=result,
            )

        raise TypeError(f"Unexpected save result: {type(result).__name__}")
