from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DocumentError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class DocumentValidationError(DocumentError):
    """Malformed input, rejected before any storage call."""

    field: str | None = None


@dataclass(slots=True)
class OptimisticLockConflict(DocumentError):
    """A save lost the version race. Stored state is unchanged; re-read before retrying."""

    document_id: str | None = None
    attempted_version: int | None = None
    cause: object | None = None

    def __str__(self) -> str:
        return f"{self.message} [documentId={self.document_id}, attemptedVersion={self.attempted_version}]"
