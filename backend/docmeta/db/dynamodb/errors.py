from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class DdbError(Exception):
    """Base error for storage-engine operations.

    Raised by the transport layer (`ddb_call`) and propagated unchanged through
    the document service; the HTTP layer renders them as problem-details.
    """

    message: str
    operation: str | None = None
    table_name: str | None = None
    key: dict[str, Any] | None = None
    aws_request_id: str | None = None
    retryable: bool = False
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message

    def as_extensions(self) -> dict[str, Any]:
        ext = {
            "operation": self.operation,
            "table": self.table_name,
            "key": self.key,
            "awsRequestId": self.aws_request_id,
            "retryable": bool(self.retryable),
        }
        return {k: v for k, v in ext.items() if v is not None}


@dataclass(slots=True)
class DdbNotFound(DdbError):
    pass


# Conditional check failed. The document store turns this into a VersionConflict result.
@dataclass(slots=True)
class DdbConflict(DdbError):
    pass


@dataclass(slots=True)
class DdbValidation(DdbError):
    pass


@dataclass(slots=True)
class DdbThrottled(DdbError):
    pass


@dataclass(slots=True)
class DdbUnavailable(DdbError):
    pass


@dataclass(slots=True)
class DdbInternal(DdbError):
    pass
