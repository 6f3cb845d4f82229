from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from ...observability.logging import get_logger
from .errors import (
    DdbConflict,
    DdbError,
    DdbInternal,
    DdbThrottled,
    DdbUnavailable,
    DdbValidation,
)

T = TypeVar("T")

log = get_logger("ddb_retry")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int = 6
    base_delay_s: float = 0.05
    max_delay_s: float = 1.5


NO_RETRY = RetryPolicy(max_attempts=1)

_RETRYABLE_CODES = {
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
    "InternalServerError",
    "ServiceUnavailable",
}


def _sleep_backoff(policy: RetryPolicy, attempt: int) -> None:
    # Full jitter exponential backoff.
    cap = policy.max_delay_s
    base = policy.base_delay_s
    exp = min(cap, base * (2 ** max(0, attempt - 1)))
    time.sleep(random.random() * exp)


def _aws_request_id_from_client_error(e: ClientError) -> str | None:
    return (e.response or {}).get("ResponseMetadata", {}).get("RequestId")


def _err_code_from_client_error(e: ClientError) -> str | None:
    return (e.response or {}).get("Error", {}).get("Code")


def map_botocore_error(
    *,
    operation: str,
    table_name: str | None,
    key: dict[str, Any] | None,
    exc: Exception,
) -> DdbError:
    if isinstance(exc, DdbError):
        return exc

    if isinstance(exc, ClientError):
        code = _err_code_from_client_error(exc) or ""
        aws_request_id = _aws_request_id_from_client_error(exc)
        common = {
            "operation": operation,
            "table_name": table_name,
            "key": key,
            "aws_request_id": aws_request_id,
            "cause": exc,
        }

        if code == "ConditionalCheckFailedException":
            return DdbConflict(message="DynamoDB conditional check failed", retryable=False, **common)

        if code in ("ValidationException", "ParamValidationError"):
            return DdbValidation(message="DynamoDB request validation failed", retryable=False, **common)

        if code in ("AccessDeniedException", "UnrecognizedClientException", "ResourceNotFoundException"):
            return DdbUnavailable(message=f"DynamoDB table unavailable ({code})", retryable=False, **common)

        if code in _RETRYABLE_CODES:
            return DdbThrottled(message="DynamoDB request throttled or unavailable", retryable=True, **common)

        return DdbInternal(
            message=f"DynamoDB request failed ({code or 'ClientError'})",
            retryable=False,
            **common,
        )

    if isinstance(exc, BotoCoreError):
        return DdbUnavailable(
            message="DynamoDB client error",
            operation=operation,
            table_name=table_name,
            key=key,
            retryable=True,
            cause=exc,
        )

    return DdbInternal(
        message="Unexpected DynamoDB error",
        operation=operation,
        table_name=table_name,
        key=key,
        retryable=False,
        cause=exc,
    )


def ddb_call(
    operation: str,
    fn: Callable[[], T],
    *,
    table_name: str | None = None,
    key: dict[str, Any] | None = None,
    retry_policy: RetryPolicy | None = None,
) -> T:
    """Run one storage-engine request, mapping failures into `DdbError`.

    Only throttling / transient failures are retried. Conditional-check and
    validation failures are raised on the first attempt.
    """
    policy = retry_policy or RetryPolicy()
    attempts = max(1, int(policy.max_attempts))

    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as e:  # noqa: BLE001
            mapped = map_botocore_error(
                operation=operation,
                table_name=table_name,
                key=key,
                exc=e,
            )

            if not mapped.retryable or attempt >= attempts:
                if mapped is e:
                    raise
                raise mapped from e

            log.warning(
                "ddb_retry",
                operation=operation,
                table_name=table_name,
                attempt=attempt,
                error=mapped.message,
            )
            _sleep_backoff(policy, attempt)

    raise DdbInternal(message="DynamoDB request failed", operation=operation, table_name=table_name, key=key)
