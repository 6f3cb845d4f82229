from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Iterable, TypeVar

from ..observability.logging import get_logger

V = TypeVar("V")
R = TypeVar("R")

log = get_logger("fanout")


def distinct(values: Iterable[V]) -> list[V]:
    seen: set[Any] = set()
    out: list[V] = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


class FanOutExecutor:
    """
    Run one sub-query per distinct value on a bounded thread pool and
    concatenate the results.

    Join semantics: the caller blocks until every sub-query has returned. If
    any sub-query raises, pending ones are cancelled and that exception is
    re-raised unchanged; partial results are discarded. No retries here.
    """

    def __init__(self, *, max_workers: int = 8):
        if int(max_workers) < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = int(max_workers)

    def run(self, values: Iterable[V], query: Callable[[V], list[R]]) -> list[R]:
        keys = distinct(values)
        if not keys:
            return []

        if len(keys) == 1:
            return list(query(keys[0]))

        executor = ThreadPoolExecutor(
            max_workers=min(len(keys), self.max_workers),
            thread_name_prefix="fanout",
        )
        try:
            futures = [executor.submit(query, k) for k in keys]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for f in futures:
                if f not in done:
                    continue
                exc = f.exception()
                if exc is not None:
                    log.warning("fanout_subquery_failed", values=len(keys), error=str(exc))
                    raise exc
        finally:
            # Running sub-queries finish in the background; queued ones are dropped.
            executor.shutdown(wait=False, cancel_futures=True)

        out: list[R] = []
        for f in futures:
            out.extend(f.result())
        return out
