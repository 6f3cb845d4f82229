from __future__ import annotations

import threading
import time

import pytest

from docmeta.services.fanout import FanOutExecutor, distinct


def test_empty_values_issue_no_query():
    calls: list[int] = []
    out = FanOutExecutor().run([], lambda v: calls.append(v) or [v])
    assert out == []
    assert calls == []


def test_results_are_concatenated_per_distinct_value():
    out = FanOutExecutor(max_workers=3).run([3, 1, 3, 2], lambda v: [v] * v)
    assert sorted(out) == [1, 2, 2, 3, 3, 3]


def test_distinct_preserves_first_seen_order():
    assert distinct([3, 1, 3, 2, 1]) == [3, 1, 2]


def test_sub_queries_run_concurrently():
    barrier = threading.Barrier(3, timeout=5)

    def query(v: int) -> list[int]:
        # Deadlocks (then BrokenBarrierError) unless all three run at once.
        barrier.wait()
        return [v]

    assert sorted(FanOutExecutor(max_workers=3).run([1, 2, 3], query)) == [1, 2, 3]


def test_parallelism_is_capped():
    lock = threading.Lock()
    active = 0
    peak = 0

    def query(v: int) -> list[int]:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1
        return [v]

    out = FanOutExecutor(max_workers=2).run(range(8), query)
    assert sorted(out) == list(range(8))
    assert peak <= 2


def test_any_failure_fails_the_whole_operation():
    class Boom(RuntimeError):
        pass

    def query(v: int) -> list[int]:
        if v == 2:
            raise Boom("sub-query failed")
        return [v]

    with pytest.raises(Boom):
        FanOutExecutor(max_workers=4).run([1, 2, 3], query)


def test_max_workers_must_be_positive():
    with pytest.raises(ValueError):
        FanOutExecutor(max_workers=0)


def test_failure_re_raises_the_sub_query_exception_itself():
    boom = LookupError("index unavailable")

    def query(v: int) -> list[int]:
        if v == 3:
            raise boom
        return [v]

    with pytest.raises(LookupError) as ei:
        FanOutExecutor(max_workers=2).run([1, 2, 3], query)
    assert ei.value is boom
