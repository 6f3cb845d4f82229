from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest

# Ensure `backend/` is on sys.path so `import docmeta.*` works in tests.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from docmeta.services.document_service import DocumentAccessService  # noqa: E402
from docmeta.services.fanout import FanOutExecutor  # noqa: E402
from docmeta.storage.memory_store import InMemoryDocumentStore  # noqa: E402
from docmeta.timestamps import Instant  # noqa: E402


class FakeClock:
    def __init__(self, start: Instant):
        self.current = start

    def __call__(self) -> Instant:
        return self.current

    def advance(self, delta: timedelta) -> Instant:
        self.current = self.current + delta
        return self.current


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(Instant.parse("2024-06-01T12:00:00Z"))


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def service(store, clock) -> DocumentAccessService:
    return DocumentAccessService(store, fanout=FanOutExecutor(max_workers=4), now=clock)
