from __future__ import annotations

import threading
from collections import Counter
from dataclasses import replace
from typing import Any

from boto3.dynamodb.conditions import ConditionBase

from ..models.document import ID, VERSION, Document
from .conditions import matches
from .indexes import IndexSpec, get_index
from .port import IndexPage, Saved, SaveResult, StoragePort, VersionConflict


class InMemoryDocumentStore(StoragePort):
    """
    In-process stand-in for the DynamoDB table.

    Items are kept as stored attribute maps so filters see exactly what the
    engine would see. Secondary indexes are sparse: an item lacking the index
    partition or sort attribute is not in that index. Conditional writes are
    atomic under a single lock.
    """

    def __init__(self, documents: list[Document] | None = None):
        self._lock = threading.Lock()
        self._items: dict[str, dict[str, Any]] = {}
        # Per-operation request counts; bounded by the number of operations.
        self.call_counts: Counter[str] = Counter()
        for d in documents or []:
            self._items[d.id] = d.to_item()

    # --- introspection for tests / local debugging ---

    def count_calls(self, operation: str) -> int:
        with self._lock:
            return self.call_counts[operation]

    def raw_item(self, document_id: str) -> dict[str, Any] | None:
        with self._lock:
            it = self._items.get(document_id)
            return dict(it) if it is not None else None

    def _record(self, operation: str) -> None:
        with self._lock:
            self.call_counts[operation] += 1

    # --- StoragePort ---

    def get_by_key(self, document_id: str, *, consistent_read: bool = False) -> Document | None:
        self._record("get_by_key")
        item = self.raw_item(document_id)
        return Document.from_item(item) if item else None

    def _partition(self, ix: IndexSpec, partition_value: Any) -> list[dict[str, Any]]:
        with self._lock:
            snapshot = [dict(it) for it in self._items.values()]
        rows = [
            it
            for it in snapshot
            if it.get(ix.partition_key) is not None
            and it.get(ix.sort_key) is not None
            and it[ix.partition_key] == partition_value
        ]
        rows.sort(key=lambda it: (it[ix.sort_key], it[ID]))
        return rows

    def query_index(
        self,
        index_name: str,
        partition_value: Any,
        *,
        sort_condition: ConditionBase | None = None,
        filter_condition: ConditionBase | None = None,
        limit: int | None = None,
        consistent_read: bool = False,
    ) -> list[Document]:
        self._record("query_index")
        ix = get_index(index_name)
        rows = [
            it
            for it in self._partition(ix, partition_value)
            if matches(sort_condition, it) and matches(filter_condition, it)
        ]
        if limit is not None:
            rows = rows[: max(0, int(limit))]
        return [Document.from_item(it) for it in rows]

    def query_index_page(
        self,
        index_name: str,
        partition_value: Any,
        *,
        limit: int,
        cursor: Any | None = None,
    ) -> IndexPage:
        self._record("query_index_page")
        ix = get_index(index_name)
        rows = self._partition(ix, partition_value)
        if cursor is not None:
            after = (cursor[ix.sort_key], cursor[ID])
            rows = [it for it in rows if (it[ix.sort_key], it[ID]) > after]

        size = max(1, int(limit))
        chunk = rows[:size]
        next_cursor = None
        if len(rows) > size:
            last = chunk[-1]
            next_cursor = {ID: last[ID], ix.partition_key: last[ix.partition_key], ix.sort_key: last[ix.sort_key]}
        return IndexPage(items=[Document.from_item(it) for it in chunk], cursor=next_cursor)

    def scan(self, *, filter_condition: ConditionBase | None = None) -> list[Document]:
        self._record("scan")
        with self._lock:
            snapshot = [dict(it) for it in self._items.values()]
        return [Document.from_item(it) for it in snapshot if matches(filter_condition, it)]

    def put_with_version_check(self, document: Document) -> SaveResult:
        self._record("put_with_version_check")
        expected = document.version
        with self._lock:
            current = self._items.get(document.id)
            current_version = current.get(VERSION) if current else None
            if expected is None:
                if current_version is not None:
                    return VersionConflict(document_id=document.id, attempted_version=None)
                stored = replace(document, version=1)
            else:
                if current_version is None or int(current_version) != int(expected):
                    return VersionConflict(document_id=document.id, attempted_version=expected)
                stored = replace(document, version=int(expected) + 1)
            self._items[document.id] = stored.to_item()
        return Saved(stored)

    def delete_by_key(self, document_id: str) -> None:
        self._record("delete_by_key")
        with self._lock:
            self._items.pop(document_id, None)
