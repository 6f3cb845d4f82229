"""
Document access service: the named query shapes over the document table.

Cost profile per operation (the engine bills per item read, not per item returned):

- get_by_id, find_by_id_and_version: one item.
- list_by_owner: native paging, pages walked up to the requested one.
- list_by_owner_and_date_range, list_by_owner_and_category_and_sub_category:
  the matching slice of one index partition.
- *_in fan-outs: one index query per distinct value, run concurrently.
- list_by_owner_and_created_by*, list_by_owner_and_updated_by,
  list_by_owner_and_date_range_and_notes_containing: whole owner partition
  (or date slice) walked, non-key attributes filtered engine-side. No index
  exists for createdBy / updatedBy / notes.
- find_by_category_and_notes_containing and
  list_by_owner_and_created_by_with_min_updated_at without an owner:
  full table scan. The former requires allow_scan=True.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Iterable

from boto3.dynamodb.conditions import Attr, Key

from ..errors import DocumentValidationError
from ..models.document import (
    CATEGORY,
    CREATED_AT,
    CREATED_BY,
    NOTES,
    SUB_CATEGORY,
    UPDATED_AT,
    UPDATED_BY,
    Document,
)
from ..observability.logging import get_logger
from ..storage.indexes import OWNER_CATEGORY_INDEX, OWNER_CREATED_AT_INDEX, OWNER_SUB_CATEGORY_INDEX, IndexSpec
from ..storage.port import StoragePort
from ..timestamps import Instant, encode_instant
from .concurrency import OptimisticConcurrencyGuard
from .fanout import FanOutExecutor
from .pagination import Page, PageRequest, Slice, page_from_results, slice_from_cursor

log = get_logger("document_service")


def _require_id(document_id: Any, field: str = "id") -> str:
    if not isinstance(document_id, str) or not document_id.strip():
        raise DocumentValidationError(message=f"{field} is required", field=field)
    return document_id


def _require_int(value: Any, field: str) -> int:
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise DocumentValidationError(message=f"{field} must be an integer", field=field)
    return value


def _require_str(value: Any, field: str) -> str:
    if not isinstance(value, str) or value == "":
        raise DocumentValidationError(message=f"{field} is required", field=field)
    return value


def _require_instant(value: Any, field: str) -> Instant:
    if not isinstance(value, Instant):
        raise DocumentValidationError(message=f"{field} must be an instant", field=field)
    return value


def _require_int_values(values: Any, field: str) -> list[int]:
    if values is None or isinstance(values, (str, bytes)):
        raise DocumentValidationError(message=f"{field} is required", field=field)
    return [_require_int(v, field) for v in values]


def _require_page_request(value: Any) -> PageRequest:
    if not isinstance(value, PageRequest):
        raise DocumentValidationError(message="page request is required", field="pageRequest")
    return value


class DocumentAccessService:
    def __init__(
        self,
        store: StoragePort,
        *,
        fanout: FanOutExecutor | None = None,
        now: Callable[[], Instant] = Instant.now,
    ):
        self._store = store
        self._fanout = fanout or FanOutExecutor()
        self._guard = OptimisticConcurrencyGuard(store)
        self._now = now

    # --- point operations ---

    def get_by_id(self, document_id: str) -> Document | None:
        did = _require_id(document_id)
        log.info("get_by_id_start", document_id=did)
        doc = self._store.get_by_key(did)
        log.info("get_by_id_done", document_id=did, found=doc is not None)
        return doc

    def find_by_id_and_version(self, document_id: str, version: int) -> Document | None:
        """Strongly consistent read; returns the document only if it is at `version`."""
        did = _require_id(document_id)
        ver = _require_int(version, "version")
        doc = self._store.get_by_key(did, consistent_read=True)
        if doc is None or doc.version != ver:
            return None
        return doc

    def save(self, document: Document) -> Document:
        if not isinstance(document, Document):
            raise DocumentValidationError(message="document is required", field="document")
        _require_id(document.id)
        if document.version is not None and (_require_int(document.version, "version") < 1):
            raise DocumentValidationError(message="version must be >= 1", field="version")

        to_write = document
        if document.is_new:
            created_at = document.created_at or self._now()
            to_write = replace(
                document,
                created_at=created_at,
                updated_at=document.updated_at or created_at,
            )

        log.info(
            "save_start",
            document_id=document.id,
            owner_id=document.owner_id,
            version=document.version,
        )
        saved = self._guard.save(to_write)
        log.info("save_done", document_id=saved.id, new_version=saved.version)
        return saved

    def delete(self, document_id: str) -> None:
        # Unconditional: a stale reader can still delete. No version check.
        did = _require_id(document_id)
        log.info("delete", document_id=did)
        self._store.delete_by_key(did)

    # --- owner partition queries ---

    def list_by_owner(self, owner_id: int, page_request: PageRequest) -> Slice[Document]:
        oid = _require_int(owner_id, "ownerId")
        req = _require_page_request(page_request)
        log.info("list_by_owner_start", owner_id=oid, page=req.page, size=req.size)

        def _fetch(limit: int, cursor: Any | None):
            return self._store.query_index_page(OWNER_CREATED_AT_INDEX.name, oid, limit=limit, cursor=cursor)

        result = slice_from_cursor(_fetch, req)
        log.info(
            "list_by_owner_done",
            owner_id=oid,
            result_count=result.number_of_elements,
            has_next=result.has_next,
        )
        return result

    def list_by_owner_and_date_range(self, owner_id: int, start: Instant, end: Instant) -> list[Document]:
        """createdAt BETWEEN start AND end, both ends inclusive."""
        oid = _require_int(owner_id, "ownerId")
        lo = _require_instant(start, "start")
        hi = _require_instant(end, "end")
        if lo > hi:
            raise DocumentValidationError(message="start must not be after end", field="start")

        log.info("list_by_owner_and_date_range_start", owner_id=oid, start=str(lo), end=str(hi))
        docs = self._store.query_index(
            OWNER_CREATED_AT_INDEX.name,
            oid,
            sort_condition=Key(CREATED_AT).between(encode_instant(lo), encode_instant(hi)),
        )
        log.info("list_by_owner_and_date_range_done", owner_id=oid, result_count=len(docs))
        return docs

    def list_by_owner_and_date_range_and_notes_containing(
        self, owner_id: int, start: Instant, end: Instant, keyword: str
    ) -> list[Document]:
        oid = _require_int(owner_id, "ownerId")
        lo = _require_instant(start, "start")
        hi = _require_instant(end, "end")
        kw = _require_str(keyword, "keyword")
        if lo > hi:
            raise DocumentValidationError(message="start must not be after end", field="start")

        docs = self._store.query_index(
            OWNER_CREATED_AT_INDEX.name,
            oid,
            sort_condition=Key(CREATED_AT).between(encode_instant(lo), encode_instant(hi)),
            filter_condition=Attr(NOTES).contains(kw),
        )
        log.info(
            "list_by_owner_and_date_range_and_notes_containing",
            owner_id=oid,
            result_count=len(docs),
            cost="partition_walk",
        )
        return docs

    def list_by_owner_and_category_and_sub_category(
        self, owner_id: int, category: int, sub_category: int
    ) -> list[Document]:
        oid = _require_int(owner_id, "ownerId")
        cat = _require_int(category, "category")
        sub = _require_int(sub_category, "subCategory")

        log.info(
            "list_by_owner_and_category_and_sub_category_start",
            owner_id=oid,
            category=cat,
            sub_category=sub,
        )
        docs = self._store.query_index(
            OWNER_CATEGORY_INDEX.name,
            oid,
            sort_condition=Key(CATEGORY).eq(cat),
            filter_condition=Attr(SUB_CATEGORY).eq(sub),
        )
        log.info("list_by_owner_and_category_and_sub_category_done", owner_id=oid, result_count=len(docs))
        return docs

    # --- IN fan-outs ---

    def _fan_out(
        self,
        owner_id: int,
        values: Iterable[int],
        index: IndexSpec,
        filter_condition: Any | None = None,
    ) -> list[Document]:
        def _query(value: int) -> list[Document]:
            return self._store.query_index(
                index.name,
                owner_id,
                sort_condition=Key(index.sort_key).eq(value),
                filter_condition=filter_condition,
            )

        return self._fanout.run(values, _query)

    def list_by_owner_and_categories_in(self, owner_id: int, categories: Iterable[int]) -> list[Document]:
        oid = _require_int(owner_id, "ownerId")
        values = _require_int_values(categories, "categories")

        log.info("list_by_owner_and_categories_in_start", owner_id=oid, categories=values)
        docs = self._fan_out(oid, values, OWNER_CATEGORY_INDEX)
        log.info("list_by_owner_and_categories_in_done", owner_id=oid, result_count=len(docs))
        return docs

    def list_by_owner_and_sub_categories_in(self, owner_id: int, sub_categories: Iterable[int]) -> list[Document]:
        oid = _require_int(owner_id, "ownerId")
        values = _require_int_values(sub_categories, "subCategories")

        log.info("list_by_owner_and_sub_categories_in_start", owner_id=oid, sub_categories=values)
        docs = self._fan_out(oid, values, OWNER_SUB_CATEGORY_INDEX)
        log.info("list_by_owner_and_sub_categories_in_done", owner_id=oid, result_count=len(docs))
        return docs

    def list_by_owner_and_sub_categories_in_with_min_updated_at(
        self, owner_id: int, sub_categories: Iterable[int], min_updated_at: Instant
    ) -> list[Document]:
        """updatedAt strictly after `min_updated_at`, applied to every sub-query."""
        oid = _require_int(owner_id, "ownerId")
        values = _require_int_values(sub_categories, "subCategories")
        since = _require_instant(min_updated_at, "minUpdatedAt")

        docs = self._fan_out(
            oid,
            values,
            OWNER_SUB_CATEGORY_INDEX,
            filter_condition=Attr(UPDATED_AT).gt(encode_instant(since)),
        )
        log.info(
            "list_by_owner_and_sub_categories_in_with_min_updated_at_done",
            owner_id=oid,
            result_count=len(docs),
        )
        return docs

    # --- non-key filters (partition walk / scan) ---

    def list_by_owner_and_created_by(self, owner_id: int, created_by: str) -> list[Document]:
        oid = _require_int(owner_id, "ownerId")
        who = _require_str(created_by, "createdBy")
        docs = self._store.query_index(
            OWNER_CREATED_AT_INDEX.name,
            oid,
            filter_condition=Attr(CREATED_BY).eq(who),
        )
        log.info("list_by_owner_and_created_by", owner_id=oid, result_count=len(docs), cost="partition_walk")
        return docs

    def list_by_owner_and_created_by_with_min_updated_at(
        self, owner_id: int | None, created_by: str, min_updated_at: Instant
    ) -> list[Document]:
        """
        createdBy equality and updatedAt strictly after `min_updated_at`.

        Neither attribute is an index key. With an owner id this walks the
        owner's createdAt partition; without one it scans the whole table.
        """
        who = _require_str(created_by, "createdBy")
        since = _require_instant(min_updated_at, "minUpdatedAt")
        cond = Attr(CREATED_BY).eq(who) & Attr(UPDATED_AT).gt(encode_instant(since))

        if owner_id is None:
            log.info("list_by_created_by_with_min_updated_at", cost="full_scan")
            docs = self._store.scan(filter_condition=cond)
        else:
            oid = _require_int(owner_id, "ownerId")
            log.info("list_by_owner_and_created_by_with_min_updated_at", owner_id=oid, cost="partition_walk")
            docs = self._store.query_index(OWNER_CREATED_AT_INDEX.name, oid, filter_condition=cond)

        log.info("list_by_created_by_with_min_updated_at_done", result_count=len(docs))
        return docs

    def list_by_owner_and_updated_by(
        self, owner_id: int, updated_by: str, page_request: PageRequest
    ) -> Page[Document]:
        """Pulls every match in the owner partition, then slices in memory."""
        oid = _require_int(owner_id, "ownerId")
        who = _require_str(updated_by, "updatedBy")
        req = _require_page_request(page_request)

        log.info("list_by_owner_and_updated_by", owner_id=oid, page=req.page, size=req.size, cost="partition_walk")
        matches = self._store.query_index(
            OWNER_CREATED_AT_INDEX.name,
            oid,
            filter_condition=Attr(UPDATED_BY).eq(who),
        )
        page = page_from_results(matches, req)
        log.info("list_by_owner_and_updated_by_done", owner_id=oid, total_elements=page.total_elements)
        return page

    def find_by_category_and_notes_containing(
        self, category: int, keyword: str, *, allow_scan: bool = False
    ) -> list[Document]:
        """Full table scan: category equality and case-sensitive substring on notes."""
        cat = _require_int(category, "category")
        kw = _require_str(keyword, "keyword")
        if not allow_scan:
            raise DocumentValidationError(
                message="find_by_category_and_notes_containing scans the whole table; pass allow_scan=True",
                field="allow_scan",
            )

        log.info("find_by_category_and_notes_containing_start", category=cat, keyword=kw, cost="full_scan")
        docs = self._store.scan(filter_condition=Attr(CATEGORY).eq(cat) & Attr(NOTES).contains(kw))
        log.info("find_by_category_and_notes_containing_done", category=cat, result_count=len(docs))
        return docs
