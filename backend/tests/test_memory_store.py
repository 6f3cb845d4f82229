from __future__ import annotations

from boto3.dynamodb.conditions import Key

from docmeta.models.document import Document
from docmeta.storage.indexes import OWNER_CATEGORY_INDEX, OWNER_CREATED_AT_INDEX
from docmeta.storage.memory_store import InMemoryDocumentStore
from docmeta.storage.port import Saved, VersionConflict
from docmeta.timestamps import Instant


def _doc(doc_id: str, **kw) -> Document:
    kw.setdefault("owner_id", 7)
    kw.setdefault("created_at", Instant.parse("2024-01-01T00:00:00Z"))
    return Document(id=doc_id, **kw)


def test_create_sets_version_one_and_update_increments():
    store = InMemoryDocumentStore()

    created = store.put_with_version_check(_doc("d1"))
    assert isinstance(created, Saved)
    assert created.document.version == 1

    updated = store.put_with_version_check(created.document)
    assert isinstance(updated, Saved)
    assert updated.document.version == 2
    assert store.raw_item("d1")["version"] == 2


def test_stale_version_is_rejected_without_writing():
    store = InMemoryDocumentStore()
    v1 = store.put_with_version_check(_doc("d1", notes="a")).document
    store.put_with_version_check(v1)

    before = store.raw_item("d1")
    stale = store.put_with_version_check(Document(id="d1", owner_id=7, notes="b", version=1))
    assert stale == VersionConflict(document_id="d1", attempted_version=1)
    assert store.raw_item("d1") == before


def test_create_over_existing_versioned_item_conflicts():
    store = InMemoryDocumentStore()
    store.put_with_version_check(_doc("d1"))

    again = store.put_with_version_check(_doc("d1"))
    assert isinstance(again, VersionConflict)
    assert again.attempted_version is None


def test_update_of_missing_item_conflicts():
    store = InMemoryDocumentStore()
    res = store.put_with_version_check(_doc("ghost", version=4))
    assert res == VersionConflict(document_id="ghost", attempted_version=4)


def test_indexes_are_sparse_and_sorted():
    store = InMemoryDocumentStore(
        [
            _doc("b", category=2),
            _doc("a", category=1),
            _doc("c"),  # no category -> not in the category index
            _doc("x", owner_id=8, category=1),
        ]
    )
    docs = store.query_index(OWNER_CATEGORY_INDEX.name, 7)
    assert [d.id for d in docs] == ["a", "b"]

    only_two = store.query_index(OWNER_CATEGORY_INDEX.name, 7, sort_condition=Key("category").eq(2))
    assert [d.id for d in only_two] == ["b"]

    assert len(store.query_index(OWNER_CREATED_AT_INDEX.name, 7, limit=2)) == 2


def test_query_index_page_reports_cursor_only_when_more_remain():
    store = InMemoryDocumentStore([_doc(f"d{i}") for i in range(3)])

    first = store.query_index_page(OWNER_CREATED_AT_INDEX.name, 7, limit=2)
    assert [d.id for d in first.items] == ["d0", "d1"]
    assert first.cursor is not None

    second = store.query_index_page(OWNER_CREATED_AT_INDEX.name, 7, limit=2, cursor=first.cursor)
    assert [d.id for d in second.items] == ["d2"]
    assert second.cursor is None

    exact = store.query_index_page(OWNER_CREATED_AT_INDEX.name, 7, limit=3)
    assert exact.cursor is None


def test_delete_is_idempotent_and_calls_are_recorded():
    store = InMemoryDocumentStore([_doc("d1")])
    store.delete_by_key("d1")
    store.delete_by_key("d1")
    store.delete_by_key("never-existed")
    assert store.get_by_key("d1") is None
    assert store.count_calls("delete_by_key") == 3


def test_call_bookkeeping_stays_bounded_under_load():
    store = InMemoryDocumentStore([_doc("d1")])
    for _ in range(10_000):
        store.get_by_key("d1")

    assert store.count_calls("get_by_key") == 10_000
    assert len(store.call_counts) == 1
