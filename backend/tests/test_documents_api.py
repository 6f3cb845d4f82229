from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from docmeta.db.dynamodb.errors import DdbThrottled
from docmeta.main import create_app
from docmeta.services.document_service import DocumentAccessService


@pytest.fixture()
def client(service) -> TestClient:
    return TestClient(create_app(service=service))


def test_health_returns_request_id(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"
    assert r.headers.get("X-Request-Id")


def test_client_request_id_is_echoed(client):
    r = client.get("/", headers={"X-Request-Id": "abc-123"})
    assert r.headers.get("X-Request-Id") == "abc-123"


def test_malformed_request_id_is_replaced(client):
    r = client.get("/", headers={"X-Request-Id": "bad id with spaces"})
    assert r.headers.get("X-Request-Id")
    assert r.headers.get("X-Request-Id") != "bad id with spaces"


def test_save_get_and_conflict_round_trip(client):
    r = client.post("/api/documents", json={"id": "d1", "ownerId": 7, "category": 10, "subCategory": 20})
    assert r.status_code == 201
    created = r.json()
    assert created["version"] == 1
    assert created["createdAt"] == "2024-06-01T12:00:00.000000000Z"

    r = client.post("/api/documents", json={**created, "notes": "edited"})
    assert r.status_code == 201
    assert r.json()["version"] == 2

    r = client.post("/api/documents", json={**created, "notes": "stale"})
    assert r.status_code == 409
    assert r.headers["content-type"].startswith("application/problem+json")
    body = r.json()
    assert body["status"] == 409
    assert body["extensions"] == {"documentId": "d1", "attemptedVersion": 1}
    assert body.get("requestId")

    r = client.get("/api/documents/d1")
    assert r.status_code == 200
    assert r.json()["notes"] == "edited"


def test_missing_document_is_problem_json_404(client):
    r = client.get("/api/documents/nope")
    assert r.status_code == 404
    assert r.headers["content-type"].startswith("application/problem+json")
    assert r.json()["detail"] == "Document not found"


def test_delete_is_idempotent_over_http(client):
    client.post("/api/documents", json={"id": "d1", "ownerId": 7})
    assert client.delete("/api/documents/d1").status_code == 204
    assert client.delete("/api/documents/d1").status_code == 204
    assert client.get("/api/documents/d1").status_code == 404


def test_list_by_owner_returns_slice(client):
    for i in range(3):
        client.post("/api/documents", json={"id": f"p{i}", "ownerId": 42, "createdAt": f"2024-01-0{i + 1}T00:00:00Z"})

    r = client.get("/api/documents", params={"ownerId": 42, "page": 0, "size": 2})
    assert r.status_code == 200
    body = r.json()
    assert [d["id"] for d in body["content"]] == ["p0", "p1"]
    assert body["hasNext"] is True
    assert body["numberOfElements"] == 2
    assert "totalElements" not in body


def test_list_by_categories(client):
    client.post("/api/documents", json={"id": "a", "ownerId": 9, "category": 101})
    client.post("/api/documents", json={"id": "b", "ownerId": 9, "category": 102})
    client.post("/api/documents", json={"id": "c", "ownerId": 9, "category": 103})

    r = client.get("/api/documents/by-categories", params=[("ownerId", 9), ("category", 101), ("category", 103)])
    assert r.status_code == 200
    assert sorted(d["id"] for d in r.json()["content"]) == ["a", "c"]

    r = client.get("/api/documents/by-categories", params={"ownerId": 9})
    assert r.json() == {"content": []}


def test_request_validation_is_problem_json(client):
    r = client.post("/api/documents", json={"ownerId": 7, "version": 0})
    assert r.status_code == 422
    body = r.json()
    assert body["title"] == "Validation Failed"
    paths = {e["path"] for e in body["errors"]}
    assert {"id", "version"} <= paths

    r = client.post("/api/documents", json={"id": "x", "createdAt": "yesterday"})
    assert r.status_code == 422


def test_storage_throttling_maps_to_503(store, clock):
    class ThrottledStore(type(store)):
        def get_by_key(self, document_id, *, consistent_read=False):
            raise DdbThrottled(message="throttled", operation="GetItem", table_name="T", retryable=True)

    client = TestClient(create_app(service=DocumentAccessService(ThrottledStore(), now=clock)))
    r = client.get("/api/documents/d1")
    assert r.status_code == 503
    body = r.json()
    assert body["title"] == "Service Unavailable"
    assert body["extensions"]["operation"] == "GetItem"
    assert body["extensions"]["retryable"] is True
