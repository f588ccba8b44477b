"""
Tests for the phrase completion API.
"""

import pytest
from fastapi.testclient import TestClient

from phrase_completion.api.app import create_app
from phrase_completion.exceptions import StoreUnavailableError
from phrase_completion.repositories import InMemoryPhraseRepository

from .conftest import USER, make_record


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Phrase Completion API"


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["store_healthy"] is True


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/completion/query?prefix=a"),
        ("get", "/api/completion/phrases/top"),
        ("get", "/api/completion/phrases/sync?since=0"),
        ("post", "/api/completion/cache/refresh"),
    ],
)
def test_unauthenticated_rejected(client, method, path):
    """Requests without a user id never reach the engine."""
    response = getattr(client, method)(path)
    assert response.status_code == 401


def test_blank_user_header_rejected(client):
    response = client.get("/api/completion/query?prefix=a", headers={"X-User-Id": "  "})
    assert response.status_code == 401


def test_query_empty_history(client, auth):
    response = client.get("/api/completion/query", params={"prefix": "a"}, headers=auth)
    assert response.status_code == 200
    data = response.json()
    assert data["prefix"] == "a"
    assert data["results"] == []
    assert data["from_cache"] is False
    assert "query_time_ms" in data


def test_query_without_prefix_returns_empty(client, auth):
    response = client.get("/api/completion/query", headers=auth)
    assert response.status_code == 200
    assert response.json()["results"] == []


def test_upsert_then_query(client, auth):
    for _ in range(5):
        client.post("/api/completion/phrase", json={"phrase": "买菜"}, headers=auth)
    response = client.post(
        "/api/completion/phrase",
        json={"phrase": "买书", "source_type": "SUGGESTION_ACCEPTED", "category": "RECORD"},
        headers=auth,
    )
    assert response.status_code == 200
    created = response.json()
    assert created["frequency"] == 1
    assert created["source_type"] == "SUGGESTION_ACCEPTED"
    assert created["category"] == "RECORD"

    response = client.get("/api/completion/query", params={"prefix": "买"}, headers=auth)
    data = response.json()
    assert data["from_cache"] is True
    assert [r["phrase"] for r in data["results"]] == ["买菜", "买书"]
    assert data["results"][0]["completion"] == "菜"
    assert data["results"][0]["score"] == pytest.approx(5.0)


def test_upsert_twice_increments(client, auth):
    client.post("/api/completion/phrase", json={"phrase": "coffee"}, headers=auth)
    response = client.post("/api/completion/phrase", json={"phrase": "coffee"}, headers=auth)
    assert response.json()["frequency"] == 2


def test_upsert_validation_reports_bound(client, auth):
    response = client.post("/api/completion/phrase", json={"phrase": " a "}, headers=auth)
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["field"] == "phrase"
    assert detail["min_length"] == 2


def test_upsert_rejects_unknown_source_type(client, auth):
    response = client.post(
        "/api/completion/phrase",
        json={"phrase": "coffee", "source_type": "SOMETHING"},
        headers=auth,
    )
    assert response.status_code == 422


def test_top_phrases(client, auth):
    client.post("/api/completion/phrase", json={"phrase": "coffee"}, headers=auth)
    client.post("/api/completion/phrase", json={"phrase": "coffee"}, headers=auth)
    client.post("/api/completion/phrase", json={"phrase": "lunch"}, headers=auth)

    response = client.get("/api/completion/phrases/top", params={"limit": 500}, headers=auth)
    assert response.status_code == 200
    assert [p["phrase"] for p in response.json()] == ["coffee", "lunch"]

    response = client.get("/api/completion/phrases/top", params={"limit": 0}, headers=auth)
    assert response.status_code == 400


def test_top_phrases_unknown_user_is_empty(client):
    response = client.get("/api/completion/phrases/top", headers={"X-User-Id": "nobody"})
    assert response.status_code == 200
    assert response.json() == []


def test_sync(client, auth, clock):
    client.post("/api/completion/phrase", json={"phrase": "coffee"}, headers=auth)
    cursor = clock.now
    clock.advance(1_000)
    client.post("/api/completion/phrase", json={"phrase": "lunch"}, headers=auth)

    response = client.get("/api/completion/phrases/sync", params={"since": cursor}, headers=auth)
    assert response.status_code == 200
    data = response.json()
    assert [p["phrase"] for p in data] == ["lunch"]
    assert data[0]["update_time"] > cursor


def test_refresh_cache(client, auth, store):
    store.insert(make_record("coffee"))
    before = client.get("/api/completion/query", params={"prefix": "co"}, headers=auth).json()
    assert before["from_cache"] is False

    response = client.post("/api/completion/cache/refresh", headers=auth)
    assert response.status_code == 204

    after = client.get("/api/completion/query", params={"prefix": "co"}, headers=auth).json()
    assert after["from_cache"] is True
    assert [r["phrase"] for r in after["results"]] == ["coffee"]


def test_preset_phrases(client, auth):
    response = client.post(
        "/api/completion/phrases/preset",
        json={"phrases": ["早餐", "午餐"]},
        headers=auth,
    )
    assert response.status_code == 200
    data = response.json()
    assert [p["source_type"] for p in data] == ["PRESET", "PRESET"]


def test_delete_phrase(client, auth):
    created = client.post("/api/completion/phrase", json={"phrase": "coffee"}, headers=auth).json()

    response = client.delete(f"/api/completion/phrase/{created['id']}", headers=auth)
    assert response.status_code == 204

    response = client.delete(f"/api/completion/phrase/{created['id']}", headers=auth)
    assert response.status_code == 404


def test_stats(client, auth):
    client.get("/api/completion/query", params={"prefix": "co"}, headers=auth)
    client.post("/api/completion/phrase", json={"phrase": "coffee"}, headers=auth)

    response = client.get("/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["performance"]["cache_misses"] == 1
    assert data["performance"]["upserts"] == 1
    assert data["cache"]["cached_users"] == 1
    assert data["store"]["backend"] == "memory"

    client.get("/stats/reset")
    assert client.get("/stats").json()["performance"]["upserts"] == 0


class DownStore(InMemoryPhraseRepository):
    def find_by_user_and_prefix(self, user_id, prefix, limit):
        raise StoreUnavailableError()

    def health_check(self):
        return False


def test_store_outage_is_retryable_503():
    with TestClient(create_app(store=DownStore())) as client:
        response = client.get("/api/completion/query", params={"prefix": "co"}, headers={"X-User-Id": USER})
        assert response.status_code == 503
        assert response.headers["retry-after"] == "1"
        assert "redis" not in response.text.lower()

        assert client.get("/health").status_code == 503
