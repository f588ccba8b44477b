"""Shared fixtures for the phrase completion tests."""

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from phrase_completion.api.app import create_app
from phrase_completion.cache import PhraseCache
from phrase_completion.entities import PhraseRecord, SourceType
from phrase_completion.models import QueryMetrics
from phrase_completion.repositories import InMemoryPhraseRepository
from phrase_completion.services import CompletionService, EvictionPolicy, PhraseService

DAY_MS = 86_400_000
START_MS = 1_760_000_000_000
USER = "user-1"


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms

    def advance_days(self, days: float) -> None:
        self.now += int(days * DAY_MS)


def make_record(
    phrase: str,
    frequency: int = 1,
    last_used_at: int = START_MS,
    user_id: str = USER,
    source_type: SourceType = SourceType.USER_INPUT,
) -> PhraseRecord:
    """Build an unsaved record with the given statistics."""
    record = PhraseRecord.new(user_id, phrase, source_type, None, last_used_at)
    return replace(record, frequency=frequency)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryPhraseRepository()


@pytest.fixture
def cache(store):
    return PhraseCache(store, top_n=100, max_users=1000)


@pytest.fixture
def metrics():
    return QueryMetrics()


@pytest.fixture
def completion_service(store, cache, metrics, clock):
    return CompletionService(store=store, cache=cache, metrics=metrics, clock=clock, result_limit=5)


@pytest.fixture
def phrase_service(store, cache, metrics, clock):
    return PhraseService(
        store=store,
        cache=cache,
        eviction=EvictionPolicy(store, quota=200),
        metrics=metrics,
        clock=clock,
    )


@pytest.fixture
def client(store, clock):
    """Create a test client backed by the in-memory store."""
    with TestClient(create_app(store=store, clock=clock)) as test_client:
        yield test_client


@pytest.fixture
def auth():
    """Identity header for USER."""
    return {"X-User-Id": USER}
