"""
Tests for the completion (query) service.
"""

import pytest

from phrase_completion.entities import SourceType
from phrase_completion.exceptions import PhraseValidationError

from .conftest import DAY_MS, START_MS, USER, make_record


def test_empty_history_returns_nothing_from_store(completion_service):
    result = completion_service.query(USER, "a")

    assert result.results == []
    assert result.from_cache is False
    assert result.prefix == "a"


@pytest.mark.parametrize("prefix", ["", "   "])
def test_blank_prefix_returns_empty(completion_service, phrase_service, prefix):
    phrase_service.upsert(USER, "coffee")

    result = completion_service.query(USER, prefix)

    assert result.results == []
    assert result.from_cache is False


def test_frequent_phrase_ranks_first(completion_service, phrase_service):
    for _ in range(5):
        phrase_service.upsert(USER, "买菜")
    phrase_service.upsert(USER, "买书")

    result = completion_service.query(USER, "买")

    assert result.from_cache is True
    assert [r.phrase for r in result.results] == ["买菜", "买书"]
    assert [r.completion for r in result.results] == ["菜", "书"]
    assert result.results[0].score == pytest.approx(5.0)


def test_exact_match_never_offered(completion_service, phrase_service, store, cache):
    phrase_service.upsert(USER, "coffee")
    phrase_service.upsert(USER, "coffee beans")

    cached = completion_service.query(USER, "coffee")
    cache.invalidate(USER)
    uncached = completion_service.query(USER, "coffee")

    assert cached.from_cache is True
    assert uncached.from_cache is False
    for result in (cached, uncached):
        assert [r.phrase for r in result.results] == ["coffee beans"]
        assert result.results[0].completion == " beans"


def test_cache_path_applies_decay(completion_service, store, cache, clock):
    store.insert(make_record("taxi to airport", frequency=3, last_used_at=START_MS - 30 * DAY_MS))
    store.insert(make_record("taxi home", frequency=1, last_used_at=START_MS))
    cache.refresh(USER)

    result = completion_service.query(USER, "taxi")

    assert [r.phrase for r in result.results] == ["taxi home", "taxi to airport"]
    assert result.results[1].score == pytest.approx(3 * 0.9**30)


def test_store_path_keeps_store_order_but_scores(completion_service, store):
    store.insert(make_record("taxi to airport", frequency=3, last_used_at=START_MS - 30 * DAY_MS))
    store.insert(make_record("taxi home", frequency=1, last_used_at=START_MS))

    result = completion_service.query(USER, "taxi")

    assert result.from_cache is False
    assert [r.phrase for r in result.results] == ["taxi to airport", "taxi home"]
    assert result.results[0].score == pytest.approx(3 * 0.9**30)
    assert result.results[1].score == pytest.approx(1.0)


def test_miss_does_not_populate_cache(completion_service, store, cache):
    store.insert(make_record("coffee"))

    completion_service.query(USER, "co")

    assert cache.get(USER) is None
    assert completion_service.query(USER, "co").from_cache is False


def test_results_capped_at_five(completion_service, phrase_service):
    for i in range(8):
        phrase_service.upsert(USER, f"grocery {i}")

    result = completion_service.query(USER, "gro")

    assert len(result.results) == 5


def test_results_carry_source_type(completion_service, phrase_service):
    phrase_service.upsert(USER, "rent payment", SourceType.PRESET)

    result = completion_service.query(USER, "rent")

    assert result.results[0].source_type is SourceType.PRESET


def test_queries_are_scoped_to_user(completion_service, phrase_service):
    phrase_service.upsert("user-2", "coffee")

    assert completion_service.query(USER, "co").results == []


def test_metrics_record_hits_and_misses(completion_service, phrase_service, metrics):
    completion_service.query(USER, "co")
    phrase_service.upsert(USER, "coffee")
    completion_service.query(USER, "co")

    assert metrics.cache_misses == 1
    assert metrics.cache_hits == 1
    assert metrics.hit_rate == pytest.approx(0.5)


def test_top_phrases_clamped_and_validated(completion_service, store):
    for i in range(120):
        store.insert(make_record(f"phrase {i:03d}", frequency=1 + i % 4))

    assert len(completion_service.top_phrases(USER, 10)) == 10
    assert len(completion_service.top_phrases(USER, 500)) == 100
    assert completion_service.top_phrases("nobody", 10) == []
    assert completion_service.top_phrases(USER, 3)[0].frequency == 4

    with pytest.raises(PhraseValidationError) as exc_info:
        completion_service.top_phrases(USER, 0)
    assert exc_info.value.details["field"] == "limit"


def test_sync_returns_updates_after_cursor(completion_service, phrase_service, clock):
    phrase_service.upsert(USER, "coffee")
    cursor = clock.now
    clock.advance(1_000)
    phrase_service.upsert(USER, "lunch")
    clock.advance(1_000)
    phrase_service.upsert(USER, "coffee")

    records = completion_service.sync(USER, cursor)

    assert [r.phrase for r in records] == ["lunch", "coffee"]
    assert all(r.update_time > cursor for r in records)
    assert [r.update_time for r in records] == sorted(r.update_time for r in records)
    assert completion_service.sync("nobody", 0) == []


def test_sync_rejects_negative_cursor(completion_service):
    with pytest.raises(PhraseValidationError):
        completion_service.sync(USER, -1)


def test_refresh_and_clear_user_cache(completion_service, store, cache):
    store.insert(make_record("coffee"))

    completion_service.refresh_cache(USER)
    assert completion_service.query(USER, "co").from_cache is True

    assert completion_service.clear_user_cache(USER) is True
    assert completion_service.query(USER, "co").from_cache is False
