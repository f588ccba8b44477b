"""
Tests for the per-user phrase cache.
"""

from phrase_completion.cache import PhraseCache

from .conftest import DAY_MS, START_MS, USER, make_record


def test_unknown_user_is_a_miss(cache):
    assert cache.get(USER) is None
    assert USER not in cache


def test_refresh_snapshots_store_top_n_in_raw_order(store):
    for i in range(5):
        store.insert(make_record(f"phrase {i}", frequency=i + 1, last_used_at=START_MS - i * DAY_MS))
    cache = PhraseCache(store, top_n=3, max_users=10)

    snapshot = cache.refresh(USER)

    assert isinstance(snapshot, tuple)
    assert [r.phrase for r in snapshot] == ["phrase 4", "phrase 3", "phrase 2"]
    assert cache.get(USER) is snapshot


def test_refresh_replaces_whole_entry(store, cache):
    store.insert(make_record("coffee"))
    before = cache.refresh(USER)

    store.insert(make_record("lunch"))
    after = cache.refresh(USER)

    assert len(before) == 1
    assert len(after) == 2
    assert cache.get(USER) is after


def test_refresh_of_user_without_history_caches_empty_snapshot(cache):
    assert cache.refresh(USER) == ()
    assert cache.get(USER) == ()


def test_invalidate(store, cache):
    store.insert(make_record("coffee"))
    cache.refresh(USER)

    assert cache.invalidate(USER) is True
    assert cache.get(USER) is None
    assert cache.invalidate(USER) is False


def test_least_recently_refreshed_user_dropped_at_capacity(store):
    cache = PhraseCache(store, top_n=10, max_users=2)

    cache.refresh("a")
    cache.refresh("b")
    cache.refresh("a")
    cache.refresh("c")

    assert "a" in cache
    assert "c" in cache
    assert "b" not in cache
    assert len(cache) == 2


def test_reads_do_not_affect_which_user_is_dropped(store):
    cache = PhraseCache(store, top_n=10, max_users=2)

    cache.refresh("reader")
    cache.refresh("writer")
    for _ in range(5):
        assert cache.get("reader") == ()
    cache.refresh("newcomer")

    assert "reader" not in cache
    assert cache.get("reader") is None
    assert "writer" in cache
    assert "newcomer" in cache


def test_clear_and_stats(store, cache):
    cache.refresh("a")
    cache.refresh("b")
    cache.invalidate("a")

    stats = cache.stats()
    assert stats["cached_users"] == 1
    assert stats["refreshes"] == 2
    assert stats["invalidations"] == 1
    assert stats["top_n"] == 100

    assert cache.clear() == 1
    assert len(cache) == 0
