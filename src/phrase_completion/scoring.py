"""Relevance scoring and eviction ordering for phrase records.

Both orderings are pure functions of a record's raw statistics so that the
store implementations, the cache, and the services all agree on them.
"""

from collections.abc import Iterable

from phrase_completion.entities import PhraseRecord

MILLIS_PER_DAY = 86_400_000
DECAY_PER_DAY = 0.9


def days_since_last_use(last_used_at: int, now: int) -> int:
    """Whole days elapsed since ``last_used_at``, clamped at zero.

    Clock skew can put ``last_used_at`` in the future; that counts as today.
    """
    elapsed = now - last_used_at
    if elapsed <= 0:
        return 0
    return elapsed // MILLIS_PER_DAY


def score(frequency: int, last_used_at: int, now: int) -> float:
    """Decayed relevance: ``frequency * 0.9 ** days_since_last_use``."""
    return frequency * DECAY_PER_DAY ** days_since_last_use(last_used_at, now)


def record_score(record: PhraseRecord, now: int) -> float:
    return score(record.frequency, record.last_used_at, now)


def ranking_key(record: PhraseRecord, now: int) -> tuple[float, int, int, int]:
    """Sort key placing the most relevant record first.

    Score desc, then frequency desc, then last_used_at desc, then id asc.
    """
    return (-record_score(record, now), -record.frequency, -record.last_used_at, record.id)


def rank(records: Iterable[PhraseRecord], now: int) -> list[PhraseRecord]:
    return sorted(records, key=lambda r: ranking_key(r, now))


def store_order_key(record: PhraseRecord) -> tuple[int, int, int]:
    """Raw order used by the store: frequency desc, last_used_at desc, id asc."""
    return (-record.frequency, -record.last_used_at, record.id)


def eviction_key(record: PhraseRecord) -> tuple[int, int, int]:
    """Least valuable first: frequency asc, last_used_at asc, id asc.

    Uses raw statistics rather than the decayed score.
    """
    return (record.frequency, record.last_used_at, record.id)


def select_for_eviction(records: Iterable[PhraseRecord], count: int) -> list[PhraseRecord]:
    """Pick the ``count`` least valuable active records."""
    if count <= 0:
        return []
    active = [r for r in records if r.is_active]
    return sorted(active, key=eviction_key)[:count]
