"""Phrase service: the write side of the engine.

Records phrase submissions, keeps each user within the phrase quota, and
refreshes the user's cache entry after every write.
"""

import logging

from phrase_completion.cache import PhraseCache
from phrase_completion.entities import (
    CATEGORY_MAX_LENGTH,
    PHRASE_MAX_LENGTH,
    PHRASE_MIN_LENGTH,
    PhraseRecord,
    SourceType,
)
from phrase_completion.exceptions import (
    DuplicatePhraseError,
    PhraseValidationError,
    RecordNotFoundError,
)
from phrase_completion.models import QueryMetrics
from phrase_completion.protocols import PhraseStore
from phrase_completion.services.eviction_policy import EvictionPolicy
from phrase_completion.utils import Clock, now_ms

logger = logging.getLogger(__name__)


def normalize_phrase(phrase: str) -> str:
    """Trim a submitted phrase and check its length bounds.

    Raises:
        PhraseValidationError: If the trimmed phrase is shorter than 2 or
            longer than 500 characters
    """
    text = (phrase or "").strip()
    if len(text) < PHRASE_MIN_LENGTH:
        raise PhraseValidationError(
            f"Phrase must be at least {PHRASE_MIN_LENGTH} characters",
            {"field": "phrase", "min_length": PHRASE_MIN_LENGTH, "length": len(text)},
        )
    if len(text) > PHRASE_MAX_LENGTH:
        raise PhraseValidationError(
            f"Phrase must be at most {PHRASE_MAX_LENGTH} characters",
            {"field": "phrase", "max_length": PHRASE_MAX_LENGTH, "length": len(text)},
        )
    return text


def _parse_source_type(source_type: SourceType | str) -> SourceType:
    try:
        return SourceType(source_type)
    except ValueError as e:
        raise PhraseValidationError(
            "Unknown source type",
            {"field": "source_type", "allowed": [s.value for s in SourceType], "value": source_type},
        ) from e


def _normalize_category(category: str | None) -> str | None:
    """Trim the category; blank means none."""
    if category is None:
        return None
    category = category.strip()
    if len(category) > CATEGORY_MAX_LENGTH:
        raise PhraseValidationError(
            f"Category must be at most {CATEGORY_MAX_LENGTH} characters",
            {"field": "category", "max_length": CATEGORY_MAX_LENGTH, "length": len(category)},
        )
    return category or None


class PhraseService:
    """Upsert/evict orchestrator.

    Example:
        ```python
        store = InMemoryPhraseRepository()
        cache = PhraseCache(store)
        phrases = PhraseService(store=store, cache=cache, eviction=EvictionPolicy(store))

        phrases.upsert("user-1", "买咖啡")
        record = phrases.upsert("user-1", "买咖啡")
        assert record.frequency == 2
        ```
    """

    def __init__(
        self,
        store: PhraseStore,
        cache: PhraseCache,
        eviction: EvictionPolicy,
        metrics: QueryMetrics | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the phrase service.

        Args:
            store: Phrase store (required).
            cache: Per-user cache refreshed after each write (required).
            eviction: Quota policy (required).
            metrics: Metrics sink. A private one is created if None.
            clock: Epoch-millisecond clock. Defaults to wall time.
        """
        self._store = store
        self._cache = cache
        self._eviction = eviction
        self._metrics = metrics or QueryMetrics()
        self._clock = clock or now_ms

    def upsert(
        self,
        user_id: str,
        phrase: str,
        source_type: SourceType | str = SourceType.USER_INPUT,
        category: str | None = None,
    ) -> PhraseRecord:
        """Record one submission of ``phrase``.

        Business logic:
        1. Trim and validate the phrase, source type and category
        2. Known phrase -> bump frequency and last_used_at
        3. New phrase -> retire the least valuable records if the user is at
           quota, then insert with frequency 1
        4. Refresh the user's cache entry so the next query sees the write

        A record retired between lookup and increment is re-inserted; a
        phrase inserted concurrently by another request is incremented
        instead.

        Args:
            user_id: Caller's user id
            phrase: Submitted text
            source_type: Origin of the phrase (only stored on creation)
            category: Optional classification (only stored on creation)

        Returns:
            The record after the write

        Raises:
            PhraseValidationError: If the phrase or category length is out of
                bounds, or the source type is unknown
            StoreUnavailableError: If the store cannot be reached
        """
        text = normalize_phrase(phrase)
        source_type = _parse_source_type(source_type)
        category = _normalize_category(category)
        now = self._clock()

        record, evicted = self._write(user_id, text, source_type, category, now)

        self._cache.refresh(user_id)
        self._metrics.record_upsert(evicted)
        return record

    def add_preset_phrases(self, user_id: str, phrases: list[str]) -> list[PhraseRecord]:
        """Upsert each phrase in order with source type PRESET.

        There is no atomicity across the batch: phrases before a failing one
        stay written.
        """
        return [self.upsert(user_id, phrase, SourceType.PRESET) for phrase in phrases]

    def delete_phrase(self, user_id: str, record_id: int) -> None:
        """Retire one of the user's records.

        Raises:
            RecordNotFoundError: If the user has no active record with that id
        """
        if not self._store.retire(user_id, [record_id], self._clock()):
            raise RecordNotFoundError(record_id)
        self._cache.refresh(user_id)

    def _write(
        self,
        user_id: str,
        phrase: str,
        source_type: SourceType,
        category: str | None,
        now: int,
    ) -> tuple[PhraseRecord, int]:
        existing = self._store.find_by_user_and_exact_phrase(user_id, phrase)
        if existing is not None:
            try:
                return self._store.increment_usage(existing.id, now), 0
            except RecordNotFoundError:
                logger.warning(
                    "Phrase record %s of user %s retired during resubmission, inserting instead",
                    existing.id,
                    user_id,
                )

        evicted = self._make_room(user_id, now)
        try:
            record = self._store.insert(PhraseRecord.new(user_id, phrase, source_type, category, now))
        except DuplicatePhraseError as e:
            if e.existing_id is None:
                raise
            logger.warning(
                "Phrase of user %s inserted concurrently as record %s, incrementing instead",
                user_id,
                e.existing_id,
            )
            record = self._store.increment_usage(e.existing_id, now)
        return record, evicted

    def _make_room(self, user_id: str, now: int) -> int:
        to_evict = self._eviction.evict_count(self._store.count_active(user_id))
        if not to_evict:
            return 0

        victims = self._eviction.select_for_eviction(user_id, to_evict)
        evicted = self._store.retire(user_id, victims, now)
        logger.info("Evicted %d old phrases for user %s", evicted, user_id)
        return evicted

    @property
    def eviction(self) -> EvictionPolicy:
        return self._eviction
