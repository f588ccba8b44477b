"""Completion service: the read side of the engine.

Serves prefix queries from the per-user cache when it holds the user, and
from the phrase store otherwise. Also exposes top-phrase priming, incremental
sync, and manual cache control.
"""

import logging
import time

from phrase_completion.cache import PhraseCache
from phrase_completion.config import settings
from phrase_completion.entities import (
    CompletionQueryEntity,
    CompletionResultEntity,
    PhraseRecord,
)
from phrase_completion.exceptions import PhraseValidationError
from phrase_completion.models import QueryMetrics
from phrase_completion.protocols import PhraseStore
from phrase_completion.scoring import rank, record_score
from phrase_completion.utils import Clock, now_ms

logger = logging.getLogger(__name__)


class CompletionService:
    """Ranking/query engine.

    This service depends on the PhraseStore PROTOCOL, not a concrete
    implementation, so the same code serves Redis in production and the
    in-memory store in tests.

    Example:
        ```python
        store = InMemoryPhraseRepository()
        cache = PhraseCache(store)
        completions = CompletionService(store=store, cache=cache)

        result = completions.query("user-1", "买")
        for item in result.results:
            print(item.phrase, item.completion, item.score)
        ```
    """

    def __init__(
        self,
        store: PhraseStore,
        cache: PhraseCache,
        metrics: QueryMetrics | None = None,
        clock: Clock | None = None,
        result_limit: int | None = None,
        top_phrases_max: int | None = None,
    ) -> None:
        """Initialize the completion service.

        Args:
            store: Phrase store (required).
            cache: Per-user cache consulted before the store (required).
            metrics: Metrics sink. A private one is created if None.
            clock: Epoch-millisecond clock. Defaults to wall time.
            result_limit: Maximum results per query. Defaults to settings.
            top_phrases_max: Upper clamp for top_phrases. Defaults to settings.
        """
        self._store = store
        self._cache = cache
        self._metrics = metrics or QueryMetrics()
        self._clock = clock or now_ms
        self._result_limit = result_limit or settings.query_result_limit
        self._top_phrases_max = top_phrases_max or settings.top_phrases_max

    def query(self, user_id: str, prefix: str) -> CompletionQueryEntity:
        """Suggest completions for what the user has typed so far.

        Business logic:
        1. Blank prefix -> empty result
        2. Cache hit -> filter, score and rank the cached snapshot
        3. Cache miss -> ask the store for its top matches and score them
        4. Never offer the prefix itself as a completion

        A miss does not populate the cache; only writes and explicit
        refreshes do.

        Args:
            user_id: Caller's user id
            prefix: Text typed so far (matched case-sensitively, not trimmed)

        Returns:
            CompletionQueryEntity with at most ``result_limit`` results
        """
        if not prefix or not prefix.strip():
            return CompletionQueryEntity(prefix=prefix or "")

        start_time = time.perf_counter()
        now = self._clock()

        snapshot = self._cache.get(user_id)
        from_cache = snapshot is not None

        if snapshot is not None:
            matches = (r for r in snapshot if r.phrase.startswith(prefix) and r.phrase != prefix)
            candidates = rank(matches, now)[: self._result_limit]
        else:
            # The store's raw frequency/recency order stands in for the
            # decayed order on this path.
            candidates = [
                r
                for r in self._store.find_by_user_and_prefix(user_id, prefix, self._result_limit)
                if r.phrase != prefix
            ]

        results = [self._to_result(record, prefix, now) for record in candidates]

        query_time_ms = (time.perf_counter() - start_time) * 1000
        if from_cache:
            self._metrics.record_hit(query_time_ms)
        else:
            self._metrics.record_miss(query_time_ms)

        logger.debug(
            "Completion query for user %s with prefix %r: %d results in %.2fms (cache: %s)",
            user_id,
            prefix,
            len(results),
            query_time_ms,
            from_cache,
        )

        return CompletionQueryEntity(
            prefix=prefix,
            results=results,
            from_cache=from_cache,
            query_time_ms=query_time_ms,
        )

    def top_phrases(self, user_id: str, limit: int = 50) -> list[PhraseRecord]:
        """Get the user's most used phrases, for client-side cache priming.

        Args:
            user_id: Caller's user id
            limit: Requested count, clamped to ``top_phrases_max``

        Returns:
            Records ordered by frequency desc, last_used_at desc

        Raises:
            PhraseValidationError: If limit is not positive
        """
        if limit <= 0:
            raise PhraseValidationError(
                "limit must be positive",
                {"field": "limit", "min": 1, "value": limit},
            )
        return self._store.find_by_user_and_prefix(user_id, "", min(limit, self._top_phrases_max))

    def sync(self, user_id: str, since: int) -> list[PhraseRecord]:
        """Get records modified after ``since`` (epoch ms), oldest change first.

        Raises:
            PhraseValidationError: If since is negative
        """
        if since < 0:
            raise PhraseValidationError(
                "since must not be negative",
                {"field": "since", "min": 0, "value": since},
            )
        return self._store.find_updated_since(user_id, since)

    def refresh_cache(self, user_id: str) -> None:
        """Force a reload of the user's cache entry from the store."""
        self._cache.refresh(user_id)

    def clear_user_cache(self, user_id: str) -> bool:
        """Drop the user's cache entry; the next query falls back to the store."""
        return self._cache.invalidate(user_id)

    @staticmethod
    def _to_result(record: PhraseRecord, prefix: str, now: int) -> CompletionResultEntity:
        return CompletionResultEntity(
            phrase=record.phrase,
            completion=record.phrase[len(prefix) :],
            score=record_score(record, now),
            source_type=record.source_type,
        )

    @property
    def metrics(self) -> QueryMetrics:
        return self._metrics

    @property
    def cache(self) -> PhraseCache:
        """Get the underlying cache (for testing)."""
        return self._cache
