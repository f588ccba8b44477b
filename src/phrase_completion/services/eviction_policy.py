"""Quota enforcement for per-user phrase records."""

from phrase_completion.config import settings
from phrase_completion.protocols import PhraseStore
from phrase_completion.scoring import select_for_eviction


class EvictionPolicy:
    """Decides how many and which records to retire when a user is at quota.

    Selection is by raw statistics (lowest frequency, then oldest
    last_used_at), not by the decayed score.
    """

    def __init__(self, store: PhraseStore, quota: int | None = None) -> None:
        """Initialize the eviction policy.

        Args:
            store: Phrase store queried for candidates (required).
            quota: Maximum active records per user. Defaults to settings.
        """
        self._store = store
        self._quota = quota or settings.phrase_quota

    @property
    def quota(self) -> int:
        return self._quota

    def evict_count(self, active_count: int) -> int:
        """Records to retire so that one new record fits within the quota."""
        if active_count < self._quota:
            return 0
        return active_count - self._quota + 1

    def select_for_eviction(self, user_id: str, count: int) -> list[int]:
        """Return the ids of the ``count`` least valuable active records.

        Args:
            user_id: Owner of the records
            count: Number of records to select

        Returns:
            Record ids, least valuable first
        """
        if count <= 0:
            return []
        candidates = self._store.find_eviction_candidates(user_id, count)
        return [record.id for record in select_for_eviction(candidates, count)]
