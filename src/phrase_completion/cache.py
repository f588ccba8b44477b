"""Per-user in-memory phrase cache.

Holds, for each recently written user, an immutable snapshot of that user's
top records as read from the phrase store. The query engine consults it
before falling back to the store.

Entries are only ever replaced whole (``refresh``) or dropped
(``invalidate``), never edited in place. Readers do a single dict lookup and
never take the lock; the lock only orders concurrent replacements.
"""

import logging
import threading
from collections import OrderedDict

from phrase_completion.config import settings
from phrase_completion.entities import PhraseRecord
from phrase_completion.protocols import PhraseStore

logger = logging.getLogger(__name__)

Snapshot = tuple[PhraseRecord, ...]


class PhraseCache:
    """Bounded map of user id -> top-N phrase snapshot.

    Snapshots keep the store's raw order (frequency desc, last_used_at desc);
    decay is applied at query time, not baked in here.

    When more than ``max_users`` users are cached, the user refreshed least
    recently is dropped first. Reads do not count: ``get`` stays a lock-free
    lookup and never reorders entries, so a user who queries often but rarely
    writes can be dropped ahead of one who writes often. A dropped user is
    served from the store until their next write or refresh.
    """

    def __init__(
        self,
        store: PhraseStore,
        top_n: int | None = None,
        max_users: int | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            store: Phrase store read on refresh (required).
            top_n: Records kept per user. Defaults to settings.
            max_users: Maximum number of cached users. Defaults to settings.
        """
        self._store = store
        self._top_n = top_n or settings.cache_top_n
        self._max_users = max_users or settings.cache_max_users
        self._entries: OrderedDict[str, Snapshot] = OrderedDict()
        self._lock = threading.Lock()
        self._refreshes = 0
        self._invalidations = 0

    def get(self, user_id: str) -> Snapshot | None:
        """Return the user's snapshot, or None on a miss."""
        return self._entries.get(user_id)

    def refresh(self, user_id: str) -> Snapshot:
        """Replace the user's entry with a fresh read of the store's top N.

        The store read happens outside the lock; whichever refresh swaps
        last wins.
        """
        snapshot: Snapshot = tuple(self._store.find_by_user_and_prefix(user_id, "", self._top_n))
        with self._lock:
            self._entries[user_id] = snapshot
            self._entries.move_to_end(user_id)
            while len(self._entries) > self._max_users:
                dropped, _ = self._entries.popitem(last=False)
                logger.debug("Dropped cache entry for user %s (capacity %d)", dropped, self._max_users)
            self._refreshes += 1
        logger.debug("Refreshed cache for user %s: %d phrases", user_id, len(snapshot))
        return snapshot

    def invalidate(self, user_id: str) -> bool:
        """Drop the user's entry. Returns True if one existed."""
        with self._lock:
            removed = self._entries.pop(user_id, None) is not None
            if removed:
                self._invalidations += 1
        return removed

    def clear(self) -> int:
        """Drop every entry. Returns the number of entries dropped."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    def stats(self) -> dict:
        return {
            "cached_users": len(self._entries),
            "max_users": self._max_users,
            "top_n": self._top_n,
            "refreshes": self._refreshes,
            "invalidations": self._invalidations,
        }

    @property
    def top_n(self) -> int:
        return self._top_n
