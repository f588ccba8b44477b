"""In-memory implementation of PhraseStore.

Keeps every record in process memory. Used for local development
(``PHRASE_STORE_BACKEND=memory``) and for tests. Nothing survives a restart.
"""

import threading
from dataclasses import replace

from phrase_completion.entities import PhraseRecord
from phrase_completion.exceptions import DuplicatePhraseError, RecordNotFoundError
from phrase_completion.scoring import eviction_key, store_order_key


class InMemoryPhraseRepository:
    """Dictionary-backed phrase store.

    This class satisfies the PhraseStore protocol through structural
    typing - no explicit inheritance needed.

    Retired records are kept (soft delete) but never returned.
    """

    def __init__(self) -> None:
        self._records: dict[int, PhraseRecord] = {}
        # (user_id, phrase) -> id of the active record
        self._active_by_phrase: dict[tuple[str, str], int] = {}
        # user_id -> ids of active records
        self._active_ids: dict[str, set[int]] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def _active_for(self, user_id: str) -> list[PhraseRecord]:
        return [self._records[record_id] for record_id in self._active_ids.get(user_id, ())]

    def find_by_user_and_exact_phrase(self, user_id: str, phrase: str) -> PhraseRecord | None:
        with self._lock:
            record_id = self._active_by_phrase.get((user_id, phrase))
            return self._records[record_id] if record_id is not None else None

    def find_by_user_and_prefix(self, user_id: str, prefix: str, limit: int) -> list[PhraseRecord]:
        with self._lock:
            matches = [r for r in self._active_for(user_id) if r.phrase.startswith(prefix)]
        matches.sort(key=store_order_key)
        return matches[:limit]

    def count_active(self, user_id: str) -> int:
        with self._lock:
            return len(self._active_ids.get(user_id, ()))

    def find_eviction_candidates(self, user_id: str, count: int) -> list[PhraseRecord]:
        if count <= 0:
            return []
        with self._lock:
            candidates = self._active_for(user_id)
        candidates.sort(key=eviction_key)
        return candidates[:count]

    def retire(self, user_id: str, record_ids: list[int], deleted_at: int) -> int:
        retired = 0
        with self._lock:
            for record_id in record_ids:
                record = self._records.get(record_id)
                if record is None or record.user_id != user_id or not record.is_active:
                    continue
                self._records[record_id] = record.retired(deleted_at)
                self._active_by_phrase.pop((user_id, record.phrase), None)
                self._active_ids[user_id].discard(record_id)
                retired += 1
        return retired

    def increment_usage(self, record_id: int, last_used_at: int) -> PhraseRecord:
        with self._lock:
            record = self._records.get(record_id)
            if record is None or not record.is_active:
                raise RecordNotFoundError(record_id)
            updated = record.used_again(last_used_at)
            self._records[record_id] = updated
            return updated

    def insert(self, record: PhraseRecord) -> PhraseRecord:
        key = (record.user_id, record.phrase)
        with self._lock:
            existing_id = self._active_by_phrase.get(key)
            if existing_id is not None:
                raise DuplicatePhraseError(record.user_id, record.phrase, existing_id)
            stored = replace(record, id=self._next_id)
            self._next_id += 1
            self._records[stored.id] = stored
            self._active_by_phrase[key] = stored.id
            self._active_ids.setdefault(record.user_id, set()).add(stored.id)
            return stored

    def find_updated_since(self, user_id: str, since: int) -> list[PhraseRecord]:
        with self._lock:
            updated = [r for r in self._active_for(user_id) if r.update_time > since]
        updated.sort(key=lambda r: (r.update_time, r.id))
        return updated

    def health_check(self) -> bool:
        return True

    def get_stats(self) -> dict:
        with self._lock:
            total = len(self._records)
            active = len(self._active_by_phrase)
        return {
            "backend": "memory",
            "total_records": total,
            "active_records": active,
        }
