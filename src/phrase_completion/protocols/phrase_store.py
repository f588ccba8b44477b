"""Phrase store protocol.

Defines the interface for the durable collection of phrase records that the
completion engine reads and writes.

Implementations can include:
- Redis (default)
- In-memory dictionaries (development and tests)
- A relational table with (user_id, phrase) and (user_id, frequency) indexes
- Any key-value or document store with prefix search and atomic increment

Unless stated otherwise every operation only sees ACTIVE records. All
operations may block on I/O and raise ``StoreUnavailableError`` when the
backend cannot be reached.
"""

from typing import Protocol, runtime_checkable

from phrase_completion.entities import PhraseRecord


@runtime_checkable
class PhraseStore(Protocol):
    """Protocol for phrase record storage backends.

    Similar to Go's interface pattern - any type that implements these
    methods satisfies the protocol, no explicit inheritance needed.

    Example:
        ```python
        from phrase_completion.protocols import PhraseStore

        store: PhraseStore = RedisPhraseRepository.create()
        store: PhraseStore = InMemoryPhraseRepository()
        ```
    """

    def find_by_user_and_exact_phrase(self, user_id: str, phrase: str) -> PhraseRecord | None:
        """Find the active record holding exactly ``phrase``.

        Args:
            user_id: Owner of the record
            phrase: Trimmed phrase text

        Returns:
            The record, or None if the user never submitted it (or it was retired)
        """
        ...

    def find_by_user_and_prefix(self, user_id: str, prefix: str, limit: int) -> list[PhraseRecord]:
        """Find records whose phrase starts with ``prefix``.

        An empty prefix matches every record (the user's "top overall").

        Args:
            user_id: Owner of the records
            prefix: Case-sensitive phrase prefix
            limit: Maximum number of records to return

        Returns:
            Records ordered by frequency desc, last_used_at desc
        """
        ...

    def count_active(self, user_id: str) -> int:
        """Count the user's active records."""
        ...

    def find_eviction_candidates(self, user_id: str, count: int) -> list[PhraseRecord]:
        """Find the ``count`` least valuable records.

        Returns:
            Records ordered by frequency asc, last_used_at asc
        """
        ...

    def retire(self, user_id: str, record_ids: list[int], deleted_at: int) -> int:
        """Soft-delete records of ``user_id``.

        Ids that are unknown, already retired, or owned by another user
        are ignored.

        Returns:
            Number of records retired
        """
        ...

    def increment_usage(self, record_id: int, last_used_at: int) -> PhraseRecord:
        """Atomically add 1 to frequency and set last_used_at.

        Returns:
            The updated record

        Raises:
            RecordNotFoundError: If the record is missing or retired
        """
        ...

    def insert(self, record: PhraseRecord) -> PhraseRecord:
        """Store a new record and assign its id.

        Returns:
            The stored record carrying its assigned id

        Raises:
            DuplicatePhraseError: If an active record with the same phrase exists
        """
        ...

    def find_updated_since(self, user_id: str, since: int) -> list[PhraseRecord]:
        """Find records with ``update_time > since``, ascending by update_time."""
        ...

    def health_check(self) -> bool:
        """Check if the store is accessible."""
        ...

    def get_stats(self) -> dict:
        """Get store statistics (implementation-specific)."""
        ...
