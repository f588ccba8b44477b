"""Phrase record domain entity."""

from dataclasses import dataclass, replace
from enum import Enum

PHRASE_MIN_LENGTH = 2
PHRASE_MAX_LENGTH = 500
PHRASE_PREFIX_LENGTH = 10
CATEGORY_MAX_LENGTH = 20


class SourceType(str, Enum):
    """Where a phrase came from. Informational only, never used in scoring."""

    USER_INPUT = "USER_INPUT"
    SUGGESTION_ACCEPTED = "SUGGESTION_ACCEPTED"
    PRESET = "PRESET"


class RecordState(str, Enum):
    """Lifecycle tag of a phrase record."""

    ACTIVE = "ACTIVE"
    RETIRED = "RETIRED"


def derive_phrase_prefix(phrase: str) -> str:
    """Return the indexed pre-filter prefix for a phrase."""
    return phrase[:PHRASE_PREFIX_LENGTH]


@dataclass(frozen=True)
class PhraseRecord:
    """One stored phrase of one user, with its usage statistics.

    Attributes:
        id: Store-assigned identifier (0 until inserted)
        user_id: Owner of the record
        phrase: Trimmed phrase text, never changes after creation
        phrase_prefix: First 10 characters of ``phrase``
        frequency: Number of submissions, at least 1
        last_used_at: Epoch milliseconds of the latest submission
        source_type: Origin of the phrase
        category: Optional free-text classification
        create_time: Epoch milliseconds of creation
        update_time: Epoch milliseconds of the latest modification
        state: ACTIVE or RETIRED
        delete_time: Epoch milliseconds of retirement, kept for audit
    """

    id: int
    user_id: str
    phrase: str
    phrase_prefix: str
    frequency: int
    last_used_at: int
    source_type: SourceType
    category: str | None
    create_time: int
    update_time: int
    state: RecordState = RecordState.ACTIVE
    delete_time: int | None = None

    @classmethod
    def new(
        cls,
        user_id: str,
        phrase: str,
        source_type: SourceType,
        category: str | None,
        now: int,
    ) -> "PhraseRecord":
        """Build a not-yet-stored record for a first submission."""
        return cls(
            id=0,
            user_id=user_id,
            phrase=phrase,
            phrase_prefix=derive_phrase_prefix(phrase),
            frequency=1,
            last_used_at=now,
            source_type=source_type,
            category=category,
            create_time=now,
            update_time=now,
        )

    @property
    def is_active(self) -> bool:
        return self.state is RecordState.ACTIVE

    def with_id(self, record_id: int) -> "PhraseRecord":
        return replace(self, id=record_id)

    def used_again(self, now: int) -> "PhraseRecord":
        """Return a copy counting one more submission at ``now``.

        ``last_used_at`` never moves backwards, even if ``now`` does.
        """
        last_used_at = max(self.last_used_at, now)
        return replace(
            self,
            frequency=self.frequency + 1,
            last_used_at=last_used_at,
            update_time=max(self.update_time, now),
        )

    def retired(self, now: int) -> "PhraseRecord":
        return replace(
            self,
            state=RecordState.RETIRED,
            delete_time=now,
            update_time=max(self.update_time, now),
        )
