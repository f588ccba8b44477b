"""Completion query domain entities."""

from dataclasses import dataclass, field

from .phrase_record import SourceType


@dataclass(frozen=True)
class CompletionResultEntity:
    """A single suggested continuation.

    Attributes:
        phrase: The full stored phrase
        completion: The part of ``phrase`` after the typed prefix
        score: Decayed relevance score at query time
        source_type: Origin of the phrase
    """

    phrase: str
    completion: str
    score: float
    source_type: SourceType


@dataclass(frozen=True)
class CompletionQueryEntity:
    """Outcome of one prefix query."""

    prefix: str
    results: list[CompletionResultEntity] = field(default_factory=list)
    from_cache: bool = False
    query_time_ms: float = 0.0
