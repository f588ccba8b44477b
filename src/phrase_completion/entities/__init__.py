"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.

Entities should have:
- No JSON serialization logic
- No Pydantic validation
- No external dependencies
- Pure domain logic only
"""

from .completion import CompletionQueryEntity, CompletionResultEntity
from .phrase_record import (
    CATEGORY_MAX_LENGTH,
    PHRASE_MAX_LENGTH,
    PHRASE_MIN_LENGTH,
    PHRASE_PREFIX_LENGTH,
    PhraseRecord,
    RecordState,
    SourceType,
    derive_phrase_prefix,
)

__all__ = [
    "CompletionQueryEntity",
    "CompletionResultEntity",
    "PhraseRecord",
    "RecordState",
    "SourceType",
    "derive_phrase_prefix",
    "PHRASE_MIN_LENGTH",
    "PHRASE_MAX_LENGTH",
    "PHRASE_PREFIX_LENGTH",
    "CATEGORY_MAX_LENGTH",
]
