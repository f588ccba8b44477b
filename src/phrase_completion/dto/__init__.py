"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import PresetPhrasesRequest, UpsertPhraseRequest
from .responses import (
    CompletionQueryResponse,
    CompletionResultItem,
    HealthCheckResponse,
    PhraseRecordItem,
    StatsResponse,
)

__all__ = [
    "UpsertPhraseRequest",
    "PresetPhrasesRequest",
    "PhraseRecordItem",
    "CompletionResultItem",
    "CompletionQueryResponse",
    "StatsResponse",
    "HealthCheckResponse",
]
