"""Phrase Completion - per-user phrase suggestions ranked by frequency and recency.

This package provides a layered architecture for prefix completion:

Layers:
    - protocols: Interface contracts (PhraseStore)
    - repositories: Data access implementations (Redis, in-memory)
    - cache: Per-user in-memory snapshot of each user's top phrases
    - scoring: Relevance score and eviction ordering
    - services: Business logic (queries, upserts, quota enforcement)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from phrase_completion import (
        CompletionService,
        EvictionPolicy,
        InMemoryPhraseRepository,
        PhraseCache,
        PhraseService,
    )

    store = InMemoryPhraseRepository()
    cache = PhraseCache(store)
    phrases = PhraseService(store=store, cache=cache, eviction=EvictionPolicy(store))
    completions = CompletionService(store=store, cache=cache)

    phrases.upsert("user-1", "买咖啡")
    completions.query("user-1", "买")
    ```

For HTTP API:
    ```python
    from phrase_completion.api.app import app
    ```
"""

from phrase_completion.cache import PhraseCache
from phrase_completion.config import get_redis_client, settings
from phrase_completion.dto import PresetPhrasesRequest, UpsertPhraseRequest
from phrase_completion.entities import (
    CompletionQueryEntity,
    CompletionResultEntity,
    PhraseRecord,
    RecordState,
    SourceType,
)
from phrase_completion.exceptions import (
    CompletionError,
    PhraseValidationError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from phrase_completion.handlers import CompletionHandler
from phrase_completion.protocols import PhraseStore
from phrase_completion.repositories import InMemoryPhraseRepository, RedisPhraseRepository
from phrase_completion.scoring import score
from phrase_completion.services import CompletionService, EvictionPolicy, PhraseService

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "PhraseStore",
    # Core
    "PhraseCache",
    "score",
    # Services (business logic)
    "CompletionService",
    "EvictionPolicy",
    "PhraseService",
    # Handlers (HTTP)
    "CompletionHandler",
    # Repositories (data access)
    "RedisPhraseRepository",
    "InMemoryPhraseRepository",
    # Entities (domain models)
    "PhraseRecord",
    "RecordState",
    "SourceType",
    "CompletionQueryEntity",
    "CompletionResultEntity",
    # Errors
    "CompletionError",
    "PhraseValidationError",
    "RecordNotFoundError",
    "StoreUnavailableError",
    # DTOs (API contracts)
    "UpsertPhraseRequest",
    "PresetPhrasesRequest",
]
