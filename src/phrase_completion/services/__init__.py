"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from phrase_completion.cache import PhraseCache
    from phrase_completion.repositories import InMemoryPhraseRepository
    from phrase_completion.services import CompletionService, EvictionPolicy, PhraseService

    store = InMemoryPhraseRepository()
    cache = PhraseCache(store)
    completions = CompletionService(store=store, cache=cache)
    phrases = PhraseService(store=store, cache=cache, eviction=EvictionPolicy(store))
    ```
"""

from .completion_service import CompletionService
from .eviction_policy import EvictionPolicy
from .phrase_service import PhraseService, normalize_phrase

__all__ = [
    "CompletionService",
    "EvictionPolicy",
    "PhraseService",
    "normalize_phrase",
]
