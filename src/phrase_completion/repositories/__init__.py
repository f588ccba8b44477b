"""Repository layer for data access.

This layer abstracts the durable phrase store behind the PhraseStore
protocol. This enables:
- Easy swapping of implementations (Redis → PostgreSQL, Redis → in-memory, etc.)
- Unit testing with the in-memory implementation
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from phrase_completion.config import settings
from phrase_completion.protocols import PhraseStore

from .memory_repository import InMemoryPhraseRepository
from .redis_repository import RedisPhraseRepository


def create_phrase_store(backend: str | None = None) -> PhraseStore:
    """Build the phrase store selected by ``PHRASE_STORE_BACKEND``."""
    backend = backend or settings.phrase_store_backend
    if backend == "memory":
        return InMemoryPhraseRepository()
    if backend == "redis":
        return RedisPhraseRepository.create()
    raise ValueError(f"Unknown phrase store backend: {backend!r}")


__all__ = [
    "PhraseStore",
    "InMemoryPhraseRepository",
    "RedisPhraseRepository",
    "create_phrase_store",
]
