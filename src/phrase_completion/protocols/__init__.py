"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis → PostgreSQL, Redis → in-memory, etc.)
- Unit testing with in-memory implementations
- Clear separation of concerns

Usage:
    ```python
    from phrase_completion.protocols import PhraseStore

    # Type hints work with any implementation
    store: PhraseStore = RedisPhraseRepository()     # works
    store: PhraseStore = InMemoryPhraseRepository()  # also works
    ```
"""

from .phrase_store import PhraseStore

__all__ = [
    "PhraseStore",
]
