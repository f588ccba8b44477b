"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request, status

from phrase_completion.cache import PhraseCache
from phrase_completion.config import configure_logging, settings
from phrase_completion.handlers import CompletionHandler
from phrase_completion.models import QueryMetrics
from phrase_completion.protocols import PhraseStore
from phrase_completion.repositories import create_phrase_store
from phrase_completion.services import CompletionService, EvictionPolicy, PhraseService
from phrase_completion.utils import Clock

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> CompletionHandler:
    """Dependency injection for CompletionHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CompletionHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "completion_handler", None)
    if handler is None:
        raise RuntimeError("CompletionHandler not initialized. Check lifespan setup.")
    return handler


def get_current_user_id(request: Request) -> str:
    """Resolve the caller's user id from the identity header.

    Authentication happens upstream; this layer only trusts the header the
    gateway sets. Requests without it never reach the engine.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    user_id = request.headers.get(settings.user_id_header, "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user_id


def make_lifespan(store: PhraseStore | None = None, clock: Clock | None = None):
    """Build the lifespan context manager for the FastAPI app.

    Args:
        store: Prebuilt phrase store. If None, one is created from settings.
        clock: Epoch-millisecond clock shared by the services. Defaults to wall time.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize all layers and store them in app.state.

        1. Repository (data access)
        2. Cache, metrics, eviction policy
        3. Services (business logic)
        4. Handler (HTTP endpoints) - stored in app.state.completion_handler
        """
        configure_logging()

        repository = store if store is not None else create_phrase_store()
        cache = PhraseCache(repository)
        metrics = QueryMetrics()
        completion_service = CompletionService(
            store=repository,
            cache=cache,
            metrics=metrics,
            clock=clock,
        )
        phrase_service = PhraseService(
            store=repository,
            cache=cache,
            eviction=EvictionPolicy(repository),
            metrics=metrics,
            clock=clock,
        )

        app.state.repository = repository
        app.state.phrase_cache = cache
        app.state.completion_service = completion_service
        app.state.phrase_service = phrase_service
        app.state.completion_handler = CompletionHandler(
            completion_service=completion_service,
            phrase_service=phrase_service,
            store=repository,
        )

        logger.info(
            "Phrase completion service initialized (backend=%s, quota=%d, cache_top_n=%d, store_healthy=%s)",
            type(repository).__name__,
            phrase_service.eviction.quota,
            cache.top_n,
            repository.health_check(),
        )

        yield

        # Cleanup - remove from app.state
        del app.state.completion_handler
        del app.state.phrase_service
        del app.state.completion_service
        del app.state.phrase_cache
        del app.state.repository
        logger.info("Phrase completion service shut down")

    return lifespan


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[CompletionHandler, Depends(get_handler)]
UserIdDep = Annotated[str, Depends(get_current_user_id)]
