from typing import Any

from fastapi import FastAPI, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware

from phrase_completion.api.dependencies import HandlerDep, UserIdDep, make_lifespan
from phrase_completion.config import settings
from phrase_completion.dto import (
    CompletionQueryResponse,
    HealthCheckResponse,
    PhraseRecordItem,
    PresetPhrasesRequest,
    StatsResponse,
    UpsertPhraseRequest,
)
from phrase_completion.protocols import PhraseStore
from phrase_completion.utils import Clock


def create_app(store: PhraseStore | None = None, clock: Clock | None = None) -> FastAPI:
    """Build the phrase completion API.

    Args:
        store: Prebuilt phrase store. If None, one is created from settings at startup.
        clock: Epoch-millisecond clock. Defaults to wall time.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Phrase Completion API",
        description="Per-user phrase completion for transaction descriptions",
        version="0.1.0",
        lifespan=make_lifespan(store=store, clock=clock),
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Phrase Completion API",
            "version": "0.1.0",
            "description": "Per-user phrase completion for transaction descriptions",
            "endpoints": {
                "completion": "/api/completion",
                "stats": "/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return handler.health_check()

    @app.get("/api/completion/query", response_model=CompletionQueryResponse)
    def query(
        handler: HandlerDep,
        user_id: UserIdDep,
        prefix: str = Query("", description="Text typed so far"),
    ) -> CompletionQueryResponse:
        """
        Suggest completions for a prefix.

        Served from the per-user cache when possible. A blank prefix
        returns no results.
        """
        return handler.query(user_id, prefix)

    @app.post("/api/completion/phrase", response_model=PhraseRecordItem)
    def upsert_phrase(
        request: UpsertPhraseRequest,
        handler: HandlerDep,
        user_id: UserIdDep,
    ) -> PhraseRecordItem:
        """
        Record a phrase the user entered.

        A known phrase has its frequency increased; a new one is stored,
        retiring the least used phrases when the user is at quota.
        """
        return handler.upsert(user_id, request)

    @app.delete("/api/completion/phrase/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_phrase(record_id: int, handler: HandlerDep, user_id: UserIdDep) -> Response:
        """Retire one of the caller's phrases."""
        handler.delete_phrase(user_id, record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/api/completion/phrases/preset", response_model=list[PhraseRecordItem])
    def add_preset_phrases(
        request: PresetPhrasesRequest,
        handler: HandlerDep,
        user_id: UserIdDep,
    ) -> list[PhraseRecordItem]:
        """Record a batch of preset phrases, in order."""
        return handler.add_presets(user_id, request)

    @app.get("/api/completion/phrases/top", response_model=list[PhraseRecordItem])
    def top_phrases(
        handler: HandlerDep,
        user_id: UserIdDep,
        limit: int = Query(50, description="Number of phrases, at most 100"),
    ) -> list[PhraseRecordItem]:
        """Get the caller's most used phrases for client-side cache priming."""
        return handler.top_phrases(user_id, limit)

    @app.get("/api/completion/phrases/sync", response_model=list[PhraseRecordItem])
    def sync_phrases(
        handler: HandlerDep,
        user_id: UserIdDep,
        since: int = Query(..., description="Epoch milliseconds of the last sync"),
    ) -> list[PhraseRecordItem]:
        """Get phrases updated after ``since``, oldest change first."""
        return handler.sync(user_id, since)

    @app.post("/api/completion/cache/refresh", status_code=status.HTTP_204_NO_CONTENT)
    def refresh_cache(handler: HandlerDep, user_id: UserIdDep) -> Response:
        """Reload the caller's cache entry from the store."""
        handler.refresh_cache(user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/stats", response_model=StatsResponse)
    def get_stats(handler: HandlerDep) -> StatsResponse:
        """Get query, cache and store statistics."""
        return handler.get_stats()

    @app.get("/stats/reset", response_model=dict[str, str])
    def reset_stats(handler: HandlerDep) -> dict[str, str]:
        """Reset performance metrics."""
        return handler.reset_stats()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "phrase_completion.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
