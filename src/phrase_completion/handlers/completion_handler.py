"""HTTP handlers for completion operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import logging

from fastapi import HTTPException, status

from phrase_completion.dto import (
    CompletionQueryResponse,
    CompletionResultItem,
    HealthCheckResponse,
    PhraseRecordItem,
    PresetPhrasesRequest,
    StatsResponse,
    UpsertPhraseRequest,
)
from phrase_completion.exceptions import (
    CompletionError,
    PhraseValidationError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from phrase_completion.protocols import PhraseStore
from phrase_completion.services import CompletionService, PhraseService

logger = logging.getLogger(__name__)


def to_http_exception(error: CompletionError) -> HTTPException:
    """Map an engine exception to the HTTP error returned to the caller.

    Validation errors carry their details so the caller can fix the request;
    store failures are reported generically.
    """
    if isinstance(error, PhraseValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": error.message, **error.details},
        )
    if isinstance(error, RecordNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Phrase not found",
        )
    if isinstance(error, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Phrase store temporarily unavailable, please retry",
            headers={"Retry-After": "1"},
        )
    logger.error("Unhandled completion error: %s", error.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal error",
    )


class CompletionHandler:
    """HTTP handlers for completion operations.

    This handler delegates business logic to CompletionService and
    PhraseService and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    The methods are synchronous because the store calls block; FastAPI
    runs the routes that call them in its threadpool.

    Example:
        ```python
        handler = CompletionHandler(
            completion_service=completions,
            phrase_service=phrases,
            store=store,
        )

        @app.get("/api/completion/query", response_model=CompletionQueryResponse)
        def query(prefix: str, user_id: UserIdDep):
            return handler.query(user_id, prefix)
        ```
    """

    def __init__(
        self,
        completion_service: CompletionService,
        phrase_service: PhraseService,
        store: PhraseStore,
    ) -> None:
        """Initialize the completion handler.

        Args:
            completion_service: Read-side service (required).
            phrase_service: Write-side service (required).
            store: Phrase store, used for stats and health (required).
        """
        self._completions = completion_service
        self._phrases = phrase_service
        self._store = store

    def query(self, user_id: str, prefix: str) -> CompletionQueryResponse:
        """Handle GET /api/completion/query requests."""
        try:
            result = self._completions.query(user_id, prefix)
        except CompletionError as e:
            raise to_http_exception(e) from e

        return CompletionQueryResponse(
            prefix=result.prefix,
            results=[
                CompletionResultItem(
                    phrase=item.phrase,
                    completion=item.completion,
                    score=item.score,
                    source_type=item.source_type,
                )
                for item in result.results
            ],
            from_cache=result.from_cache,
            query_time_ms=result.query_time_ms,
        )

    def upsert(self, user_id: str, request: UpsertPhraseRequest) -> PhraseRecordItem:
        """Handle POST /api/completion/phrase requests."""
        try:
            record = self._phrases.upsert(
                user_id,
                request.phrase,
                source_type=request.source_type,
                category=request.category,
            )
        except CompletionError as e:
            raise to_http_exception(e) from e

        return PhraseRecordItem.from_entity(record)

    def add_presets(self, user_id: str, request: PresetPhrasesRequest) -> list[PhraseRecordItem]:
        """Handle POST /api/completion/phrases/preset requests."""
        try:
            records = self._phrases.add_preset_phrases(user_id, request.phrases)
        except CompletionError as e:
            raise to_http_exception(e) from e

        return [PhraseRecordItem.from_entity(record) for record in records]

    def delete_phrase(self, user_id: str, record_id: int) -> None:
        """Handle DELETE /api/completion/phrase/{record_id} requests."""
        try:
            self._phrases.delete_phrase(user_id, record_id)
        except CompletionError as e:
            raise to_http_exception(e) from e

    def top_phrases(self, user_id: str, limit: int) -> list[PhraseRecordItem]:
        """Handle GET /api/completion/phrases/top requests."""
        try:
            records = self._completions.top_phrases(user_id, limit)
        except CompletionError as e:
            raise to_http_exception(e) from e

        return [PhraseRecordItem.from_entity(record) for record in records]

    def sync(self, user_id: str, since: int) -> list[PhraseRecordItem]:
        """Handle GET /api/completion/phrases/sync requests."""
        try:
            records = self._completions.sync(user_id, since)
        except CompletionError as e:
            raise to_http_exception(e) from e

        return [PhraseRecordItem.from_entity(record) for record in records]

    def refresh_cache(self, user_id: str) -> None:
        """Handle POST /api/completion/cache/refresh requests."""
        try:
            self._completions.refresh_cache(user_id)
        except CompletionError as e:
            raise to_http_exception(e) from e

    def get_stats(self) -> StatsResponse:
        """Handle GET /stats requests."""
        try:
            store_stats = self._store.get_stats()
        except CompletionError as e:
            raise to_http_exception(e) from e

        return StatsResponse(
            performance=self._completions.metrics.to_dict(),
            cache=self._completions.cache.stats(),
            store=store_stats,
        )

    def reset_stats(self) -> dict:
        """Handle GET /stats/reset requests."""
        self._completions.metrics.reset()
        return {"message": "Performance metrics reset"}

    def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Raises:
            HTTPException: 503 if the store is unreachable
        """
        if not self._store.health_check():
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Phrase store unreachable",
            )
        return HealthCheckResponse(status="healthy", store_healthy=True)
