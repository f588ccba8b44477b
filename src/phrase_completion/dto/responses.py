"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field

from phrase_completion.entities import PhraseRecord, SourceType


class PhraseRecordItem(BaseModel):
    """A stored phrase with its usage statistics."""

    id: int = Field(..., description="Record identifier")
    phrase: str = Field(..., description="The full phrase")
    frequency: int = Field(..., description="Number of submissions", ge=1)
    last_used_at: int = Field(..., description="Last submission (epoch milliseconds)")
    source_type: SourceType = Field(..., description="Origin of the phrase")
    category: str | None = Field(None, description="Optional classification")
    update_time: int = Field(..., description="Last modification (epoch milliseconds), the sync cursor")

    @classmethod
    def from_entity(cls, record: PhraseRecord) -> "PhraseRecordItem":
        return cls(
            id=record.id,
            phrase=record.phrase,
            frequency=record.frequency,
            last_used_at=record.last_used_at,
            source_type=record.source_type,
            category=record.category,
            update_time=record.update_time,
        )


class CompletionResultItem(BaseModel):
    """Single completion candidate (in results array)."""

    phrase: str = Field(..., description="The full matched phrase")
    completion: str = Field(..., description="The part of the phrase after the prefix")
    score: float = Field(..., description="Relevance score, higher ranks first", ge=0.0)
    source_type: SourceType = Field(..., description="Origin of the phrase")


class CompletionQueryResponse(BaseModel):
    """Response DTO for a completion query."""

    prefix: str = Field(..., description="The queried prefix")
    results: list[CompletionResultItem] = Field(
        default_factory=list,
        description="Completion candidates, best first (at most 5)",
    )
    from_cache: bool = Field(..., description="Whether the per-user cache served the query")
    query_time_ms: float = Field(..., description="Time taken for the query in milliseconds")


class StatsResponse(BaseModel):
    """Response DTO for service statistics."""

    performance: dict[str, float | int] = Field(..., description="Query and write counters")
    cache: dict[str, int] = Field(..., description="Per-user cache statistics")
    store: dict = Field(..., description="Phrase store statistics")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    store_healthy: bool = Field(..., description="Whether the phrase store is reachable")
