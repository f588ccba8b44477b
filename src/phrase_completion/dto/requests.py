"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field

from phrase_completion.entities import CATEGORY_MAX_LENGTH, SourceType


class UpsertPhraseRequest(BaseModel):
    """Request DTO for recording a phrase submission.

    Length bounds are checked after trimming by the service layer, which
    reports the violated bound.
    """

    phrase: str = Field(..., description="The full phrase the user entered")
    source_type: SourceType = Field(
        SourceType.USER_INPUT,
        description="USER_INPUT, SUGGESTION_ACCEPTED or PRESET",
    )
    category: str | None = Field(
        None,
        description="Optional classification (e.g. QUERY, RECORD, COMMAND)",
        max_length=CATEGORY_MAX_LENGTH,
    )


class PresetPhrasesRequest(BaseModel):
    """Request DTO for seeding a user's history with preset phrases."""

    phrases: list[str] = Field(
        ...,
        description="Phrases to record in order, each with source type PRESET",
        min_length=1,
    )
