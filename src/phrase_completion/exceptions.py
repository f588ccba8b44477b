"""Exceptions raised by the completion engine.

Services raise these; the handler layer maps them to HTTP responses.
"""

from typing import Any


class CompletionError(Exception):
    """Base exception for the phrase completion engine."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class PhraseValidationError(CompletionError):
    """A request argument is outside its allowed range.

    ``details`` names the offending field and the bound that was violated,
    so the caller can correct the request.
    """


class RecordNotFoundError(CompletionError):
    """The record does not exist or has already been retired."""

    def __init__(self, record_id: int) -> None:
        super().__init__(f"Phrase record {record_id} not found", {"record_id": record_id})
        self.record_id = record_id


class DuplicatePhraseError(CompletionError):
    """An active record with the same phrase already exists for the user."""

    def __init__(self, user_id: str, phrase: str, existing_id: int | None = None) -> None:
        super().__init__(
            "Phrase already exists for user",
            {"user_id": user_id, "existing_id": existing_id},
        )
        self.user_id = user_id
        self.phrase = phrase
        self.existing_id = existing_id


class StoreUnavailableError(CompletionError):
    """The phrase store could not be reached. Safe to retry."""

    def __init__(self, message: str = "Phrase store is unavailable") -> None:
        super().__init__(message)
