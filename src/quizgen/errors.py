"""Exception hierarchy shared across quizgen."""

from __future__ import annotations

__all__ = [
    "QuizGenError",
    "ValidationError",
    "ExtractionError",
    "GenerationError",
    "ProviderError",
    "ReplyFormatError",
    "ReplySchemaError",
    "SessionStateError",
]


class QuizGenError(RuntimeError):
    """Base class for failures surfaced to the user as a single message."""


class ValidationError(QuizGenError):
    """Raised when setup input is rejected before or after extraction."""


class ExtractionError(QuizGenError):
    """Raised when PDF text extraction fails."""


class GenerationError(QuizGenError):
    """Raised when a quiz cannot be produced from the model reply."""


class ProviderError(GenerationError):
    """The completion request itself failed."""


class ReplyFormatError(GenerationError):
    """The reply body was empty or not valid JSON."""


class ReplySchemaError(GenerationError):
    """The reply parsed as JSON but does not describe a usable quiz."""


class SessionStateError(QuizGenError):
    """A transition was requested from a screen that does not allow it."""
