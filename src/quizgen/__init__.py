"""Generate multiple-choice quizzes from pasted text or PDF documents."""

from .errors import (
    ExtractionError,
    GenerationError,
    ProviderError,
    QuizGenError,
    ReplyFormatError,
    ReplySchemaError,
    SessionStateError,
    ValidationError,
)
from .extraction import extract_pdf_file, extract_text
from .generation import GenerationSettings, generate_quiz
from .models import (
    Difficulty,
    Question,
    QuestionOutcome,
    Quiz,
    ScoreResult,
    Screen,
    SourceMode,
)
from .pipeline import GenerationRequest, PipelineDependencies, run_pipeline
from .scoring import score
from .session import QuizSession, SessionState

__all__ = [
    "Difficulty",
    "ExtractionError",
    "GenerationError",
    "GenerationRequest",
    "GenerationSettings",
    "PipelineDependencies",
    "ProviderError",
    "Question",
    "QuestionOutcome",
    "Quiz",
    "QuizGenError",
    "QuizSession",
    "ReplyFormatError",
    "ReplySchemaError",
    "ScoreResult",
    "Screen",
    "SessionState",
    "SessionStateError",
    "SourceMode",
    "ValidationError",
    "extract_pdf_file",
    "extract_text",
    "generate_quiz",
    "run_pipeline",
    "score",
]
