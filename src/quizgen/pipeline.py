"""The work performed while a session sits on the loading screen."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from .core import load_client
from .errors import ProviderError, ValidationError
from .extraction import extract_pdf_file
from .generation import GenerationSettings, generate_quiz
from .models import (
    MAX_QUESTION_COUNT,
    MIN_CONTEXT_CHARS,
    MIN_QUESTION_COUNT,
    Difficulty,
    Quiz,
    SourceMode,
    difficulty_label,
)

__all__ = [
    "GenerationRequest",
    "PipelineDependencies",
    "build_dependencies",
    "require_context",
    "validate_request",
    "resolve_context",
    "run_pipeline",
]

QuizGenerator = Callable[[str, int, str, Optional[str]], Quiz]


@dataclass(frozen=True)
class GenerationRequest:
    """Everything the setup screen collects for one generation attempt."""

    source: SourceMode = SourceMode.TEXT
    text: str = ""
    pdf_path: Optional[Path] = None
    count: int = 10
    difficulty: Difficulty | str = Difficulty.MEDIUM
    focus: Optional[str] = None
    negative_marking: bool = False


@dataclass(frozen=True)
class PipelineDependencies:
    """Callable seams for extraction and generation."""

    extract: Callable[[Path], str]
    generate: QuizGenerator


def build_dependencies(
    settings: GenerationSettings,
    *,
    client: Any = None,
    client_factory: Callable[[], Any] = load_client,
) -> PipelineDependencies:
    """Wire the default pypdf and OpenAI backed dependencies.

    The client is created on first use so a missing API key surfaces as a
    generation failure rather than at startup.
    """
    cache: dict[str, Any] = {}
    if client is not None:
        cache["client"] = client

    def _client() -> Any:
        if "client" not in cache:
            try:
                cache["client"] = client_factory()
            except RuntimeError as exc:
                raise ProviderError(str(exc)) from exc
        return cache["client"]

    def _generate(
        context: str, count: int, difficulty: str, focus: Optional[str]
    ) -> Quiz:
        return generate_quiz(
            context,
            count,
            difficulty,
            focus,
            client=_client(),
            settings=settings,
        )

    return PipelineDependencies(
        extract=extract_pdf_file,
        generate=_generate,
    )


def require_context(text: str) -> str:
    if len(text.strip()) < MIN_CONTEXT_CHARS:
        raise ValidationError(
            "Please provide more context "
            f"(at least {MIN_CONTEXT_CHARS} chars)."
        )
    return text


def validate_request(request: GenerationRequest) -> None:
    """Checks that can run before anything is extracted or sent."""
    if not MIN_QUESTION_COUNT <= request.count <= MAX_QUESTION_COUNT:
        raise ValidationError(
            "Question count must be between "
            f"{MIN_QUESTION_COUNT} and {MAX_QUESTION_COUNT}."
        )
    if request.source is SourceMode.PDF:
        if request.pdf_path is None:
            raise ValidationError("Please select a PDF file.")
        return
    require_context(request.text)


def resolve_context(
    request: GenerationRequest, extract: Callable[[Path], str]
) -> str:
    """Return the effective context text, extracting it in PDF mode."""
    validate_request(request)
    if request.source is SourceMode.PDF:
        return require_context(extract(request.pdf_path))
    return request.text


def run_pipeline(
    request: GenerationRequest,
    dependencies: PipelineDependencies,
    *,
    logger: logging.Logger | None = None,
) -> Quiz:
    log = logger or logging.getLogger(__name__)
    log.info(
        "Starting quiz generation",
        extra={
            "source": request.source.value,
            "requested_count": request.count,
            "difficulty": difficulty_label(request.difficulty),
            "has_focus": bool(request.focus),
        },
    )
    context = resolve_context(request, dependencies.extract)
    quiz = dependencies.generate(
        context,
        request.count,
        difficulty_label(request.difficulty),
        request.focus,
    )
    log.info(
        "Quiz generated",
        extra={"question_count": len(quiz)},
    )
    return quiz
