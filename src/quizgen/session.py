"""Quiz lifecycle state machine.

A :class:`QuizSession` owns exactly one immutable :class:`SessionState`.
Named transitions are the only way to move between the setup, loading, quiz
and results screens; each one validates the current screen and swaps in a new
state built with :func:`dataclasses.replace`. Presentation code reads
``session.state`` and never mutates it.

The machine is cyclic::

    setup -> loading -> quiz -> results -> setup
             loading -> setup            (generation failed)
                        quiz -> setup    (cancel)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import QuizGenError, SessionStateError, ValidationError
from .models import (
    Difficulty,
    QuestionOutcome,
    Quiz,
    ScoreResult,
    Screen,
    difficulty_label,
)
from .pipeline import (
    GenerationRequest,
    PipelineDependencies,
    run_pipeline,
    validate_request,
)
from .scoring import review as review_answers
from .scoring import score

__all__ = ["SessionState", "QuizSession"]

_NO_ANSWERS: Mapping[int, str] = MappingProxyType({})


@dataclass(frozen=True)
class SessionState:
    """Snapshot of everything the presentation layer renders."""

    screen: Screen = Screen.SETUP
    quiz: Optional[Quiz] = None
    answers: Mapping[int, str] = field(default_factory=lambda: _NO_ANSWERS)
    negative_marking: bool = False
    difficulty: str = Difficulty.MEDIUM.value
    requested_count: int = 10
    focus: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def answered_count(self) -> int:
        return len(self.answers)


class QuizSession:
    """Single owner of the session state and its transitions."""

    def __init__(
        self,
        initial: SessionState | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._state = initial or SessionState()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def screen(self) -> Screen:
        return self._state.screen

    def begin_generation(self, request: GenerationRequest) -> bool:
        """Enter the loading screen if ``request`` passes the setup checks.

        On a rejected request the session stays on setup with
        ``error_message`` describing the problem and False is returned.
        """
        self._require(Screen.SETUP, "generate")
        try:
            validate_request(request)
        except ValidationError as exc:
            self._logger.info(
                "Rejected generation request", extra={"reason": str(exc)}
            )
            self._state = replace(self._state, error_message=str(exc))
            return False

        self._move(
            Screen.LOADING,
            negative_marking=request.negative_marking,
            difficulty=difficulty_label(request.difficulty),
            requested_count=request.count,
            focus=(request.focus or "").strip() or None,
            error_message=None,
        )
        return True

    def complete_generation(self, quiz: Quiz) -> None:
        self._require(Screen.LOADING, "complete generation")
        self._move(
            Screen.QUIZ,
            quiz=quiz,
            answers=_NO_ANSWERS,
            error_message=None,
        )

    def fail_generation(self, message: str) -> None:
        self._require(Screen.LOADING, "fail generation")
        self._move(
            Screen.SETUP,
            quiz=None,
            answers=_NO_ANSWERS,
            error_message=message or "Quiz generation failed.",
        )

    def generate(
        self,
        request: GenerationRequest,
        dependencies: PipelineDependencies,
    ) -> bool:
        """Run a whole generation attempt synchronously.

        Returns True when the session ends on the quiz screen.
        """
        if not self.begin_generation(request):
            return False
        try:
            quiz = run_pipeline(request, dependencies, logger=self._logger)
        except QuizGenError as exc:
            self._logger.error(
                "Quiz generation failed",
                extra={"error_type": type(exc).__name__, "reason": str(exc)},
            )
            self.fail_generation(str(exc))
            return False
        except Exception as exc:
            self._logger.exception("Unexpected generation failure")
            self.fail_generation(f"Unexpected error: {exc}")
            raise
        self.complete_generation(quiz)
        return True

    def select_answer(self, index: int, option: str) -> bool:
        """Record ``option`` for question ``index``; last write wins.

        Unknown indices and options that the question does not offer are
        ignored and reported with False.
        """
        self._require(Screen.QUIZ, "select an answer")
        quiz = self._current_quiz()
        if not 0 <= index < len(quiz):
            return False
        if not quiz[index].has_option(option):
            return False
        answers = dict(self._state.answers)
        answers[index] = option
        self._state = replace(
            self._state, answers=MappingProxyType(answers)
        )
        return True

    def submit(self) -> ScoreResult:
        self._require(Screen.QUIZ, "submit")
        self._move(Screen.RESULTS)
        result = self.result()
        self._logger.info(
            "Quiz submitted",
            extra={
                "correct_count": result.correct_count,
                "incorrect_count": result.incorrect_count,
                "final_score": result.final_score,
                "negative_marking": self._state.negative_marking,
            },
        )
        return result

    def cancel(self) -> None:
        self._require(Screen.QUIZ, "cancel")
        self._back_to_setup()

    def result(self) -> ScoreResult:
        self._require(Screen.RESULTS, "read the score")
        return score(
            self._current_quiz(),
            self._state.answers,
            self._state.negative_marking,
        )

    def review(self) -> list[QuestionOutcome]:
        self._require(Screen.RESULTS, "review answers")
        return review_answers(self._current_quiz(), self._state.answers)

    def reset(self) -> None:
        self._require(Screen.RESULTS, "reset")
        self._back_to_setup()

    def _back_to_setup(self) -> None:
        self._move(
            Screen.SETUP,
            quiz=None,
            answers=_NO_ANSWERS,
            error_message=None,
        )

    def _current_quiz(self) -> Quiz:
        quiz = self._state.quiz
        if quiz is None:  # pragma: no cover - guarded by transitions
            raise SessionStateError("No quiz is loaded.")
        return quiz

    def _require(self, screen: Screen, action: str) -> None:
        if self._state.screen is not screen:
            raise SessionStateError(
                f"Cannot {action} while on the "
                f"{self._state.screen.value} screen."
            )

    def _move(self, screen: Screen, **changes: object) -> None:
        previous = self._state.screen
        self._state = replace(self._state, screen=screen, **changes)
        self._logger.debug(
            "Session transition",
            extra={"from_screen": previous.value, "to_screen": screen.value},
        )
