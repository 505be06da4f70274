"""Immutable quiz data structures and session enumerations."""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .errors import ValidationError

MIN_CONTEXT_CHARS = 50
MAX_CONTEXT_CHARS = 40_000
MIN_QUESTION_COUNT = 1
MAX_QUESTION_COUNT = 500
OPTIONS_PER_QUESTION = 4
NEGATIVE_MARK_PENALTY = 0.25

_OPTION_KEYS = string.ascii_uppercase[:OPTIONS_PER_QUESTION]


class Screen(Enum):
    """Mutually exclusive UI modes of a quiz session."""

    SETUP = "setup"
    LOADING = "loading"
    QUIZ = "quiz"
    RESULTS = "results"


class SourceMode(Enum):
    """Where the context text comes from."""

    TEXT = "text"
    PDF = "pdf"


class Difficulty(Enum):
    """Difficulty labels offered by the setup screen."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    MIXED = "Mixed"

    @classmethod
    def from_value(cls, value: str) -> "Difficulty":
        normalized = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValidationError(
            f"Unknown difficulty '{value}'. Expected one of: {expected}."
        )


def difficulty_label(difficulty: Difficulty | str) -> str:
    if isinstance(difficulty, Difficulty):
        return difficulty.value
    return str(difficulty).strip()


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question with exactly four options."""

    text: str
    options: tuple[str, ...]
    correct_answer: str

    def __post_init__(self) -> None:
        if not self.text.strip():
            raise ValueError("question text must be non-empty")
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(
                f"expected {OPTIONS_PER_QUESTION} options, "
                f"got {len(self.options)}"
            )
        if not all(option.strip() for option in self.options):
            raise ValueError("option text must be non-empty")
        if len(set(self.options)) != len(self.options):
            raise ValueError("options must be distinct")
        if self.correct_answer not in self.options:
            raise ValueError("correct answer must match one of the options")

    def has_option(self, option: str) -> bool:
        return option in self.options

    def is_correct(self, selected: str | None) -> bool:
        return selected is not None and selected == self.correct_answer

    def key_for(self, option: str) -> str | None:
        """Letter (A-D) shown next to ``option``."""
        try:
            return _OPTION_KEYS[self.options.index(option)]
        except ValueError:
            return None

    def option_for_key(self, key: str | None) -> str | None:
        if not key:
            return None
        normalized = key.strip().upper()[:1]
        if normalized and normalized in _OPTION_KEYS:
            return self.options[_OPTION_KEYS.index(normalized)]
        return None

    def keyed_options(self) -> list[tuple[str, str]]:
        return list(zip(_OPTION_KEYS, self.options))


@dataclass(frozen=True)
class Quiz:
    """An ordered, non-empty question set produced by one generation."""

    questions: tuple[Question, ...]

    def __post_init__(self) -> None:
        if not self.questions:
            raise ValueError("a quiz needs at least one question")

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def __getitem__(self, index: int) -> Question:
        return self.questions[index]


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring a frozen answer map."""

    correct_count: int
    incorrect_count: int
    final_score: float
    total_questions: int

    @property
    def answered_count(self) -> int:
        return self.correct_count + self.incorrect_count

    @property
    def unanswered_count(self) -> int:
        return self.total_questions - self.answered_count


@dataclass(frozen=True)
class QuestionOutcome:
    """One row of the results review."""

    index: int
    question: Question
    selected: str | None
    is_correct: bool

    @property
    def answered(self) -> bool:
        return self.selected is not None
