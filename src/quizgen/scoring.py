"""Score computation for a submitted quiz."""

from __future__ import annotations

from typing import Mapping

from .models import NEGATIVE_MARK_PENALTY, QuestionOutcome, Quiz, ScoreResult

__all__ = ["score", "review", "format_score"]


def score(
    quiz: Quiz,
    answers: Mapping[int, str],
    negative_marking: bool,
) -> ScoreResult:
    """Count correct and incorrect answers and derive the final score.

    Unanswered questions count toward neither total. With negative marking
    each incorrect answer costs ``NEGATIVE_MARK_PENALTY``; the result is not
    clamped and may be negative.
    """
    correct = 0
    incorrect = 0
    for index, question in enumerate(quiz.questions):
        selected = answers.get(index)
        if selected is None:
            continue
        if question.is_correct(selected):
            correct += 1
        else:
            incorrect += 1

    final = float(correct)
    if negative_marking:
        final = correct - NEGATIVE_MARK_PENALTY * incorrect
    return ScoreResult(
        correct_count=correct,
        incorrect_count=incorrect,
        final_score=final,
        total_questions=len(quiz.questions),
    )


def review(quiz: Quiz, answers: Mapping[int, str]) -> list[QuestionOutcome]:
    return [
        QuestionOutcome(
            index=index,
            question=question,
            selected=answers.get(index),
            is_correct=question.is_correct(answers.get(index)),
        )
        for index, question in enumerate(quiz.questions)
    ]


def format_score(value: float) -> str:
    return f"{value:.1f}"
