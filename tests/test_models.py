from __future__ import annotations

import pytest

from quizgen.errors import ValidationError
from quizgen.models import Difficulty, Question, Quiz, difficulty_label


def _question(**overrides):
    fields = {
        "text": "What is 2 + 2?",
        "options": ("3", "4", "5", "6"),
        "correct_answer": "4",
    }
    fields.update(overrides)
    return Question(**fields)


def test_question_helpers_map_letters():
    question = _question()

    assert question.key_for("4") == "B"
    assert question.key_for("7") is None
    assert question.option_for_key("c") == "5"
    assert question.option_for_key("E") is None
    assert question.option_for_key("") is None
    assert question.keyed_options()[0] == ("A", "3")
    assert question.is_correct("4")
    assert not question.is_correct(None)


@pytest.mark.parametrize(
    "overrides",
    [
        {"text": "  "},
        {"options": ("3", "4", "5")},
        {"options": ("3", "4", "4", "6")},
        {"options": ("3", "4", " ", "6")},
        {"correct_answer": "four"},
        {"correct_answer": "4 "},
    ],
)
def test_question_rejects_invalid_shapes(overrides):
    with pytest.raises(ValueError):
        _question(**overrides)


def test_quiz_requires_questions():
    with pytest.raises(ValueError):
        Quiz(())


def test_quiz_is_a_sequence(quiz):
    assert len(quiz) == 4
    assert list(quiz)[0] is quiz[0]


def test_difficulty_from_value_is_case_insensitive():
    assert Difficulty.from_value(" hard ") is Difficulty.HARD
    assert difficulty_label(Difficulty.MIXED) == "Mixed"
    assert difficulty_label(" Tricky ") == "Tricky"


def test_difficulty_from_value_rejects_unknown():
    with pytest.raises(ValidationError) as exc:
        Difficulty.from_value("impossible")
    assert "Easy" in str(exc.value)
