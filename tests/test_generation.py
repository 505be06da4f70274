from __future__ import annotations

import json
import logging

import pytest

from fixtures import CONTEXT, SAMPLE_QUESTIONS, FakeChatClient, reply_json

from quizgen import generation
from quizgen.errors import (
    GenerationError,
    ProviderError,
    ReplyFormatError,
    ReplySchemaError,
)
from quizgen.generation import (
    GenerationSettings,
    build_prompt,
    build_request,
    generate_quiz,
    parse_quiz_reply,
    truncate_context,
)
from quizgen.models import MAX_CONTEXT_CHARS, Difficulty


def test_truncate_context_keeps_first_40000_chars():
    text = "a" * 60_000 + "b" * 40_000

    truncated = truncate_context(text)

    assert len(truncated) == MAX_CONTEXT_CHARS
    assert set(truncated) == {"a"}
    assert truncate_context("short") == "short"


def test_build_prompt_is_deterministic_and_embeds_inputs():
    first = build_prompt(CONTEXT, 5, Difficulty.HARD, "chloroplasts")
    second = build_prompt(CONTEXT, 5, Difficulty.HARD, "chloroplasts")

    assert first == second
    assert "exactly 5 multiple-choice questions" in first
    assert "Difficulty: Hard." in first
    assert "Focus: chloroplasts." in first
    assert CONTEXT in first
    assert '"questions"' in first


def test_build_prompt_defaults_focus():
    prompt = build_prompt(CONTEXT, 3, "Mixed", "   ")

    assert f"Focus: {generation.DEFAULT_FOCUS}." in prompt


def test_generate_quiz_sends_truncated_context_once():
    client = FakeChatClient(reply_json())
    context = "x" * 100_000

    generate_quiz(context, 4, Difficulty.EASY, client=client)

    assert len(client.calls) == 1
    prompt = client.last_call["messages"][1]["content"]
    assert "x" * MAX_CONTEXT_CHARS in prompt
    assert "x" * (MAX_CONTEXT_CHARS + 1) not in prompt


def test_generate_quiz_returns_quiz_in_reply_order():
    client = FakeChatClient(reply_json())

    quiz = generate_quiz(CONTEXT, 4, "Medium", client=client)

    assert [q.text for q in quiz] == [q["question"] for q in SAMPLE_QUESTIONS]
    assert quiz[0].correct_answer == "Chloroplasts"


def test_build_request_includes_schema_when_structured():
    settings = GenerationSettings(model="gpt-test", temperature=0.5)

    request = build_request("prompt", settings)

    assert request["model"] == "gpt-test"
    assert request["temperature"] == 0.5
    assert request["messages"][0]["role"] == "system"
    assert request["messages"][1] == {"role": "user", "content": "prompt"}
    fmt = request["response_format"]
    assert fmt["type"] == "json_schema"
    assert fmt["json_schema"]["strict"] is True
    assert fmt["json_schema"]["schema"] is generation.QUIZ_SCHEMA


def test_build_request_omits_schema_when_disabled():
    request = build_request(
        "prompt", GenerationSettings(structured_output=False)
    )

    assert "response_format" not in request


def test_provider_failure_maps_to_provider_error():
    client = FakeChatClient(error=RuntimeError("rate limited"))

    with pytest.raises(ProviderError) as exc:
        generate_quiz(CONTEXT, 2, "Easy", client=client)

    assert "rate limited" in str(exc.value)
    assert isinstance(exc.value, GenerationError)


@pytest.mark.parametrize("reply", ["", None, "not json at all", "{broken"])
def test_unparseable_reply_maps_to_format_error(reply):
    client = FakeChatClient(reply)

    with pytest.raises(ReplyFormatError):
        generate_quiz(CONTEXT, 2, "Easy", client=client)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"items": []},
        {"questions": "many"},
        {"questions": []},
    ],
)
def test_schema_violations_map_to_schema_error(payload):
    with pytest.raises(ReplySchemaError):
        parse_quiz_reply(json.dumps(payload))


def test_parse_accepts_code_fences():
    quiz = parse_quiz_reply(f"```json\n{reply_json()}\n```")

    assert len(quiz) == len(SAMPLE_QUESTIONS)


def test_parse_keeps_backticks_inside_valid_json():
    reply = json.dumps(
        {
            "questions": [
                {
                    "question": "What does ```print(1)``` output?",
                    "options": ["1", "0", "None", "print(1)"],
                    "answer": "1",
                }
            ]
        }
    )

    quiz = parse_quiz_reply(reply)

    assert quiz[0].text == "What does ```print(1)``` output?"
    assert quiz[0].correct_answer == "1"


def test_parse_fenced_reply_with_backticks_inside():
    payload = json.dumps(
        {
            "questions": [
                {
                    "question": "Which keyword defines ```def f()```?",
                    "options": ["def", "fn", "func", "lambda"],
                    "answer": "def",
                }
            ]
        }
    )

    quiz = parse_quiz_reply(f"```json\n{payload}\n```")

    assert quiz[0].text == "Which keyword defines ```def f()```?"


def test_parse_normalizes_aliases_and_letter_answers():
    reply = json.dumps(
        {
            "questions": [
                {"q": "First?", "o": ["a1", "a2", "a3", "a4"], "a": "C"},
                {
                    "text": "Second?",
                    "choices": [" b1 ", "b2", "b3", "b4"],
                    "correctAnswer": "b1",
                },
                {
                    "stem": "Third?",
                    "options": ["c1", "c2", "c3", "c4"],
                    "correct_answer": 3,
                },
            ]
        }
    )

    quiz = parse_quiz_reply(reply)

    assert [q.correct_answer for q in quiz] == ["a3", "b1", "c4"]
    assert quiz[1].options[0] == "b1"


def test_parse_drops_invalid_questions(caplog):
    questions = [
        SAMPLE_QUESTIONS[0],
        {
            "question": "No match",
            "options": ["1", "2", "3", "4"],
            "answer": "5",
        },
        {"question": "Too few", "options": ["1", "2"], "answer": "1"},
        {"question": "Dupes", "options": ["1", "1", "2", "3"], "answer": "1"},
        "not an object",
    ]

    with caplog.at_level(logging.WARNING, logger="quizgen.generation"):
        quiz = parse_quiz_reply(reply_json(questions))

    assert len(quiz) == 1
    dropped = [
        r
        for r in caplog.records
        if r.getMessage() == "Dropped invalid question"
    ]
    assert len(dropped) == 4


def test_parse_raises_when_every_question_is_invalid():
    questions = [
        {
            "question": "No match",
            "options": ["1", "2", "3", "4"],
            "answer": "9",
        }
    ]

    with pytest.raises(ReplySchemaError):
        parse_quiz_reply(reply_json(questions))


def test_count_mismatch_is_tolerated(caplog):
    client = FakeChatClient(reply_json(SAMPLE_QUESTIONS[:2]))

    with caplog.at_level(logging.WARNING, logger="quizgen.generation"):
        quiz = generate_quiz(CONTEXT, 10, "Easy", client=client)

    assert len(quiz) == 2
    assert len(client.calls) == 1
    assert any(
        r.getMessage() == "Model returned a different number of questions"
        for r in caplog.records
    )
