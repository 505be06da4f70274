"""Quiz generation through a single OpenAI chat completion.

The client builds one deterministic prompt, asks for a JSON reply matching
``QUIZ_SCHEMA`` and validates the reply into a :class:`~quizgen.models.Quiz`.
There are no retries: every failure raises a :class:`GenerationError`
subclass describing which stage failed.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from .errors import ProviderError, ReplyFormatError, ReplySchemaError
from .models import (
    MAX_CONTEXT_CHARS,
    OPTIONS_PER_QUESTION,
    Difficulty,
    Question,
    Quiz,
    difficulty_label,
)

__all__ = [
    "GenerationSettings",
    "QUIZ_SCHEMA",
    "SYSTEM_PROMPT",
    "truncate_context",
    "build_prompt",
    "build_request",
    "parse_quiz_reply",
    "generate_quiz",
]

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You write multiple-choice quizzes grounded strictly in the provided "
    "text. Reply with JSON only."
)
DEFAULT_FOCUS = "general key concepts"

QUIZ_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "options": {
                        "type": "array",
                        "items": {"type": "string"},
                    },
                    "answer": {"type": "string"},
                },
                "required": ["question", "options", "answer"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["questions"],
    "additionalProperties": False,
}

_QUESTION_KEYS = ("question", "q", "text", "stem")
_OPTION_KEYS = ("options", "o", "choices")
_ANSWER_KEYS = ("answer", "a", "correct_answer", "correctAnswer")
_FENCE_RE = re.compile(r"\s*```(?:json)?\s*(.+?)\s*```\s*$", re.DOTALL)


@dataclass(frozen=True)
class GenerationSettings:
    """Model parameters for the completion request."""

    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 8192
    structured_output: bool = True


def truncate_context(text: str, limit: int = MAX_CONTEXT_CHARS) -> str:
    return text[:limit]


def build_prompt(
    context: str,
    count: int,
    difficulty: Difficulty | str,
    focus: Optional[str] = None,
) -> str:
    focus_text = (focus or "").strip() or DEFAULT_FOCUS
    return (
        f"Generate a JSON quiz with exactly {count} multiple-choice "
        "questions from this text.\n"
        f"Difficulty: {difficulty_label(difficulty)}.\n"
        f"Focus: {focus_text}.\n"
        f"Each question must have exactly {OPTIONS_PER_QUESTION} distinct "
        "options and the answer must repeat the correct option verbatim.\n"
        f"Text: {truncate_context(context)}\n\n"
        "Response MUST be a single JSON object:\n"
        '{"questions": [{"question": "question text", '
        '"options": ["opt1", "opt2", "opt3", "opt4"], '
        '"answer": "correct option string"}]}'
    )


def build_request(
    prompt: str, settings: GenerationSettings
) -> dict[str, Any]:
    """Keyword arguments for ``client.chat.completions.create``."""
    request: dict[str, Any] = {
        "model": settings.model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    if settings.structured_output:
        request["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": "quiz",
                "strict": True,
                "schema": QUIZ_SCHEMA,
            },
        }
    return request


def generate_quiz(
    context: str,
    count: int,
    difficulty: Difficulty | str,
    focus: Optional[str] = None,
    *,
    client: Any,
    settings: GenerationSettings | None = None,
) -> Quiz:
    """Ask the model for ``count`` questions about ``context``.

    The reply may hold more or fewer questions than requested; the quiz is
    returned as received (minus invalid questions) without re-requesting.
    """
    settings = settings or GenerationSettings()
    prompt = build_prompt(context, count, difficulty, focus)
    logger.info(
        "Requesting quiz",
        extra={
            "model": settings.model,
            "requested_count": count,
            "difficulty": difficulty_label(difficulty),
            "context_chars": len(context),
            "truncated": len(context) > MAX_CONTEXT_CHARS,
        },
    )
    content = _chat_completion_content(client, build_request(prompt, settings))
    quiz = parse_quiz_reply(content)
    if len(quiz) != count:
        logger.warning(
            "Model returned a different number of questions",
            extra={"requested_count": count, "received_count": len(quiz)},
        )
    return quiz


def parse_quiz_reply(content: str) -> Quiz:
    """Validate a raw model reply into a :class:`Quiz`."""
    payload = _decode_json(content)
    if not isinstance(payload, dict):
        raise ReplySchemaError("The reply is not a JSON object.")
    if "questions" not in payload:
        raise ReplySchemaError("The reply has no 'questions' field.")
    records = payload["questions"]
    if not isinstance(records, list):
        raise ReplySchemaError("The 'questions' field is not a list.")

    questions: list[Question] = []
    for position, record in enumerate(records):
        try:
            questions.append(_build_question(record))
        except ValueError as exc:
            logger.warning(
                "Dropped invalid question",
                extra={"position": position, "reason": str(exc)},
            )
    if not questions:
        raise ReplySchemaError("The reply contains no valid questions.")
    return Quiz(tuple(questions))


def _chat_completion_content(client: Any, request: dict[str, Any]) -> str:
    try:
        resp = client.chat.completions.create(**request)
        raw_content = resp.choices[0].message.content
    except Exception as exc:
        raise ProviderError(str(exc) or type(exc).__name__) from exc
    return (raw_content or "").strip()


def _decode_json(content: str) -> Any:
    if not content:
        raise ReplyFormatError("The model returned an empty reply.")
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        error = exc
    fenced = _FENCE_RE.match(content)
    if fenced:
        try:
            return json.loads(fenced.group(1))
        except json.JSONDecodeError as exc:
            error = exc
    raise ReplyFormatError(f"The reply is not valid JSON: {error}") from error


def _first_present(record: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def _build_question(record: Any) -> Question:
    if not isinstance(record, dict):
        raise ValueError("question entry must be an object")
    text = str(_first_present(record, _QUESTION_KEYS) or "").strip()
    raw_options = _first_present(record, _OPTION_KEYS)
    if not isinstance(raw_options, list):
        raise ValueError("options must be a list")
    options = tuple(_option_text(option) for option in raw_options)
    answer = _resolve_answer(_first_present(record, _ANSWER_KEYS), options)
    return Question(text=text, options=options, correct_answer=answer)


def _option_text(option: Any) -> str:
    if isinstance(option, dict):
        return str(option.get("text", "")).strip()
    return str(option).strip()


def _resolve_answer(raw_answer: Any, options: tuple[str, ...]) -> str:
    """Map letter or index answers onto the option text they point at."""
    if isinstance(raw_answer, bool):
        return str(raw_answer)
    if isinstance(raw_answer, int):
        if 0 <= raw_answer < len(options):
            return options[raw_answer]
        return str(raw_answer)
    answer = str(raw_answer or "").strip()
    if answer in options:
        return answer
    if len(answer) == 1 and answer.isalpha():
        index = ord(answer.upper()) - ord("A")
        if 0 <= index < len(options):
            return options[index]
    return answer
