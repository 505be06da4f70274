"""Shared testing fixtures for the quizgen test suite."""

from .openai import Choice, FakeChatClient, FakeOpenAIFactory  # noqa: F401
from .pdfs import build_pdf  # noqa: F401
from .quizzes import (  # noqa: F401
    CONTEXT,
    SAMPLE_QUESTIONS,
    build_quiz,
    reply_json,
)

__all__ = [
    "CONTEXT",
    "Choice",
    "FakeChatClient",
    "FakeOpenAIFactory",
    "SAMPLE_QUESTIONS",
    "build_pdf",
    "build_quiz",
    "reply_json",
]
