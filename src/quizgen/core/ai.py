"""OpenAI client bootstrap shared by the generation pipeline."""

from __future__ import annotations

import os
from typing import Any, Mapping

from dotenv import load_dotenv

try:  # Allow module import even when the OpenAI dependency is absent.
    from openai import OpenAI  # type: ignore
except ImportError:  # pragma: no cover - optional dependency guard
    OpenAI = None  # type: ignore

__all__ = ["API_KEY_ENV", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"


def load_client(env: Mapping[str, str] | None = None) -> Any:
    """Initialize an OpenAI client using environment-derived credentials.

    A ``.env`` file in the working directory is honoured when ``env`` is not
    given explicitly.
    """
    if OpenAI is None:
        raise RuntimeError(
            "The 'openai' package is required to generate quizzes. "
            "Install it and retry."
        )
    if env is None:
        load_dotenv()
        env = os.environ
    api_key = (env.get(API_KEY_ENV) or "").strip()
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    return OpenAI(api_key=api_key)
