from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import build_quiz  # noqa: E402

from quizgen.models import Quiz  # noqa: E402


@pytest.fixture
def quiz() -> Quiz:
    """Four-question quiz whose correct answers are B, A, C, B."""

    return build_quiz()


@pytest.fixture(autouse=True)
def _isolate_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Keep config and logs written by the code under test inside tmp."""

    monkeypatch.setenv("QUIZGEN_DATA_HOME", str(tmp_path / "quizgen-data"))
    for key in (
        "QUIZGEN_CONFIG",
        "QUIZGEN_MODEL",
        "QUIZGEN_TEMPERATURE",
        "QUIZGEN_MAX_TOKENS",
        "QUIZGEN_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    yield
    logger = logging.getLogger("quizgen")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
