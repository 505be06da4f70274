from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from fixtures import CONTEXT, build_quiz

from quizgen.errors import ExtractionError, ReplySchemaError
from quizgen.models import Difficulty, Screen, SourceMode
from quizgen.pipeline import GenerationRequest, PipelineDependencies
from quizgen.view.app import (
    QuestionCard,
    QuizGenApp,
    build_request,
    failure_message,
    parse_count,
)


def _deps() -> PipelineDependencies:
    return PipelineDependencies(
        extract=lambda path: CONTEXT,
        generate=lambda context, count, difficulty, focus: build_quiz(),
    )


def _loading_app() -> QuizGenApp:
    app = QuizGenApp(_deps())
    assert app.session.begin_generation(GenerationRequest(text=CONTEXT))
    return app


def _quiz_app() -> QuizGenApp:
    app = _loading_app()
    app.finish_generation(build_quiz())
    return app


def test_build_request_from_form_values():
    request = build_request(
        source=SourceMode.PDF,
        text="",
        pdf_path="  ~/notes.pdf ",
        count=" 12 ",
        difficulty="Hard",
        focus="  ",
        negative_marking=True,
    )

    assert request.source is SourceMode.PDF
    assert request.pdf_path == Path("~/notes.pdf").expanduser()
    assert request.count == 12
    assert request.difficulty is Difficulty.HARD
    assert request.focus is None
    assert request.negative_marking is True


def test_build_request_without_pdf_path():
    request = build_request(
        source=SourceMode.TEXT,
        text=CONTEXT,
        pdf_path="",
        count="ten",
        difficulty=Difficulty.EASY,
        focus="plants",
        negative_marking=False,
    )

    assert request.pdf_path is None
    assert request.count == 0
    assert request.focus == "plants"


@pytest.mark.parametrize("raw, expected", [("5", 5), ("", 0), ("2.5", 0)])
def test_parse_count(raw, expected):
    assert parse_count(raw) == expected


def test_failure_message_variants():
    assert failure_message(ExtractionError("bad pdf")) == "bad pdf"
    assert failure_message(None) == "Quiz generation failed."
    assert failure_message(OSError("disk")) == "Unexpected error: disk"


def test_rejected_request_keeps_setup_and_shows_error():
    app = QuizGenApp(_deps())

    started = app.request_generation(GenerationRequest(text="short"))

    assert started is False
    assert app.session.screen is Screen.SETUP
    assert "at least 50 chars" in app.session.state.error_message


def test_finish_generation_success_enters_quiz():
    app = _quiz_app()

    assert app.session.screen is Screen.QUIZ
    assert len(app.session.state.quiz) == 4


@pytest.mark.parametrize(
    "error, message",
    [
        (
            ReplySchemaError("The reply contains no valid questions."),
            "The reply contains no valid questions.",
        ),
        (RuntimeError("boom"), "Unexpected error: boom"),
    ],
)
def test_finish_generation_failure_returns_to_setup(error, message):
    app = _loading_app()

    app.finish_generation(error=error)

    assert app.session.screen is Screen.SETUP
    assert app.session.state.error_message == message


def test_finish_generation_outside_loading_is_ignored():
    app = QuizGenApp(_deps())

    app.finish_generation(build_quiz())

    assert app.session.screen is Screen.SETUP


def test_choose_maps_positions_to_options():
    app = _quiz_app()

    assert app.choose(0, 1)
    assert app.choose(2, 2)
    assert not app.choose(9, 0)
    assert not app.choose(0, 4)

    assert dict(app.session.state.answers) == {0: "Chloroplasts", 2: "Light"}


def test_submit_back_and_restart_actions():
    app = _quiz_app()
    app.choose(0, 1)

    app.action_submit()
    assert app.session.screen is Screen.RESULTS
    assert app.session.result().correct_count == 1

    app.action_restart()
    assert app.session.screen is Screen.SETUP
    assert app.session.state.quiz is None


def test_back_from_quiz_cancels():
    app = _quiz_app()

    app.action_back()

    assert app.session.screen is Screen.SETUP


def test_headless_generation_round_trip():
    async def scenario() -> None:
        app = QuizGenApp(_deps())
        async with app.run_test() as pilot:
            assert app.query_one("#screens").current == "setup"
            app.query_one("#context").load_text(CONTEXT)

            app.action_generate()
            await app.workers.wait_for_complete()
            await pilot.pause()
            await pilot.pause()

            assert app.session.screen is Screen.QUIZ
            assert app.query_one("#screens").current == "quiz"
            assert len(app.query(QuestionCard)) == 4

    asyncio.run(scenario())


def test_injected_logger_leaves_textual_log_intact():
    logger = logging.getLogger("quizgen.tests.view")

    async def scenario() -> None:
        app = QuizGenApp(_deps(), logger=logger)
        async with app.run_test() as pilot:
            await pilot.pause()
            assert app.session.screen is Screen.SETUP

    app = QuizGenApp(_deps(), logger=logger)
    assert app._quiz_logger is logger
    assert app.log is not logger
    asyncio.run(scenario())
