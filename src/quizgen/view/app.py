"""Textual front end with the setup, loading, quiz and results screens.

All state lives in the :class:`~quizgen.session.QuizSession`; the app turns
widget events into session transitions and redraws from ``session.state``.
Generation runs in a thread worker so the loading screen stays responsive.
"""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widget import Widget
from textual.widgets import (
    Button,
    ContentSwitcher,
    Footer,
    Header,
    Input,
    Label,
    LoadingIndicator,
    RadioButton,
    RadioSet,
    Select,
    Static,
    Switch,
    TextArea,
)
from textual.worker import Worker, WorkerState

from ..config import QuizDefaults
from ..console import results_tables
from ..errors import QuizGenError
from ..models import Difficulty, Question, Quiz, Screen, SourceMode
from ..pipeline import GenerationRequest, PipelineDependencies, run_pipeline
from ..session import QuizSession

GENERATE_GROUP = "generate"


def parse_count(raw: str) -> int:
    """Question count typed in the setup form; 0 when it is not a number."""
    try:
        return int(raw.strip())
    except ValueError:
        return 0


def build_request(
    *,
    source: SourceMode,
    text: str,
    pdf_path: str,
    count: str,
    difficulty: object,
    focus: str,
    negative_marking: bool,
) -> GenerationRequest:
    """Translate raw setup form values into a :class:`GenerationRequest`."""
    path = pdf_path.strip()
    if isinstance(difficulty, Difficulty):
        level = difficulty
    else:
        level = Difficulty.from_value(str(difficulty))
    return GenerationRequest(
        source=source,
        text=text,
        pdf_path=Path(path).expanduser() if path else None,
        count=parse_count(count),
        difficulty=level,
        focus=focus.strip() or None,
        negative_marking=bool(negative_marking),
    )


def failure_message(error: BaseException | None) -> str:
    if isinstance(error, QuizGenError) and str(error):
        return str(error)
    if error is None:
        return "Quiz generation failed."
    return f"Unexpected error: {error}"


class QuestionCard(Widget):
    """One multiple-choice question with a radio set of its options."""

    DEFAULT_CSS = """
    QuestionCard {
        height: auto;
        margin: 0 0 1 0;
        padding: 0 1;
        border: round $primary;
    }
    QuestionCard .stem { text-style: bold; margin-bottom: 1; }
    """

    def __init__(
        self,
        question: Question,
        index: int,
        total: int,
        *,
        selected: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.selected = selected

    def compose(self) -> ComposeResult:
        yield Static(
            Text(f"{self.index + 1}. {self.question.text}"), classes="stem"
        )
        with RadioSet():
            for key, option in self.question.keyed_options():
                yield RadioButton(
                    Text(f"{key}) {option}"), value=option == self.selected
                )


class QuizGenApp(App):
    TITLE = "quizgen"
    CSS = """
#setup, #quiz, #results { padding: 1 2; }
#loading { align: center middle; }
#loading Static { width: 100%; content-align: center middle; }
#context { height: 12; }
#setup-error { color: $error; margin: 1 0; }
.field-label { margin-top: 1; color: $text-muted; }
.row { height: auto; }
.row Switch { margin-right: 1; }
.hidden { display: none; }
#quiz-meta, #answered { color: $text-muted; margin-bottom: 1; }
"""
    BINDINGS = [
        ("ctrl+g", "generate", "Generate"),
        ("ctrl+s", "submit", "Submit"),
        ("escape", "back", "Back"),
    ]

    def __init__(
        self,
        dependencies: PipelineDependencies,
        *,
        defaults: QuizDefaults | None = None,
        session: QuizSession | None = None,
        focus: Optional[str] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__()
        self._dependencies = dependencies
        self._defaults = defaults or QuizDefaults(
            question_count=10,
            difficulty=Difficulty.MEDIUM,
            negative_marking=False,
        )
        self._focus = focus or ""
        self._quiz_logger = logger or logging.getLogger(__name__)
        self.session = session or QuizSession(logger=self._quiz_logger)
        self._rendered_quiz: Optional[Quiz] = None

    def compose(self) -> ComposeResult:
        defaults = self._defaults
        yield Header()
        with ContentSwitcher(initial=Screen.SETUP.value, id="screens"):
            with VerticalScroll(id=Screen.SETUP.value):
                yield Label("Context source", classes="field-label")
                with RadioSet(id="source"):
                    yield RadioButton(
                        "Paste text", value=True, id="source-text"
                    )
                    yield RadioButton("PDF file", id="source-pdf")
                yield TextArea(id="context")
                yield Input(
                    placeholder="Path to a PDF file",
                    id="pdf-path",
                    classes="hidden",
                )
                yield Label("Number of questions", classes="field-label")
                yield Input(
                    str(defaults.question_count), id="count", type="integer"
                )
                yield Label("Difficulty", classes="field-label")
                yield Select(
                    [(level.value, level.value) for level in Difficulty],
                    value=defaults.difficulty.value,
                    allow_blank=False,
                    id="difficulty",
                )
                yield Label("Focus (optional)", classes="field-label")
                yield Input(
                    self._focus,
                    placeholder="e.g. dates and key figures",
                    id="focus",
                )
                with Horizontal(classes="row"):
                    yield Switch(
                        value=defaults.negative_marking, id="negative"
                    )
                    yield Label("Negative marking (-0.25 per wrong answer)")
                yield Static("", id="setup-error")
                yield Button("Generate quiz", id="generate", variant="primary")
            with Vertical(id=Screen.LOADING.value):
                yield LoadingIndicator()
                yield Static("Generating your quiz...")
            with Vertical(id=Screen.QUIZ.value):
                yield Static("", id="quiz-meta")
                yield VerticalScroll(id="questions")
                yield Static("", id="answered")
                with Horizontal(classes="row"):
                    yield Button("Submit", id="submit", variant="success")
                    yield Button("Cancel", id="cancel")
            with VerticalScroll(id=Screen.RESULTS.value):
                yield Static("", id="score")
                yield Static("", id="review")
                yield Button("New quiz", id="restart", variant="primary")
        yield Footer()

    def on_mount(self) -> None:
        self._sync()

    # Pure helpers for session transitions (testable without running App)
    def request_generation(self, request: GenerationRequest) -> bool:
        started = self.session.begin_generation(request)
        if started:
            self._start_worker(request)
        self._sync()
        return started

    def finish_generation(
        self,
        quiz: Optional[Quiz] = None,
        *,
        error: BaseException | None = None,
    ) -> None:
        if self.session.screen is not Screen.LOADING:
            return
        if quiz is not None and error is None:
            self.session.complete_generation(quiz)
        else:
            if error is not None and not isinstance(error, QuizGenError):
                self._quiz_logger.error(
                    "Unexpected generation failure", exc_info=error
                )
            self.session.fail_generation(failure_message(error))
        self._sync()

    def choose(self, index: int, position: int) -> bool:
        """Select the option at ``position`` for question ``index``."""
        quiz = self.session.state.quiz
        if self.session.screen is not Screen.QUIZ or quiz is None:
            return False
        if not 0 <= index < len(quiz):
            return False
        options = quiz[index].options
        if not 0 <= position < len(options):
            return False
        chosen = self.session.select_answer(index, options[position])
        self._update_answered()
        return chosen

    def action_generate(self) -> None:
        if self.session.screen is not Screen.SETUP:
            return
        self.request_generation(self._read_setup_form())

    def action_submit(self) -> None:
        if self.session.screen is not Screen.QUIZ:
            return
        self.session.submit()
        self._sync()

    def action_back(self) -> None:
        if self.session.screen is Screen.QUIZ:
            self.session.cancel()
        elif self.session.screen is Screen.RESULTS:
            self.session.reset()
        else:
            return
        self._sync()

    def action_restart(self) -> None:
        if self.session.screen is not Screen.RESULTS:
            return
        self.session.reset()
        self._sync()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "generate":
            self.action_generate()
        elif bid == "submit":
            self.action_submit()
        elif bid == "cancel":
            self.action_back()
        elif bid == "restart":
            self.action_restart()

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        if event.radio_set.id == "source":
            self._toggle_source(event.index == 1)
            return
        card = event.radio_set.parent
        if isinstance(card, QuestionCard):
            self.choose(card.index, event.index)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        worker = event.worker
        if worker.group != GENERATE_GROUP:
            return
        if event.state == WorkerState.SUCCESS:
            self.finish_generation(worker.result)
        elif event.state == WorkerState.ERROR:
            self.finish_generation(error=worker.error)

    def _start_worker(self, request: GenerationRequest) -> None:
        self.run_worker(
            partial(
                run_pipeline,
                request,
                self._dependencies,
                logger=self._quiz_logger,
            ),
            name="quiz-generation",
            group=GENERATE_GROUP,
            thread=True,
            exclusive=True,
            exit_on_error=False,
        )

    def _read_setup_form(self) -> GenerationRequest:
        pdf = self.query_one("#source", RadioSet).pressed_index == 1
        return build_request(
            source=SourceMode.PDF if pdf else SourceMode.TEXT,
            text=self.query_one("#context", TextArea).text,
            pdf_path=self.query_one("#pdf-path", Input).value,
            count=self.query_one("#count", Input).value,
            difficulty=self.query_one("#difficulty", Select).value,
            focus=self.query_one("#focus", Input).value,
            negative_marking=self.query_one("#negative", Switch).value,
        )

    def _toggle_source(self, pdf: bool) -> None:
        self.query_one("#context", TextArea).set_class(pdf, "hidden")
        self.query_one("#pdf-path", Input).set_class(not pdf, "hidden")

    def _sync(self) -> None:
        if not self.is_running:
            return
        state = self.session.state
        switcher = self.query_one("#screens", ContentSwitcher)
        switcher.current = state.screen.value
        self.query_one("#setup-error", Static).update(
            Text(state.error_message or "")
        )
        if state.screen is Screen.QUIZ:
            self._render_quiz()
        elif state.screen is Screen.RESULTS:
            self._render_results()
        else:
            self._rendered_quiz = None

    def _render_quiz(self) -> None:
        state = self.session.state
        quiz = state.quiz
        if quiz is None or quiz is self._rendered_quiz:
            self._update_answered()
            return
        self._rendered_quiz = quiz
        self.query_one("#quiz-meta", Static).update(
            f"{len(quiz)} Questions • {state.difficulty}"
            + (" • Negative marking on" if state.negative_marking else "")
        )
        container = self.query_one("#questions", VerticalScroll)
        container.remove_children()
        container.mount_all(
            QuestionCard(
                question,
                index,
                len(quiz),
                selected=state.answers.get(index),
            )
            for index, question in enumerate(quiz)
        )
        self._update_answered()

    def _update_answered(self) -> None:
        if not self.is_running:
            return
        state = self.session.state
        total = len(state.quiz) if state.quiz is not None else 0
        self.query_one("#answered", Static).update(
            f"Answered: {state.answered_count}/{total}"
        )

    def _render_results(self) -> None:
        overview, responses = results_tables(self.session)
        self.query_one("#score", Static).update(overview)
        self.query_one("#review", Static).update(responses)
