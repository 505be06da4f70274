"""Rich-powered console presentation of a quiz session.

The loop renders one question at a time, reads commands from an injectable
input provider and forwards selections, submission and cancellation to a
:class:`~quizgen.session.QuizSession`. The question cursor is presentation
state and lives here, not in the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Screen
from .scoring import format_score
from .session import QuizSession

InputProvider = Callable[[], str]
ExitAction = Literal["submitted", "cancelled"]


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["next", "prev", "submit", "quit", "select"]
    choice: str | None = None


def parse_session_command(raw: str | None) -> SessionCommand | None:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return SessionCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if lowered in {"submit", "s"}:
        return SessionCommand("submit")
    if lowered in {"quit", "q", "exit", "cancel"}:
        return SessionCommand("quit")
    if len(text) == 1 and text.isalpha():
        return SessionCommand("select", text.upper())
    return None


def run_console_quiz(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
) -> ExitAction:
    """Play the loaded quiz until the user submits or quits.

    Interrupting input (EOF, Ctrl-C) cancels the quiz.
    """

    cursor = 0
    while True:
        _render_question(console, session, cursor)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            session.cancel()
            return "cancelled"
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Quiz cancelled.[/]")
            session.cancel()
            return "cancelled"
        if command.type == "submit":
            session.submit()
            render_results(console, session)
            return "submitted"
        cursor = _apply_command(command, session, console, cursor)


def _apply_command(
    command: SessionCommand,
    session: QuizSession,
    console: Console,
    cursor: int,
) -> int:
    quiz = session.state.quiz
    total = len(quiz) if quiz is not None else 0
    if command.type == "next":
        return min(cursor + 1, total - 1)
    if command.type == "prev":
        return max(cursor - 1, 0)
    if command.type == "select" and command.choice and quiz is not None:
        option = quiz[cursor].option_for_key(command.choice)
        if option is not None and session.select_answer(cursor, option):
            console.print(f"Selected [bold]{command.choice}[/].")
            return cursor
        console.print(
            Text(
                f"'{command.choice}' is not a valid choice for this "
                "question.",
                style="red",
            )
        )
    return cursor


def _render_question(
    console: Console, session: QuizSession, cursor: int
) -> None:
    state = session.state
    quiz = state.quiz
    if quiz is None:  # pragma: no cover - guarded by the caller
        return
    question = quiz[cursor]
    header = Text.assemble(
        (f"Question {cursor + 1}", "bold cyan"),
        (f" / {len(quiz)}", "dim"),
        (f"  {state.difficulty}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.text, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")

    selected = state.answers.get(cursor)
    for key, option in question.keyed_options():
        chosen = option == selected
        row_text = Text("• " if chosen else "  ")
        row_text.append(option, style="bold green" if chosen else None)
        table.add_row(key, row_text)
    console.print(table)

    console.print(
        Text(
            f"Answered {state.answered_count}/{len(quiz)} | "
            "Commands: A-D (choose), n (next), p (prev), submit, quit",
            style="dim",
        )
    )


def results_tables(session: QuizSession) -> tuple[Table, Table]:
    """Score overview and per-question review for a submitted session."""

    result = session.result()
    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Score", format_score(result.final_score))
    overview.add_row("Correct", str(result.correct_count))
    overview.add_row("Incorrect", str(result.incorrect_count))
    overview.add_row("Unanswered", str(result.unanswered_count))
    overview.add_row("Total questions", str(result.total_questions))
    overview.add_row(
        "Negative marking",
        "on" if session.state.negative_marking else "off",
    )

    response_table = Table(title="Responses", box=box.SIMPLE, expand=True)
    response_table.add_column("#", justify="right")
    response_table.add_column("Question", overflow="fold")
    response_table.add_column("Your answer", overflow="fold")
    response_table.add_column("Correct answer", overflow="fold")
    response_table.add_column("Result", justify="center")
    for outcome in session.review():
        if not outcome.answered:
            mark = "—"
        else:
            mark = "✅" if outcome.is_correct else "❌"
        response_table.add_row(
            str(outcome.index + 1),
            outcome.question.text,
            outcome.selected or "—",
            outcome.question.correct_answer,
            mark,
        )
    return overview, response_table


def render_results(console: Console, session: QuizSession) -> None:
    if session.screen is not Screen.RESULTS:
        return
    console.print()
    console.rule(Text("Quiz Results", style="bold magenta"))
    for table in results_tables(session):
        console.print(table)


def render_error(console: Console, message: str) -> None:
    console.print(
        Panel(Text(message), title="Quiz Setup", border_style="red")
    )
