"""Command-line entry point for quizgen."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from .config import (
    ConfigOverrides,
    LoadResult,
    QuizDefaults,
    QuizGenConfigError,
    default_config_path,
    load_config,
    write_template,
)
from .console import render_error, run_console_quiz
from .core import configure_logger
from .core.workspace import WorkspaceError
from .generation import GenerationSettings
from .models import Difficulty, SourceMode
from .pipeline import (
    GenerationRequest,
    PipelineDependencies,
    build_dependencies,
)
from .session import QuizSession

LOGGER_NAME = "quizgen"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizgen",
        description="Generate multiple-choice quizzes from text or PDFs.",
        epilog=(
            "Run `quizgen init` to scaffold the default quizgen.toml "
            "template. The OpenAI key is read from OPENAI_API_KEY."
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser(
        "init", help="Write the default quizgen.toml template."
    )
    sp_init.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    sp_init.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root override used for the default config path.",
    )
    sp_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )

    sp_app = sub.add_parser("app", help="Open the interactive quiz app.")
    _add_shared_arguments(sp_app)

    sp_play = sub.add_parser(
        "play", help="Generate a quiz and take it in the terminal."
    )
    source = sp_play.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--text",
        type=Path,
        metavar="FILE",
        help="Plain-text file used as quiz context.",
    )
    source.add_argument(
        "--pdf",
        type=Path,
        metavar="FILE",
        help="PDF document whose text is used as quiz context.",
    )
    _add_shared_arguments(sp_play)
    return parser


def _add_shared_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a TOML config file (defaults to the workspace config "
            "directory)."
        ),
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root holding config and logs.",
    )
    parser.add_argument(
        "--count", type=int, help="Number of questions to ask for (1-500)."
    )
    parser.add_argument(
        "--difficulty",
        choices=[level.value for level in Difficulty],
        help="Difficulty label passed to the model.",
    )
    parser.add_argument(
        "--focus", help="Optional topic the questions should focus on."
    )
    parser.add_argument(
        "--negative-marking",
        dest="negative_marking",
        action="store_true",
        default=None,
        help="Subtract 0.25 points per wrong answer.",
    )
    parser.add_argument(
        "--no-negative-marking",
        dest="negative_marking",
        action="store_false",
    )
    parser.add_argument("--model", help="Override the chat model.")
    parser.add_argument("--log-level", help="Logging level for the run.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Also print log records to stderr.",
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.command == "init":
        return _cmd_init(args)

    try:
        load_result = load_config(
            config_path=args.config,
            overrides=ConfigOverrides(
                model=args.model,
                question_count=args.count,
                difficulty=args.difficulty,
                negative_marking=args.negative_marking,
                log_level=args.log_level,
            ),
            workspace_path=args.workspace,
        )
    except QuizGenConfigError as exc:
        parser.error(str(exc))

    logger, _ = configure_logger(
        LOGGER_NAME,
        log_dir=load_result.layout.path_for("logs"),
        level=load_result.config.log_level,
        verbose=args.verbose,
    )
    logger.debug(
        "quizgen CLI invoked",
        extra={
            "command": args.command,
            "config_path": str(load_result.config_path or ""),
        },
    )
    dependencies = _build_dependencies(load_result.config.ai)

    if args.command == "app":
        return _cmd_app(args, load_result, dependencies, logger)
    if args.command == "play":
        return _cmd_play(args, load_result, dependencies, logger)
    parser.print_help()  # pragma: no cover - argparse enforces a command
    return 2


def _build_dependencies(settings: GenerationSettings) -> PipelineDependencies:
    return build_dependencies(settings)


def _make_console() -> Console:
    return Console()


def _input_provider(console: Console) -> Callable[[], str]:
    return lambda: console.input("[bold cyan]> [/]")


def _cmd_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    try:
        written = write_template(target, overwrite=args.force)
    except QuizGenConfigError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    sys.stdout.write(f"Wrote quizgen config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate
    return default_config_path(workspace_path=args.workspace)


def _cmd_app(
    args: argparse.Namespace,
    load_result: LoadResult,
    dependencies: PipelineDependencies,
    logger: logging.Logger,
) -> int:
    from .view.app import QuizGenApp

    app = QuizGenApp(
        dependencies,
        defaults=load_result.config.quiz,
        focus=args.focus,
        logger=logger,
    )
    app.run()
    return 0


def _cmd_play(
    args: argparse.Namespace,
    load_result: LoadResult,
    dependencies: PipelineDependencies,
    logger: logging.Logger,
) -> int:
    request = _request_from_args(args, load_result.config.quiz)
    if request is None:
        return 2

    console = _make_console()
    session = QuizSession(logger=logger)
    with console.status("Generating quiz..."):
        generated = session.generate(request, dependencies)
    if not generated:
        render_error(
            console, session.state.error_message or "Quiz generation failed."
        )
        return 1
    run_console_quiz(session, console, _input_provider(console))
    return 0


def _request_from_args(
    args: argparse.Namespace, defaults: QuizDefaults
) -> Optional[GenerationRequest]:
    text = ""
    if args.text is not None:
        try:
            text = args.text.expanduser().read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            sys.stderr.write(f"Could not read {args.text}: {exc}\n")
            return None
    return GenerationRequest(
        source=SourceMode.PDF if args.pdf is not None else SourceMode.TEXT,
        text=text,
        pdf_path=args.pdf.expanduser() if args.pdf is not None else None,
        count=defaults.question_count,
        difficulty=defaults.difficulty,
        focus=args.focus,
        negative_marking=defaults.negative_marking,
    )


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
