"""Configuration loading for quizgen.

Precedence is CLI overrides, then ``QUIZGEN_*`` environment variables, then
the TOML file, then built-in defaults. The TOML file is located through
``--config``, ``QUIZGEN_CONFIG`` or ``<workspace>/config/quizgen.toml``.
"""

from __future__ import annotations

import copy
import os
import tomllib
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from .core import workspace as workspace_mod
from .errors import ValidationError
from .generation import GenerationSettings
from .models import MAX_QUESTION_COUNT, MIN_QUESTION_COUNT, Difficulty

CONFIG_FILENAME = "quizgen.toml"
CONFIG_ENV = "QUIZGEN_CONFIG"
ENV_PREFIX = "QUIZGEN_"
TEMPLATE_RESOURCE = "template.toml"

_DEFAULTS: Mapping[str, Mapping[str, Any]] = {
    "ai": {
        "model": "gpt-4o-mini",
        "temperature": 0.2,
        "max_tokens": 8192,
        "structured_output": True,
    },
    "quiz": {
        "question_count": 10,
        "difficulty": Difficulty.MEDIUM.value,
        "negative_marking": False,
    },
    "logging": {"level": "INFO"},
}


class QuizGenConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizDefaults:
    """Initial values for the setup screen."""

    question_count: int
    difficulty: Difficulty
    negative_marking: bool


@dataclass(frozen=True)
class QuizGenConfig:
    """Fully resolved configuration."""

    ai: GenerationSettings
    quiz: QuizDefaults
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    model: Optional[str] = None
    question_count: Optional[int] = None
    difficulty: Optional[str] = None
    negative_marking: Optional[bool] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Resolved configuration plus where it came from."""

    config: QuizGenConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizGenConfigError(str(exc)) from exc

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )
    table = copy.deepcopy(_DEFAULTS)
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        merge_defaults(table, load_toml(requested_path))
        loaded_path = requested_path
    elif config_path is not None or (env_map.get(CONFIG_ENV) or "").strip():
        raise QuizGenConfigError(f"Config file not found: {requested_path}")

    ai_table = table["ai"]
    quiz_table = table["quiz"]

    ai = GenerationSettings(
        model=_require_str(
            _pick_first(
                overrides.model, _env(env_map, "MODEL"), ai_table["model"]
            ),
            "ai.model",
        ),
        temperature=_require_float(
            _pick_first(_env(env_map, "TEMPERATURE"), ai_table["temperature"]),
            "ai.temperature",
        ),
        max_tokens=_require_int(
            _pick_first(_env(env_map, "MAX_TOKENS"), ai_table["max_tokens"]),
            "ai.max_tokens",
            minimum=1,
        ),
        structured_output=_require_bool(
            ai_table["structured_output"], "ai.structured_output"
        ),
    )
    quiz = QuizDefaults(
        question_count=_require_int(
            _pick_first(
                overrides.question_count, quiz_table["question_count"]
            ),
            "quiz.question_count",
            minimum=MIN_QUESTION_COUNT,
            maximum=MAX_QUESTION_COUNT,
        ),
        difficulty=_resolve_difficulty(
            _pick_first(overrides.difficulty, quiz_table["difficulty"])
        ),
        negative_marking=_require_bool(
            _pick_first(
                overrides.negative_marking, quiz_table["negative_marking"]
            ),
            "quiz.negative_marking",
        ),
    )
    log_level = _require_str(
        _pick_first(
            overrides.log_level,
            _env(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        ),
        "logging.level",
    ).upper()

    return LoadResult(
        config=QuizGenConfig(ai=ai, quiz=quiz, log_level=log_level),
        layout=layout,
        config_path=loaded_path,
    )


def load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise QuizGenConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise QuizGenConfigError(
            f"Failed to parse config TOML: {exc}"
        ) from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Recursively merge ``override`` into ``base`` rejecting unknown keys."""

    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise QuizGenConfigError(f"Unknown configuration key '{dotted}'.")
        if isinstance(base[key], MutableMapping):
            if not isinstance(value, Mapping):
                raise QuizGenConfigError(
                    f"Expected table for '{dotted}', "
                    f"found {type(value).__name__}."
                )
            merge_defaults(base[key], value, path=f"{dotted}.")
            continue
        base[key] = value


def read_template() -> str:
    return (
        resources.files("quizgen")
        .joinpath(TEMPLATE_RESOURCE)
        .read_text(encoding="utf-8")
    )


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the packaged config template to ``path``."""

    if path.exists() and not overwrite:
        raise QuizGenConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(read_template(), encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def default_config_path(
    *,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> Path:
    env_map = os.environ if env is None else env
    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    return _resolve_config_path(
        config_path=None,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _env(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _require_str(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizGenConfigError(f"{key} must be a non-empty string.")
    return value.strip()


def _require_float(value: object, key: str) -> float:
    if isinstance(value, bool):
        raise QuizGenConfigError(f"{key} must be a number.")
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise QuizGenConfigError(f"{key} must be a number.") from exc


def _require_int(
    value: object,
    key: str,
    *,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    if isinstance(value, bool) or isinstance(value, float):
        raise QuizGenConfigError(f"{key} must be an integer.")
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise QuizGenConfigError(f"{key} must be an integer.") from exc
    if minimum is not None and number < minimum:
        raise QuizGenConfigError(f"{key} must be >= {minimum}.")
    if maximum is not None and number > maximum:
        raise QuizGenConfigError(f"{key} must be <= {maximum}.")
    return number


def _require_bool(value: object, key: str) -> bool:
    if not isinstance(value, bool):
        raise QuizGenConfigError(f"{key} must be true or false.")
    return value


def _resolve_difficulty(value: object) -> Difficulty:
    if isinstance(value, Difficulty):
        return value
    if not isinstance(value, str):
        raise QuizGenConfigError("quiz.difficulty must be a string.")
    try:
        return Difficulty.from_value(value)
    except ValidationError as exc:
        raise QuizGenConfigError(str(exc)) from exc
