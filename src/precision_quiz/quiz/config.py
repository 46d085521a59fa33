"""Configuration loader for quiz generation runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from precision_quiz.core import config as core_config
from precision_quiz.core import workspace as workspace_mod

from .generator import DEFAULT_MODEL, DEFAULT_TEMPERATURE, GeneratorSettings
from .models import DifficultyChoice, parse_difficulty_choice
from .pipeline import DEFAULT_MIN_TEXT_LENGTH

CONFIG_FILENAME = "precision_quiz.toml"
CONFIG_ENV = "PRECISION_QUIZ_CONFIG"
ENV_PREFIX = "PRECISION_QUIZ_"

DEFAULT_COUNT = 5
DEFAULT_DIFFICULTY = "Easy"
_DEFAULT_LOG_LEVEL = "INFO"


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizConfig:
    """Fully resolved settings for a generate/take run."""

    count: int
    difficulty: DifficultyChoice
    model: str
    temperature: float
    min_text_length: int
    output_dir: Path
    log_level: str

    @property
    def generator_settings(self) -> GeneratorSettings:
        return GeneratorSettings(model=self.model, temperature=self.temperature)


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced values that win over env and file settings."""

    count: Optional[int] = None
    difficulty: Optional[str] = None
    model: Optional[str] = None
    output_dir: Optional[Path] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve settings with precedence CLI > env > TOML > defaults.

    The TOML file is optional at its default location, but a path given via
    ``config_path`` or ``PRECISION_QUIZ_CONFIG`` must exist.
    """

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise QuizConfigError(str(exc)) from exc

    explicit = config_path or _env_path(env_map, CONFIG_ENV)
    requested = explicit or layout.path_for("config") / CONFIG_FILENAME

    if explicit is not None and not requested.exists():
        raise QuizConfigError(f"Config file not found: {requested}")
    loaded_path = requested if requested.exists() else None
    try:
        table = core_config.layered_table(_default_table(), loaded_path)
    except core_config.TomlConfigError as exc:
        raise QuizConfigError(str(exc)) from exc

    generation = table["generation"]
    count = _resolve_count(
        _first(overrides.count, _env_value(env_map, "COUNT"), generation["count"])
    )
    difficulty = _resolve_difficulty(
        _first(
            overrides.difficulty,
            _env_value(env_map, "DIFFICULTY"),
            generation["difficulty"],
        )
    )
    model = _resolve_string(
        _first(overrides.model, _env_value(env_map, "MODEL"), generation["model"]),
        "generation.model",
    )
    temperature = _resolve_temperature(generation["temperature"])
    min_text_length = _resolve_min_length(table["pipeline"]["min_text_length"])
    output_dir = _resolve_output_dir(
        _first(
            overrides.output_dir,
            _env_path(env_map, f"{ENV_PREFIX}OUTPUT_DIR"),
            table["paths"]["output_dir"],
        ),
        layout,
    )
    log_level = _resolve_string(
        _first(
            overrides.log_level,
            _env_value(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        ),
        "logging.level",
    ).upper()

    config = QuizConfig(
        count=count,
        difficulty=difficulty,
        model=model,
        temperature=temperature,
        min_text_length=min_text_length,
        output_dir=output_dir,
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def config_template_text() -> str:
    """Return the packaged, commented ``precision_quiz.toml`` template."""

    resource = resources.files(__package__).joinpath(CONFIG_FILENAME)
    try:
        return resource.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise QuizConfigError(
            f"Packaged template {CONFIG_FILENAME} is missing; reinstall "
            "precision-quiz."
        ) from exc


def write_config_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the packaged template to ``path`` with owner-only permissions."""

    try:
        return core_config.write_toml_template(
            path, template=config_template_text(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise QuizConfigError(str(exc)) from exc


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "generation": {
            "count": DEFAULT_COUNT,
            "difficulty": DEFAULT_DIFFICULTY,
            "model": DEFAULT_MODEL,
            "temperature": DEFAULT_TEMPERATURE,
        },
        "pipeline": {"min_text_length": DEFAULT_MIN_TEXT_LENGTH},
        "paths": {"output_dir": ""},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_count(value: object) -> int:
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError as exc:
            raise QuizConfigError(
                "generation.count must be a positive integer."
            ) from exc
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise QuizConfigError("generation.count must be a positive integer.")
    return value


def _resolve_difficulty(value: object) -> DifficultyChoice:
    if not isinstance(value, str):
        raise QuizConfigError("generation.difficulty must be a string.")
    try:
        return parse_difficulty_choice(value)
    except ValueError as exc:
        raise QuizConfigError(f"{exc} (or 'Any')") from exc


def _resolve_temperature(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuizConfigError("generation.temperature must be a number.")
    if not 0 <= value <= 2:
        raise QuizConfigError("generation.temperature must be within 0..2.")
    return float(value)


def _resolve_min_length(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise QuizConfigError(
            "pipeline.min_text_length must be a positive integer."
        )
    return value


def _resolve_string(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizConfigError(f"{key} must be a non-empty string.")
    return value.strip()


def _resolve_output_dir(
    candidate: object, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if isinstance(candidate, str):
        candidate = Path(candidate) if candidate.strip() else None
    if candidate is None:
        return layout.path_for("exports")
    if not isinstance(candidate, Path):
        raise QuizConfigError("paths.output_dir must be a string.")
    candidate = candidate.expanduser()
    if not candidate.is_absolute():
        return (layout.home / candidate).resolve()
    return candidate.resolve()


def _env_value(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    return raw.strip() or None


def _env_path(env_map: Mapping[str, str], name: str) -> Optional[Path]:
    raw = (env_map.get(name) or "").strip()
    return Path(raw).expanduser() if raw else None


def _first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


__all__ = [
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "ConfigOverrides",
    "DEFAULT_COUNT",
    "DEFAULT_MIN_TEXT_LENGTH",
    "LoadResult",
    "QuizConfig",
    "QuizConfigError",
    "config_template_text",
    "load_config",
    "write_config_template",
]
