"""CLI entry points for generating questions and taking quizzes."""

from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.text import Text

from precision_quiz.core import workspace as workspace_mod
from precision_quiz.core.ai import load_client
from precision_quiz.core.logging import configure_logger
from precision_quiz.core.workspace import WorkspaceError

from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    LoadResult,
    QuizConfigError,
    load_config,
    write_config_template,
)
from .export import (
    EXPORT_FORMATS,
    ExportError,
    directory_sink,
    export_questions,
    export_results,
)
from .extraction import DependencyError
from .models import (
    DOCX_MIME,
    PDF_MIME,
    TEXT_MIME,
    Document,
    GenerationParameters,
)
from .pipeline import PipelineOutcome, QuizPipeline
from .session import InputProvider, run_quiz_session

LOGGER_NAME = "precision_quiz"

_SUFFIX_TYPES = {
    ".pdf": PDF_MIME,
    ".docx": DOCX_MIME,
    ".txt": TEXT_MIME,
}


def _build_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        epilog=(
            "Run `precision-quiz config init` to scaffold the default "
            "precision_quiz.toml template."
        ),
    )
    parser.add_argument(
        "file",
        type=Path,
        help="PDF, DOCX or TXT document to build questions from.",
    )
    parser.add_argument(
        "--count",
        type=int,
        help="Number of questions to request (defaults to 5).",
    )
    parser.add_argument(
        "--difficulty",
        help="Easy, Medium, Hard or Any (defaults to Easy).",
    )
    parser.add_argument(
        "--model",
        help="OpenAI chat model used for generation.",
    )
    parser.add_argument(
        "--format",
        dest="formats",
        nargs="+",
        choices=EXPORT_FORMATS,
        help="Export the generated questions in these formats.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for exported files (defaults to the workspace exports).",
    )
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
        help="Override the workspace root used for config, logs and exports.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to the terminal.",
    )
    return parser


def generate_main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
) -> int:
    """Extract a document, generate questions and export them."""

    parser = _build_parser(
        "precision-quiz generate",
        "Generate multiple-choice questions from a document and export them.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    out = console or Console()

    load_result = _load(parser, args)
    logger = _logger_for(load_result, args.verbose, out)
    outcome = _run_pipeline(args.file, load_result, logger, out)
    if outcome is None:
        return 1
    if not outcome.ok:
        _error(out, "Error", outcome.message)
        return 1

    out.print(
        f"[bold green]Generated {len(outcome.questions)} question(s)[/] "
        f"from {args.file.name}"
    )
    formats = args.formats or ["csv"]
    sink = directory_sink(load_result.config.output_dir)
    for fmt in formats:
        try:
            name = export_questions(outcome.questions, fmt, sink)
        except ExportError as exc:
            _error(out, "Export failed", exc)
            return 1
        if name:
            out.print(f"Wrote {load_result.config.output_dir / name}")
    return 0


def take_main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
) -> int:
    """Generate questions from a document and run the quiz in the terminal."""

    parser = _build_parser(
        "precision-quiz take",
        "Generate a quiz from a document and answer it in the terminal.",
    )
    parser.add_argument(
        "--export",
        dest="exports",
        nargs="+",
        choices=EXPORT_FORMATS,
        help="Export your results in these formats once the quiz is finished.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    out = console or Console()
    ask = input_provider or (lambda: out.input("[bold]Your answer:[/] "))

    load_result = _load(parser, args)
    logger = _logger_for(load_result, args.verbose, out)
    outcome = _run_pipeline(args.file, load_result, logger, out)
    if outcome is None:
        return 1
    if not outcome.ok or outcome.session is None:
        _error(out, "Error", outcome.message)
        return 1

    sink = directory_sink(load_result.config.output_dir)
    try:
        for fmt in args.formats or []:
            export_questions(outcome.questions, fmt, sink)

        action = run_quiz_session(outcome.session, out, ask)
        logger.info("Quiz session ended", extra={"action": action})
        if action != "completed":
            return 0

        for fmt in args.exports or []:
            name = export_results(outcome.session.answers, fmt, sink)
            if name:
                out.print(f"Wrote {load_result.config.output_dir / name}")
    except ExportError as exc:
        _error(out, "Export failed", exc)
        return 1
    return 0


def _load(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> LoadResult:
    overrides = ConfigOverrides(
        count=args.count,
        difficulty=args.difficulty,
        model=args.model,
        output_dir=args.output_dir,
        log_level=args.log_level,
    )
    try:
        return load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except QuizConfigError as exc:
        parser.error(str(exc))
        raise  # pragma: no cover - parser.error exits


def _logger_for(
    load_result: LoadResult, verbose: bool, console: Console
) -> logging.Logger:
    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=load_result.layout.path_for("logs"),
        level=load_result.config.log_level,
        verbose=verbose,
        console=console if verbose else None,
    )
    logger.debug("Logging to %s", log_path)
    return logger


def _run_pipeline(
    path: Path,
    load_result: LoadResult,
    logger: logging.Logger,
    console: Console,
) -> Optional[PipelineOutcome]:
    config = load_result.config
    try:
        document = read_document(path)
    except OSError as exc:
        _error(console, "Error", f"cannot read {path}: {exc.strerror or exc}")
        return None

    try:
        client = load_client()
    except RuntimeError as exc:
        _error(console, "Error", exc)
        return None

    pipeline = QuizPipeline(
        client=client,
        settings=config.generator_settings,
        min_text_length=config.min_text_length,
        logger=logger,
    )
    params = GenerationParameters(count=config.count, difficulty=config.difficulty)
    try:
        with console.status("Extracting text and generating questions..."):
            return pipeline.run(document, params)
    except DependencyError as exc:
        _error(console, "Error", exc)
        return None


def _error(console: Console, label: str, message: object) -> None:
    console.print(Text.assemble((f"{label}: ", "bold red"), str(message)))


def read_document(path: Path) -> Document:
    """Load ``path`` as a :class:`Document` with its declared content type."""

    data = path.expanduser().read_bytes()
    return Document(data=data, content_type=guess_content_type(path), name=path.name)


def guess_content_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _SUFFIX_TYPES:
        return _SUFFIX_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


# ------------- config -------------


def config_main(argv: Sequence[str] | None = None) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    return _handle_config_init(args)


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="precision-quiz config",
        description="Manage the precision-quiz configuration file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Write the default precision_quiz.toml template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help=(
            "Workspace root override used when resolving the default config "
            "path."
        ),
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def _handle_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    try:
        written = write_config_template(target, overwrite=args.force)
    except QuizConfigError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote precision-quiz config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


__all__ = [
    "config_main",
    "generate_main",
    "guess_content_type",
    "read_document",
    "take_main",
]
