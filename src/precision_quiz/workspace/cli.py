"""``precision-quiz init``: create the workspace and optionally seed its config."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from precision_quiz.core import workspace as workspace_mod
from precision_quiz.quiz.config import (
    CONFIG_FILENAME,
    QuizConfigError,
    write_config_template,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="precision-quiz init",
        description=(
            "Create the precision-quiz workspace with its config, logs and "
            "exports directories."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Workspace root (defaults to PRECISION_QUIZ_DATA_HOME or "
            "~/.precision-quiz-data)."
        ),
    )
    parser.add_argument(
        "--with-config",
        action="store_true",
        help="Also write precision_quiz.toml into the config directory if absent.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    config_note = None
    if args.with_config:
        target = layout.path_for("config") / CONFIG_FILENAME
        if target.exists():
            config_note = f"config: {target} (kept)"
        else:
            try:
                write_config_template(target)
            except QuizConfigError as exc:
                sys.stderr.write(str(exc) + "\n")
                return 1
            config_note = f"config: {target} (written)"

    if not args.quiet:
        sys.stdout.write(_describe(layout, config_note))
    return 0


def _describe(layout: workspace_mod.WorkspaceLayout, config_note: str | None) -> str:
    def state(key: str) -> str:
        return "created" if layout.created.get(key) else "exists"

    lines = [f"Workspace ready at {layout.home} ({state('home')})"]
    width = max((len(name) for name in layout.directories), default=0)
    lines.extend(
        f"  {name.ljust(width)}  {directory} ({state(name)})"
        for name, directory in layout.items()
    )
    if config_note:
        lines.append(config_note)
    return "\n".join(lines) + "\n"


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
