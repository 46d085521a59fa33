"""``precision-quiz`` entry point dispatching to per-command modules."""

from __future__ import annotations

import inspect
import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Mapping, Optional, Sequence

PROG = "precision-quiz"
DIST_NAME = "precision-quiz"


@dataclass(frozen=True)
class CommandSpec:
    """A subcommand implemented by ``module:func`` taking an argv list."""

    name: str
    summary: str
    module: str
    func: str = "main"
    interactive: bool = False

    @property
    def prog(self) -> str:
        return f"{PROG} {self.name}"

    def run(self, argv: Sequence[str]) -> int:
        target = getattr(import_module(self.module), self.func)
        return _invoke_main(target, self.prog, argv)


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="init",
        summary="Bootstrap the precision-quiz workspace.",
        module="precision_quiz.workspace.cli",
    ),
    CommandSpec(
        name="generate",
        summary="Generate multiple-choice questions from a document.",
        module="precision_quiz.quiz.cli",
        func="generate_main",
    ),
    CommandSpec(
        name="take",
        summary="Generate a quiz from a document and answer it here.",
        module="precision_quiz.quiz.cli",
        func="take_main",
        interactive=True,
    ),
    CommandSpec(
        name="config",
        summary="Manage the precision_quiz.toml configuration file.",
        module="precision_quiz.quiz.cli",
        func="config_main",
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    """Return a formatted command table for help output."""

    width = max(len(name) for name in COMMANDS)
    rows = [
        "  {0}  {1}{2}".format(
            spec.name.ljust(width),
            spec.summary,
            " (interactive)" if spec.interactive else "",
        )
        for spec in _COMMAND_SPECS
    ]
    return "\n".join(["Available commands:", *rows])


def format_usage() -> str:
    return "\n".join(
        [
            f"Usage: {PROG} <command> [args...]",
            f"Run `{PROG} list` for commands or `{PROG} help <name>` for details.",
            "",
            format_command_table(),
        ]
    )


def _out(text: str) -> None:
    sys.stdout.write(text + "\n")


def _err(text: str) -> None:
    sys.stderr.write(text + "\n")


def _unknown(name: str) -> int:
    _err(f"Unknown command '{name}'.")
    _err(format_command_table())
    return 2


def _version(_: Sequence[str]) -> int:
    try:
        _out(metadata.version(DIST_NAME))
    except metadata.PackageNotFoundError:
        _out("unknown")
    return 0


def _list(_: Sequence[str]) -> int:
    _out(format_command_table())
    return 0


def _help(argv: Sequence[str]) -> int:
    if not argv:
        _out(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        return _unknown(argv[0])
    _out(f"{spec.name}: {spec.summary}")
    _out(f"Run `{spec.prog} --help` for CLI-specific options.")
    return 0


_BUILTINS: Mapping[str, Callable[[Sequence[str]], int]] = {
    "help": _help,
    "-h": _help,
    "--help": _help,
    "list": _list,
    "version": _version,
    "-V": _version,
    "--version": _version,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])
    if not args:
        _out(format_usage())
        return 2

    head, *tail = args
    builtin = _BUILTINS.get(head)
    if builtin is not None:
        return builtin(tail if head == "help" else [])

    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown(head)
    return spec.run(tail)


def _invoke_main(
    func: Callable[..., object], prog_name: str, argv: Sequence[str]
) -> int:
    args = list(argv)
    saved = sys.argv
    sys.argv = [prog_name, *args]
    try:
        result = func(args) if _accepts_positional(func) else func()
    except SystemExit as exc:
        return _normalize_system_exit(exc)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _accepts_positional(func: Callable[..., object]) -> bool:
    try:
        parameters = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
        inspect.Parameter.VAR_POSITIONAL,
    )
    return any(param.kind in positional for param in parameters)


def _normalize_system_exit(exc: SystemExit) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _err(str(code))
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
