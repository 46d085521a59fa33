"""Workspace directory bootstrap for precision-quiz commands."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

WORKSPACE_ENV = "PRECISION_QUIZ_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".precision-quiz-data"

SUBDIRS: Mapping[str, str] = MappingProxyType(
    {
        "config": "config",
        "logs": "logs",
        "exports": "exports",
    }
)


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved workspace root, its subdirectories and what was created."""

    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise KeyError(f"Unknown workspace directory '{key}'.") from exc

    def items(self) -> tuple[tuple[str, Path], ...]:
        return tuple(self.directories.items())


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve the workspace root and create its subdirectories.

    The root comes from ``path``, then ``PRECISION_QUIZ_DATA_HOME``, then
    ``~/.precision-quiz-data``. Only the implicit default falls back to the
    temp directory when it is not writable; explicit locations fail loudly.
    """

    env_map = os.environ if env is None else env
    base, explicit = _resolve_base(env_map, path)

    candidates = [base]
    fallback = _fallback_base()
    if create and not explicit and fallback != base:
        candidates.append(fallback)

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            return _materialize(candidate, create=create)
        except PermissionError as exc:
            last_error = exc
    raise WorkspaceError(
        f"Unable to prepare workspace at {base}"
    ) from last_error


def _fallback_base() -> Path:
    return Path(tempfile.gettempdir()) / "precision-quiz-data"


def _resolve_base(
    env: Mapping[str, str], override: Path | None
) -> tuple[Path, bool]:
    if override is not None:
        return override.expanduser().absolute(), True
    custom = (env.get(WORKSPACE_ENV) or "").strip()
    if custom:
        return Path(custom).expanduser().absolute(), True
    return DEFAULT_WORKSPACE, False


def _materialize(base: Path, *, create: bool) -> WorkspaceLayout:
    if base.exists() and not base.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {base}"
        )

    created = {"home": _ensure_dir(base) if create else False}
    directories: dict[str, Path] = {}
    for key, relative in SUBDIRS.items():
        candidate = base / relative
        if candidate.exists() and not candidate.is_dir():
            raise WorkspaceError(
                "Expected workspace directory for '{0}' but found a file: "
                "{1}".format(key, candidate)
            )
        created[key] = _ensure_dir(candidate) if create else False
        directories[key] = candidate

    return WorkspaceLayout(
        home=base,
        directories=MappingProxyType(directories),
        created=MappingProxyType(created),
    )


def _ensure_dir(path: Path) -> bool:
    existed = path.is_dir()
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return not existed
