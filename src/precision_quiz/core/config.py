"""TOML helpers shared by the precision-quiz configuration loaders."""

from __future__ import annotations

import copy
import tomllib
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

__all__ = [
    "TomlConfigError",
    "layered_table",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
]

Table = MutableMapping[str, Any]


class TomlConfigError(RuntimeError):
    """Raised when TOML config IO or validation fails."""


def load_toml(path: Path) -> Mapping[str, Any]:
    """Parse the TOML document at ``path``.

    Missing files and syntax errors both surface as :class:`TomlConfigError`
    so loaders can re-raise them under their own error type.
    """

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Failed to parse config TOML {path}: {exc}") from exc


def merge_defaults(
    base: Table,
    override: Mapping[str, Any],
    *,
    prefix: str = "",
) -> None:
    """Merge ``override`` into ``base`` in place.

    Only keys already present in ``base`` are accepted, and tables may only
    be replaced by tables. All unknown keys at one level are reported
    together.
    """

    unknown = sorted(f"{prefix}{key}" for key in override if key not in base)
    if unknown:
        raise TomlConfigError(
            "Unknown configuration key(s): {0}.".format(", ".join(unknown))
        )

    for key, value in override.items():
        current = base[key]
        if isinstance(current, MutableMapping):
            if not isinstance(value, Mapping):
                raise TomlConfigError(
                    f"Expected table for '{prefix}{key}', found "
                    f"{type(value).__name__}."
                )
            merge_defaults(current, value, prefix=f"{prefix}{key}.")
        else:
            base[key] = value


def layered_table(defaults: Mapping[str, Any], path: Optional[Path]) -> Table:
    """Return a copy of ``defaults`` with the TOML file at ``path`` on top."""

    table: Table = copy.deepcopy(dict(defaults))
    if path is not None:
        merge_defaults(table, load_toml(path))
    return table


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Write ``template`` to ``path`` unless it exists and ``overwrite`` is off."""

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path
