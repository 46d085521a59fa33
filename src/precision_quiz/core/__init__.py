"""Core shared helpers for precision-quiz commands."""

from __future__ import annotations

from .ai import load_client
from .config import (
    TomlConfigError,
    layered_table,
    load_toml,
    merge_defaults,
    write_toml_template,
)
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "TomlConfigError",
    "layered_table",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "configure_logger",
    "JsonLogFormatter",
    "ensure_workspace",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
