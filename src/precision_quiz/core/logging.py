"""JSON-lines file logging with an optional Rich console mirror."""

from __future__ import annotations

import json
import logging
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

_FILE_MARKER = "_precision_quiz_file"
_CONSOLE_MARKER = "_precision_quiz_console"

# Attributes every LogRecord carries; anything else came in via ``extra``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """Emit log records as structured JSON lines."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    filename: str | None = None,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
    console: Console | None = None,
) -> tuple[logging.Logger, Path]:
    """Configure ``name`` to log JSON lines under ``log_dir``.

    Calling this repeatedly reuses the managed handlers instead of stacking
    new ones. ``verbose`` forces DEBUG on the file and mirrors records to
    stderr through Rich.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    log_name = filename or f"{name.rsplit('.', 1)[-1]}.log"
    path = _writable_log_path(log_dir, log_name)

    handler = _managed_handler(logger, _FILE_MARKER)
    if handler is not None and Path(handler.baseFilename) != path:
        logger.removeHandler(handler)
        handler.close()
        handler = None
    if handler is None:
        handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(JsonLogFormatter())
        setattr(handler, _FILE_MARKER, True)
        logger.addHandler(handler)
    handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    existing_console = _managed_handler(logger, _CONSOLE_MARKER)
    if verbose and existing_console is None:
        rich_handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        rich_handler.setLevel(logging.DEBUG)
        setattr(rich_handler, _CONSOLE_MARKER, True)
        logger.addHandler(rich_handler)
    elif not verbose and existing_console is not None:
        logger.removeHandler(existing_console)
        existing_console.close()

    return logger, path


def _managed_handler(logger: logging.Logger, marker: str) -> Any:
    for handler in logger.handlers:
        if getattr(handler, marker, False):
            return handler
    return None


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def _writable_log_path(log_dir: Path, filename: str) -> Path:
    for directory in (log_dir, Path(tempfile.gettempdir()) / "precision-quiz-logs"):
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = directory / filename
            path.touch(exist_ok=True)
        except PermissionError:
            continue
        try:
            path.chmod(0o600)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass
        return path
    raise PermissionError(f"No writable log directory for {filename}")


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)
