from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest
from rich.console import Console

from precision_quiz.core import logging as core_logging


def _close(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def logger_name(request) -> str:
    name = f"precision_quiz.test.{request.node.name}"
    yield name
    _close(logging.getLogger(name))


def _records(path: Path) -> list[dict]:
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    return [json.loads(line) for line in lines]


def test_configure_logger_writes_json(tmp_path, logger_name):
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        logger_name, log_dir=log_dir, filename="test.log"
    )

    logger.info("hello world", extra={"stage": "extract", "count": 3})

    class _Helper:
        def __repr__(self):
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={
                "value": {"items": [Path(log_dir), 1], "mapping": {"k": "v"}},
                "obj": _Helper(),
            },
        )

    assert log_path == log_dir / "test.log"
    first, last = _records(log_path)
    assert first["message"] == "hello world"
    assert first["level"] == "INFO"
    assert first["extra"] == {"stage": "extract", "count": 3}
    assert "ValueError: boom" in last["exception"]
    assert last["extra"]["obj"] == "helper"
    assert last["extra"]["value"]["items"] == [str(log_dir), 1]


def test_level_filters_file_output(tmp_path, logger_name):
    logger, log_path = core_logging.configure_logger(
        logger_name, log_dir=tmp_path, level="warning", filename="lvl.log"
    )

    logger.info("quiet")
    logger.warning("loud")

    assert [r["message"] for r in _records(log_path)] == ["loud"]


def test_repeat_configuration_reuses_handlers(tmp_path, logger_name):
    logger, _ = core_logging.configure_logger(
        logger_name, log_dir=tmp_path, filename="a.log"
    )
    again, _ = core_logging.configure_logger(
        logger_name, log_dir=tmp_path, filename="a.log"
    )

    assert logger is again
    assert len(logger.handlers) == 1


def test_verbose_adds_rich_console_handler(tmp_path, logger_name):
    stream = io.StringIO()
    logger, _ = core_logging.configure_logger(
        logger_name,
        log_dir=tmp_path,
        verbose=True,
        filename="verbose.log",
        console=Console(file=stream, width=200),
    )

    logger.debug("mirrored message")

    console_handlers = [
        handler
        for handler in logger.handlers
        if getattr(handler, "_precision_quiz_console", False)
    ]
    assert len(console_handlers) == 1
    assert "mirrored message" in stream.getvalue()

    core_logging.configure_logger(
        logger_name, log_dir=tmp_path, verbose=False, filename="verbose.log"
    )
    assert not any(
        getattr(handler, "_precision_quiz_console", False)
        for handler in logger.handlers
    )


def test_unwritable_log_dir_falls_back_to_tempdir(
    tmp_path, monkeypatch, logger_name
):
    blocked = tmp_path / "blocked"
    real_mkdir = Path.mkdir

    def fake_mkdir(self: Path, *args, **kwargs):
        if self == blocked:
            raise PermissionError("denied")
        return real_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(core_logging.tempfile, "gettempdir", lambda: str(tmp_path))

    _, log_path = core_logging.configure_logger(
        logger_name, log_dir=blocked, filename="fallback.log"
    )

    assert log_path == tmp_path / "precision-quiz-logs" / "fallback.log"
