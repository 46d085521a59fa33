from __future__ import annotations

import os
from pathlib import Path

import pytest

from fixtures import OpenAIStub, WeasyPrintRecorder, WorkspaceBuilder


@pytest.fixture(autouse=True)
def _isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep every test away from the real workspace and API key."""

    for name in list(os.environ):
        if name.startswith("PRECISION_QUIZ_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("PRECISION_QUIZ_DATA_HOME", str(tmp_path / "data-home"))


@pytest.fixture
def openai_stub() -> OpenAIStub:
    """A fresh chat-completions stub to inject as ``client=``."""

    return OpenAIStub()


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def weasyprint_stub(monkeypatch: pytest.MonkeyPatch) -> WeasyPrintRecorder:
    """Route PDF rendering through a recorder instead of WeasyPrint."""

    from precision_quiz.quiz import export

    recorder = WeasyPrintRecorder()
    monkeypatch.setattr(export, "_load_weasyprint", recorder.classes)
    return recorder
