"""Shared testing fixtures and stubs for the precision_quiz test suite."""

from .openai import OpenAIStub, OpenAIStubFactory, mcq_record  # noqa: F401
from .weasyprint import PDF_BYTES, WeasyPrintRecorder  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "OpenAIStub",
    "OpenAIStubFactory",
    "PDF_BYTES",
    "WeasyPrintRecorder",
    "WorkspaceBuilder",
    "build_tree",
    "mcq_record",
]
