"""Public APIs for document-to-quiz generation, sessions and exports."""

from __future__ import annotations

from .models import (
    DOCX_MIME,
    PDF_MIME,
    SUPPORTED_MIME_TYPES,
    TEXT_MIME,
    MCQ,
    Difficulty,
    Document,
    GenerationParameters,
    UserAnswer,
)

from .extraction import (
    DependencyError,
    ExtractionError,
    ExtractorDependencies,
    ParseFailureError,
    UnsupportedTypeError,
    extract_text,
)

from .generator import (
    GenerationError,
    GeneratorSettings,
    MalformedResponseError,
    ServiceUnavailableError,
    generate_mcqs,
)

from .session import (
    QuizScore,
    QuizSession,
    SessionStateError,
    SessionStatus,
    run_quiz_session,
    score_percentage,
)

from .export import (
    ExportError,
    directory_sink,
    export_questions,
    export_results,
    questions_to_csv,
    results_to_csv,
)

from .pipeline import (
    FailureKind,
    PipelineBusyError,
    PipelineOutcome,
    PipelineStatus,
    QuizPipeline,
)

from .config import (
    ConfigOverrides,
    LoadResult,
    QuizConfig,
    QuizConfigError,
    load_config,
)

__all__ = [
    "DOCX_MIME",
    "PDF_MIME",
    "SUPPORTED_MIME_TYPES",
    "TEXT_MIME",
    "MCQ",
    "Difficulty",
    "Document",
    "GenerationParameters",
    "UserAnswer",
    "DependencyError",
    "ExtractionError",
    "ExtractorDependencies",
    "ParseFailureError",
    "UnsupportedTypeError",
    "extract_text",
    "GenerationError",
    "GeneratorSettings",
    "MalformedResponseError",
    "ServiceUnavailableError",
    "generate_mcqs",
    "QuizScore",
    "QuizSession",
    "SessionStateError",
    "SessionStatus",
    "run_quiz_session",
    "score_percentage",
    "ExportError",
    "directory_sink",
    "export_questions",
    "export_results",
    "questions_to_csv",
    "results_to_csv",
    "FailureKind",
    "PipelineBusyError",
    "PipelineOutcome",
    "PipelineStatus",
    "QuizPipeline",
    "ConfigOverrides",
    "LoadResult",
    "QuizConfig",
    "QuizConfigError",
    "load_config",
]
