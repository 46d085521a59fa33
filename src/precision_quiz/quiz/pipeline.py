"""Document-to-quiz orchestration: extract, check, generate, start a session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

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
from .models import MCQ, Document, GenerationParameters
from .session import QuizSession

DEFAULT_MIN_TEXT_LENGTH = 100

INSUFFICIENT_TEXT_MESSAGE = (
    "Could not extract sufficient text. Please ensure the document is not "
    "empty, scanned, or protected."
)
NO_QUESTIONS_MESSAGE = (
    "The AI could not generate any questions from this document. Please try "
    "a different one."
)
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class PipelineError(RuntimeError):
    """Raised for caller-level preconditions the stages do not check."""


class InsufficientTextError(PipelineError):
    """Raised when extracted text is shorter than the usable minimum."""


class NoQuestionsError(PipelineError):
    """Raised when generation succeeded but produced zero questions."""


class PipelineBusyError(PipelineError):
    """Raised when a run is requested while another is in flight."""


class PipelineStatus(Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class FailureKind(Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    PARSE_FAILURE = "parse_failure"
    INSUFFICIENT_TEXT = "insufficient_text"
    MALFORMED_RESPONSE = "malformed_response"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NO_QUESTIONS = "no_questions"


@dataclass(frozen=True)
class PipelineOutcome:
    """Result of one document-to-quiz run.

    On success ``session`` is an ``ACTIVE`` quiz over ``questions``. On
    failure ``session`` is ``None``, ``failure`` names the kind and
    ``message`` is the single text meant for the user; ``error`` keeps the
    exception for logs.
    """

    status: PipelineStatus
    questions: tuple[MCQ, ...] = ()
    session: Optional[QuizSession] = None
    failure: Optional[FailureKind] = None
    message: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is PipelineStatus.READY


class QuizPipeline:
    """Runs the stages strictly one after another for a single user."""

    def __init__(
        self,
        *,
        client: object,
        settings: Optional[GeneratorSettings] = None,
        min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
        extractor_dependencies: Optional[ExtractorDependencies] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._settings = settings or GeneratorSettings()
        self._min_text_length = min_text_length
        self._extractor_dependencies = extractor_dependencies
        self._logger = logger or logging.getLogger(__name__)
        self._status = PipelineStatus.IDLE
        self._session: Optional[QuizSession] = None

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def is_busy(self) -> bool:
        return self._status in (
            PipelineStatus.EXTRACTING,
            PipelineStatus.GENERATING,
        )

    @property
    def session(self) -> Optional[QuizSession]:
        return self._session

    def run(
        self, document: Document, params: GenerationParameters
    ) -> PipelineOutcome:
        """Turn ``document`` into a started quiz session.

        Stage failures come back as a ``FAILED`` outcome rather than an
        exception. Missing parser libraries and programming errors still
        raise.
        """

        if self.is_busy:
            raise PipelineBusyError("A document is already being processed.")
        self._session = None
        self._logger.info(
            "Starting quiz pipeline",
            extra={
                "document": document.name,
                "content_type": document.content_type,
                "count": params.count,
            },
        )
        try:
            questions = self._produce_questions(document, params)
        except (ExtractionError, GenerationError, PipelineError) as exc:
            if isinstance(exc, DependencyError):
                self._status = PipelineStatus.FAILED
                raise
            return self._fail(exc)
        except Exception:
            self._status = PipelineStatus.FAILED
            raise

        session = QuizSession()
        session.start(questions)
        self._session = session
        self._status = PipelineStatus.READY
        self._logger.info(
            "Quiz ready", extra={"question_count": len(questions)}
        )
        return PipelineOutcome(
            status=PipelineStatus.READY,
            questions=tuple(questions),
            session=session,
        )

    def _produce_questions(
        self, document: Document, params: GenerationParameters
    ) -> list[MCQ]:
        self._status = PipelineStatus.EXTRACTING
        text = extract_text(
            document, dependencies=self._extractor_dependencies
        )
        usable = len(text.strip())
        self._logger.info("Extracted text", extra={"characters": usable})
        if usable < self._min_text_length:
            raise InsufficientTextError(INSUFFICIENT_TEXT_MESSAGE)

        self._status = PipelineStatus.GENERATING
        questions = generate_mcqs(
            text, params, client=self._client, settings=self._settings
        )
        if not questions:
            raise NoQuestionsError(NO_QUESTIONS_MESSAGE)
        return questions

    def _fail(self, exc: Exception) -> PipelineOutcome:
        kind = classify_failure(exc)
        self._status = PipelineStatus.FAILED
        self._session = None
        self._logger.error(
            "Quiz pipeline failed",
            exc_info=exc,
            extra={"failure": kind.value if kind else None},
        )
        return PipelineOutcome(
            status=PipelineStatus.FAILED,
            failure=kind,
            message=str(exc) or UNKNOWN_ERROR_MESSAGE,
            error=exc,
        )


def classify_failure(exc: Exception) -> Optional[FailureKind]:
    """Map a stage exception to its failure kind."""

    mapping = (
        (UnsupportedTypeError, FailureKind.UNSUPPORTED_TYPE),
        (ParseFailureError, FailureKind.PARSE_FAILURE),
        (InsufficientTextError, FailureKind.INSUFFICIENT_TEXT),
        (MalformedResponseError, FailureKind.MALFORMED_RESPONSE),
        (ServiceUnavailableError, FailureKind.SERVICE_UNAVAILABLE),
        (NoQuestionsError, FailureKind.NO_QUESTIONS),
    )
    for exc_type, kind in mapping:
        if isinstance(exc, exc_type):
            return kind
    return None


__all__ = [
    "DEFAULT_MIN_TEXT_LENGTH",
    "FailureKind",
    "INSUFFICIENT_TEXT_MESSAGE",
    "InsufficientTextError",
    "NO_QUESTIONS_MESSAGE",
    "NoQuestionsError",
    "PipelineBusyError",
    "PipelineError",
    "PipelineOutcome",
    "PipelineStatus",
    "QuizPipeline",
    "classify_failure",
]
