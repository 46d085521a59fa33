from __future__ import annotations

import pytest

from fixtures import OpenAIStub, mcq_record
from fixtures.documents import LONG_TEXT
from precision_quiz.quiz.extraction import DependencyError, ExtractorDependencies
from precision_quiz.quiz.generator import MALFORMED_MESSAGE, UNAVAILABLE_MESSAGE
from precision_quiz.quiz.models import (
    DOCX_MIME,
    PDF_MIME,
    TEXT_MIME,
    Document,
    GenerationParameters,
)
from precision_quiz.quiz.pipeline import (
    INSUFFICIENT_TEXT_MESSAGE,
    NO_QUESTIONS_MESSAGE,
    FailureKind,
    PipelineBusyError,
    PipelineStatus,
    QuizPipeline,
)
from precision_quiz.quiz.session import SessionStatus


def _text_doc(text: str = LONG_TEXT) -> Document:
    return Document(data=text.encode("utf-8"), content_type=TEXT_MIME, name="notes.txt")


def _pipeline(client: OpenAIStub, **kwargs) -> QuizPipeline:
    return QuizPipeline(client=client, **kwargs)


def test_successful_run_starts_an_active_session(openai_stub: OpenAIStub):
    openai_stub.queue_questions([mcq_record(1), mcq_record(2)])
    pipeline = _pipeline(openai_stub)

    outcome = pipeline.run(_text_doc(), GenerationParameters(count=2))

    assert outcome.ok
    assert pipeline.status is PipelineStatus.READY
    assert outcome.session is pipeline.session
    assert outcome.session.status is SessionStatus.ACTIVE
    assert outcome.session.questions == outcome.questions
    assert [q.question for q in outcome.questions] == ["Question 1?", "Question 2?"]


def test_short_text_fails_before_generation(openai_stub: OpenAIStub):
    pipeline = _pipeline(openai_stub)

    outcome = pipeline.run(_text_doc("  tiny  " + " " * 200), GenerationParameters(count=3))

    assert outcome.status is PipelineStatus.FAILED
    assert outcome.failure is FailureKind.INSUFFICIENT_TEXT
    assert outcome.message == INSUFFICIENT_TEXT_MESSAGE
    assert outcome.session is None
    assert openai_stub.calls == []


def test_length_threshold_applies_to_trimmed_text(openai_stub: OpenAIStub):
    openai_stub.queue_questions([mcq_record(1)])
    pipeline = _pipeline(openai_stub, min_text_length=10)

    outcome = pipeline.run(_text_doc("   0123456789   "), GenerationParameters(count=1))

    assert outcome.ok


def test_unsupported_type_maps_to_single_message(openai_stub: OpenAIStub):
    doc = Document(data=b"png", content_type="image/png")

    outcome = _pipeline(openai_stub).run(doc, GenerationParameters(count=1))

    assert outcome.failure is FailureKind.UNSUPPORTED_TYPE
    assert outcome.message == "Unsupported file type."


def test_parse_failure_keeps_format_specific_message(openai_stub: OpenAIStub):
    def broken(data: bytes):
        raise ValueError("bad document")

    deps = ExtractorDependencies(pdf_pages=broken, docx_text=broken)
    pipeline = _pipeline(openai_stub, extractor_dependencies=deps)

    pdf = pipeline.run(Document(b"x", PDF_MIME), GenerationParameters(count=1))
    docx = pipeline.run(Document(b"x", DOCX_MIME), GenerationParameters(count=1))

    assert pdf.failure is docx.failure is FailureKind.PARSE_FAILURE
    assert "PDF" in pdf.message
    assert docx.message == "Could not parse DOCX file."
    assert "bad document" not in pdf.message


def test_zero_questions_is_a_failure(openai_stub: OpenAIStub):
    openai_stub.queue_response('{"questions": []}')

    outcome = _pipeline(openai_stub).run(_text_doc(), GenerationParameters(count=3))

    assert outcome.failure is FailureKind.NO_QUESTIONS
    assert outcome.message == NO_QUESTIONS_MESSAGE


def test_malformed_response_is_reported(openai_stub: OpenAIStub):
    openai_stub.queue_response("definitely not json")

    outcome = _pipeline(openai_stub).run(_text_doc(), GenerationParameters(count=3))

    assert outcome.failure is FailureKind.MALFORMED_RESPONSE
    assert outcome.message == MALFORMED_MESSAGE


def test_provider_failure_hides_raw_error():
    def fail(kwargs):
        raise TimeoutError("upstream 503 secret-detail")

    client = OpenAIStub(side_effect=fail)

    outcome = _pipeline(client).run(_text_doc(), GenerationParameters(count=3))

    assert outcome.failure is FailureKind.SERVICE_UNAVAILABLE
    assert outcome.message == UNAVAILABLE_MESSAGE
    assert "secret-detail" not in outcome.message


def test_failure_resets_previous_session(openai_stub: OpenAIStub):
    openai_stub.queue_questions([mcq_record(1)])
    pipeline = _pipeline(openai_stub)
    first = pipeline.run(_text_doc(), GenerationParameters(count=1))
    assert first.ok

    second = pipeline.run(_text_doc("short"), GenerationParameters(count=1))

    assert not second.ok
    assert pipeline.session is None
    assert pipeline.status is PipelineStatus.FAILED


def test_run_is_rejected_while_busy(openai_stub: OpenAIStub):
    pipeline = _pipeline(openai_stub)
    seen: list[PipelineStatus] = []

    def reentrant(kwargs):
        seen.append(pipeline.status)
        with pytest.raises(PipelineBusyError):
            pipeline.run(_text_doc(), GenerationParameters(count=1))
        return None

    openai_stub.side_effect = reentrant
    openai_stub.queue_questions([mcq_record(1)])

    outcome = pipeline.run(_text_doc(), GenerationParameters(count=1))

    assert seen == [PipelineStatus.GENERATING]
    assert outcome.ok


def test_missing_parser_library_propagates(openai_stub: OpenAIStub):
    def missing(data: bytes):
        raise DependencyError("install pypdf")

    deps = ExtractorDependencies(pdf_pages=missing, docx_text=missing)
    pipeline = _pipeline(openai_stub, extractor_dependencies=deps)

    with pytest.raises(DependencyError):
        pipeline.run(Document(b"x", PDF_MIME), GenerationParameters(count=1))
    assert pipeline.status is PipelineStatus.FAILED
    assert not pipeline.is_busy
