from __future__ import annotations

import re

import pytest

from precision_quiz.quiz import export
from precision_quiz.quiz.export import (
    QUESTION_HEADERS,
    RESULT_HEADERS,
    ExportError,
    directory_sink,
    escape_csv_field,
    export_questions,
    export_results,
    questions_to_csv,
    questions_to_html,
    render_pdf,
    results_to_csv,
    results_to_html,
)
from precision_quiz.quiz.models import MCQ, Difficulty, UserAnswer


def _mcq(question: str = "Q1", answer_slot: int = 0) -> MCQ:
    options = ("Alpha", "Beta", "Gamma", "Delta")
    return MCQ(
        question=question,
        options=options,
        correct_answer=options[answer_slot],
        difficulty=Difficulty.MEDIUM,
    )


def _answer(question: str, selected: str, correct: str) -> UserAnswer:
    return UserAnswer(
        question=question,
        options=("Alpha", "Beta", "Gamma", "Delta"),
        selected_answer=selected,
        correct_answer=correct,
        is_correct=selected == correct,
    )


def _headers(html: str) -> list[str]:
    return re.findall(r"<th>(.*?)</th>", html)


def _cells(html: str) -> list[str]:
    return re.findall(r'<td(?: class="[^"]*")?>(.*?)</td>', html)


class RecordingSink:
    def __init__(self) -> None:
        self.blobs: list[tuple[bytes, str]] = []

    def __call__(self, data: bytes, filename: str) -> None:
        self.blobs.append((data, filename))


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("plain", "plain"),
        ('Q1,"comma"', '"Q1,""comma"""'),
        ("a,b", '"a,b"'),
        ("line\nbreak", '"line\nbreak"'),
        ('say "hi"', '"say ""hi"""'),
        (None, ""),
    ],
)
def test_escape_csv_field(raw, expected):
    assert escape_csv_field(raw) == expected


def test_questions_to_csv_layout():
    csv_text = questions_to_csv([_mcq('Q1,"comma"', answer_slot=2)])

    lines = csv_text.split("\n")
    assert lines[0] == (
        "Question,Option A,Option B,Option C,Option D,Correct Answer,Difficulty"
    )
    assert lines[1] == '"Q1,""comma""",Alpha,Beta,Gamma,Delta,Gamma,Medium'
    assert len(lines) == 2


def test_results_to_csv_layout(workspace):
    answers = [
        _answer("Q1", "Alpha", "Alpha"),
        _answer("Q2", "Beta", "Gamma"),
    ]

    path = workspace.write("results.csv", results_to_csv(answers))

    assert workspace.csv_rows(path.name) == [
        ["Question", "Your Answer", "Correct Answer", "Result"],
        ["Q1", "Alpha", "Alpha", "Correct"],
        ["Q2", "Beta", "Gamma", "Incorrect"],
    ]


def test_empty_inputs_render_nothing():
    assert questions_to_csv([]) == ""
    assert results_to_csv([]) == ""
    assert questions_to_html([]) == ""
    assert results_to_html([]) == ""


def test_empty_exports_are_noops():
    sink = RecordingSink()

    assert export_questions([], "csv", sink) is None
    assert export_results([], "pdf", sink) is None
    assert sink.blobs == []


def test_export_questions_csv_names_file():
    sink = RecordingSink()

    name = export_questions([_mcq()], "csv", sink)

    assert name == "precision-quiz-questions.csv"
    data, filename = sink.blobs[0]
    assert filename == name
    assert data.decode("utf-8").startswith("Question,Option A")


def test_questions_html_follows_csv_columns():
    html = questions_to_html([_mcq("<b>Bold</b> & co")])

    assert "Precision Quiz - Generated Questions" in html
    assert tuple(_headers(html)) == QUESTION_HEADERS
    assert _cells(html) == [
        "&lt;b&gt;Bold&lt;/b&gt; &amp; co",
        "Alpha",
        "Beta",
        "Gamma",
        "Delta",
        "Alpha",
        "Medium",
    ]


def test_results_html_colours_rows_and_summary():
    html = results_to_html(
        [
            _answer("Q1", "Alpha", "Alpha"),
            _answer("Q2", "Beta", "Gamma"),
            _answer("Q3", "Delta", "Delta"),
        ]
    )

    assert "Precision Quiz - Results" in html
    assert tuple(_headers(html)) == RESULT_HEADERS
    assert _cells(html)[:4] == ["Q1", "Alpha", "Alpha", "Correct"]
    assert "Score: 2/3 (67%)" in html
    assert html.count('class="result-correct"') == 2
    assert html.count('class="result-incorrect"') == 1


def test_pdf_exports_render_through_weasyprint(weasyprint_stub):
    sink = RecordingSink()

    q_name = export_questions([_mcq()], "pdf", sink)
    r_name = export_results([_answer("Q1", "Alpha", "Beta")], "pdf", sink)

    assert (q_name, r_name) == (
        "precision-quiz-questions.pdf",
        "precision-quiz-results.pdf",
    )
    calls = weasyprint_stub.pop_calls()
    assert len(calls) == 2
    assert "Generated Questions" in calls[0].html
    assert "Score: 0/1 (0%)" in calls[1].html
    assert calls[0].stylesheets[0].string == export.PAGE_CSS
    assert all(data.startswith(b"%PDF") for data, _ in sink.blobs)


def test_render_pdf_requires_bytes(monkeypatch):
    class NoBytes:
        def __init__(self, **kwargs):
            pass

        def write_pdf(self, **kwargs):
            return None

    monkeypatch.setattr(export, "_load_weasyprint", lambda: (NoBytes, dict))

    with pytest.raises(ExportError):
        render_pdf("<html></html>")


def test_missing_weasyprint_raises_export_error(monkeypatch):
    def unavailable():
        raise ExportError("WeasyPrint is required for PDF export.")

    monkeypatch.setattr(export, "_load_weasyprint", unavailable)

    with pytest.raises(ExportError, match="WeasyPrint"):
        export_questions([_mcq()], "pdf", RecordingSink())


def test_unknown_format_is_rejected():
    with pytest.raises(ExportError, match="xlsx"):
        export_questions([_mcq()], "xlsx", RecordingSink())  # type: ignore[arg-type]


def test_directory_sink_creates_directory(tmp_path):
    target = tmp_path / "out" / "nested"
    sink = directory_sink(target)

    written = sink(b"data", "file.csv")

    assert written == target / "file.csv"
    assert written.read_bytes() == b"data"
