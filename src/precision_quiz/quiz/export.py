"""CSV and PDF renderings of generated questions and quiz results.

Rendering is pure: the CSV helpers return text and the table helpers return
an HTML document that WeasyPrint paginates into PDF bytes. Handing the bytes
to a destination is the job of a *sink*, any callable taking
``(data, filename)``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Literal, Sequence, Tuple

from jinja2 import Environment, Template

from .models import MCQ, UserAnswer
from .session import score_percentage

logger = logging.getLogger(__name__)

ExportFormat = Literal["csv", "pdf"]
BlobSink = Callable[[bytes, str], Any]

EXPORT_FORMATS: tuple[str, ...] = ("csv", "pdf")
FILE_PREFIX = "precision-quiz"

QUESTION_HEADERS = (
    "Question",
    "Option A",
    "Option B",
    "Option C",
    "Option D",
    "Correct Answer",
    "Difficulty",
)
RESULT_HEADERS = ("Question", "Your Answer", "Correct Answer", "Result")

QUESTIONS_TITLE = "Precision Quiz - Generated Questions"
RESULTS_TITLE = "Precision Quiz - Results"

PAGE_CSS = """
@page { size: A4; margin: 15mm 14mm; }
body { font-family: Helvetica, Arial, sans-serif; font-size: 8pt; }
h1 { font-size: 18pt; margin: 0 0 4mm 0; }
p.summary { font-size: 12pt; margin: 0 0 4mm 0; }
table { width: 100%; border-collapse: collapse; }
thead { display: table-header-group; }
tr { page-break-inside: avoid; }
th { background-color: rgb(59, 130, 246); color: #ffffff; text-align: left; }
th, td { padding: 2mm; border: 0.2mm solid #d1d5db; vertical-align: top; }
td.result-correct { color: rgb(0, 128, 0); }
td.result-incorrect { color: rgb(255, 0, 0); }
"""

_TABLE_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{{ title }}</title></head>
<body>
<h1>{{ title }}</h1>
{% if summary %}<p class="summary">{{ summary }}</p>{% endif %}
<table>
<thead><tr>{% for header in headers %}<th>{{ header }}</th>{% endfor %}</tr></thead>
<tbody>
{% for row in rows %}<tr>{% for cell in row %}<td{% if cell.css %} class="{{ cell.css }}"{% endif %}>{{ cell.text }}</td>{% endfor %}</tr>
{% endfor %}</tbody>
</table>
</body>
</html>
"""


class ExportError(RuntimeError):
    """Raised when an export cannot be rendered."""


# ------------- CSV -------------


def escape_csv_field(value: str | None) -> str:
    """Quote ``value`` when it holds a quote, comma or newline."""

    if value is None:
        return ""
    text = str(value)
    if '"' in text or "," in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def _csv_document(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    lines = [",".join(headers)]
    lines.extend(",".join(escape_csv_field(cell) for cell in row) for row in rows)
    return "\n".join(lines)


def questions_to_csv(mcqs: Sequence[MCQ]) -> str:
    """Render generated questions as CSV; empty input renders nothing."""

    if not mcqs:
        return ""
    rows = [
        [
            mcq.question,
            *mcq.options,
            mcq.correct_answer,
            mcq.difficulty.value,
        ]
        for mcq in mcqs
    ]
    return _csv_document(QUESTION_HEADERS, rows)


def results_to_csv(answers: Sequence[UserAnswer]) -> str:
    """Render answered questions as CSV; empty input renders nothing."""

    if not answers:
        return ""
    rows = [
        [
            answer.question,
            answer.selected_answer,
            answer.correct_answer,
            _result_label(answer),
        ]
        for answer in answers
    ]
    return _csv_document(RESULT_HEADERS, rows)


# ------------- Tables -------------


def _table_template() -> Template:
    return Environment(autoescape=True).from_string(_TABLE_TEMPLATE)


def _cell(text: object, css: str = "") -> dict[str, str]:
    return {"text": str(text), "css": css}


def questions_to_html(mcqs: Sequence[MCQ]) -> str:
    """Table document for generated questions, one row per question."""

    if not mcqs:
        return ""
    rows = [
        [
            _cell(mcq.question),
            *(_cell(option) for option in mcq.options),
            _cell(mcq.correct_answer),
            _cell(mcq.difficulty.value),
        ]
        for mcq in mcqs
    ]
    return _table_template().render(
        title=QUESTIONS_TITLE,
        summary="",
        headers=QUESTION_HEADERS,
        rows=rows,
    )


def results_to_html(answers: Sequence[UserAnswer]) -> str:
    """Table document for a finished quiz with its ``Score: X/Y (Z%)`` line."""

    if not answers:
        return ""
    score = sum(1 for answer in answers if answer.is_correct)
    total = len(answers)
    rows = [
        [
            _cell(answer.question),
            _cell(answer.selected_answer),
            _cell(answer.correct_answer),
            _cell(
                _result_label(answer),
                "result-correct" if answer.is_correct else "result-incorrect",
            ),
        ]
        for answer in answers
    ]
    return _table_template().render(
        title=RESULTS_TITLE,
        summary=f"Score: {score}/{total} ({score_percentage(score, total)}%)",
        headers=RESULT_HEADERS,
        rows=rows,
    )


def _result_label(answer: UserAnswer) -> str:
    return "Correct" if answer.is_correct else "Incorrect"


def render_pdf(html_doc: str) -> bytes:
    """Paginate a table document into PDF bytes with WeasyPrint."""

    html_cls, css_cls = _load_weasyprint()
    rendered = html_cls(string=html_doc, base_url=Path.cwd().as_uri()).write_pdf(
        stylesheets=[css_cls(string=PAGE_CSS)]
    )
    if not isinstance(rendered, (bytes, bytearray)):
        raise ExportError("WeasyPrint did not return PDF bytes.")
    return bytes(rendered)


def _load_weasyprint() -> Tuple[Any, Any]:
    try:
        from weasyprint import CSS, HTML
    except (ImportError, OSError) as exc:
        raise ExportError(
            "WeasyPrint is required for PDF export. Install system libraries "
            "(Pango) and the 'weasyprint' package."
        ) from exc
    return HTML, CSS


# ------------- Sinks -------------


def directory_sink(directory: Path) -> BlobSink:
    """Return a sink that writes each blob into ``directory``."""

    def _write(data: bytes, filename: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / filename
        target.write_bytes(data)
        return target

    return _write


def export_questions(
    mcqs: Sequence[MCQ], fmt: ExportFormat, sink: BlobSink
) -> str | None:
    """Send the question set to ``sink``; returns the filename, or ``None``
    when there was nothing to export."""

    if not mcqs:
        logger.info("Skipped question export; no questions", extra={"format": fmt})
        return None
    filename = f"{FILE_PREFIX}-questions.{fmt}"
    if fmt == "csv":
        data = questions_to_csv(mcqs).encode("utf-8")
    elif fmt == "pdf":
        data = render_pdf(questions_to_html(mcqs))
    else:
        raise ExportError(f"Unsupported export format '{fmt}'.")
    sink(data, filename)
    logger.info(
        "Exported questions",
        extra={"format": fmt, "export_name": filename, "rows": len(mcqs)},
    )
    return filename


def export_results(
    answers: Sequence[UserAnswer], fmt: ExportFormat, sink: BlobSink
) -> str | None:
    """Send quiz results to ``sink``; ``None`` when there are no answers."""

    if not answers:
        logger.info("Skipped results export; no answers", extra={"format": fmt})
        return None
    filename = f"{FILE_PREFIX}-results.{fmt}"
    if fmt == "csv":
        data = results_to_csv(answers).encode("utf-8")
    elif fmt == "pdf":
        data = render_pdf(results_to_html(answers))
    else:
        raise ExportError(f"Unsupported export format '{fmt}'.")
    sink(data, filename)
    logger.info(
        "Exported results",
        extra={"format": fmt, "export_name": filename, "rows": len(answers)},
    )
    return filename


__all__ = [
    "BlobSink",
    "EXPORT_FORMATS",
    "ExportError",
    "ExportFormat",
    "PAGE_CSS",
    "QUESTION_HEADERS",
    "RESULT_HEADERS",
    "directory_sink",
    "escape_csv_field",
    "export_questions",
    "export_results",
    "questions_to_csv",
    "questions_to_html",
    "render_pdf",
    "results_to_csv",
    "results_to_html",
]
