"""Route an uploaded document to the parser for its declared content type."""

from __future__ import annotations

import importlib
import io
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Sequence

from .models import DOCX_MIME, PDF_MIME, TEXT_MIME, Document

logger = logging.getLogger(__name__)

PDF_PARSE_MESSAGE = "Could not parse PDF file. It might be corrupted or encrypted."
DOCX_PARSE_MESSAGE = "Could not parse DOCX file."
TEXT_PARSE_MESSAGE = "Failed to read TXT file."


class ExtractionError(RuntimeError):
    """Raised when text cannot be extracted from a document."""


class UnsupportedTypeError(ExtractionError):
    """Raised when the declared content type has no parser."""


class ParseFailureError(ExtractionError):
    """Raised when a supported document is corrupt, encrypted or undecodable."""


class DependencyError(ExtractionError):
    """Raised when a parser library is not installed."""


@dataclass(frozen=True)
class ExtractorDependencies:
    """Parser seams: PDF bytes to page texts, DOCX bytes to raw text."""

    pdf_pages: Callable[[bytes], Sequence[str]]
    docx_text: Callable[[bytes], str]


def extract_text(
    document: Document,
    *,
    dependencies: ExtractorDependencies | None = None,
) -> str:
    """Return the plain text of ``document``.

    Dispatch depends only on ``document.content_type``; the bytes are never
    sniffed. Parser failures are raised as :class:`ParseFailureError` with the
    original exception chained, and partial text is never returned.
    """

    content_type = document.content_type
    logger.debug(
        "Extracting document text",
        extra={
            "document": document.name,
            "content_type": content_type,
            "size": len(document.data),
        },
    )
    if content_type == PDF_MIME:
        deps = dependencies or default_dependencies()
        return _extract_pdf(document.data, deps.pdf_pages)
    if content_type == DOCX_MIME:
        deps = dependencies or default_dependencies()
        return _extract_docx(document.data, deps.docx_text)
    if content_type == TEXT_MIME:
        return _extract_plain_text(document.data)
    raise UnsupportedTypeError("Unsupported file type.")


def _extract_pdf(
    data: bytes, pdf_pages: Callable[[bytes], Sequence[str]]
) -> str:
    try:
        pages = list(pdf_pages(data))
    except DependencyError:
        raise
    except Exception as exc:
        raise ParseFailureError(PDF_PARSE_MESSAGE) from exc
    return " ".join(pages)


def _extract_docx(data: bytes, docx_text: Callable[[bytes], str]) -> str:
    try:
        return docx_text(data)
    except DependencyError:
        raise
    except Exception as exc:
        raise ParseFailureError(DOCX_PARSE_MESSAGE) from exc


def _extract_plain_text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseFailureError(TEXT_PARSE_MESSAGE) from exc


def default_dependencies() -> ExtractorDependencies:
    """Return parser seams backed by pypdf and python-docx."""

    return ExtractorDependencies(pdf_pages=read_pdf_pages, docx_text=read_docx_text)


def read_pdf_pages(data: bytes) -> list[str]:
    """Extract each page's text with pypdf, in page order."""

    pypdf = _import_module("pypdf", "PdfReader")
    reader = pypdf.PdfReader(io.BytesIO(data))
    if reader.is_encrypted:
        raise ValueError("PDF is encrypted")
    return [page.extract_text() or "" for page in reader.pages]


def read_docx_text(data: bytes) -> str:
    """Return the raw text of a DOCX package, one paragraph per line.

    Body paragraphs and table cells are read in document order; a merged
    cell contributes its text once.
    """

    docx = _import_module("docx", "Document")
    document = docx.Document(io.BytesIO(data))
    return "\n".join(_docx_lines(document))


def _docx_lines(container) -> Iterator[str]:
    for block in container.iter_inner_content():
        if hasattr(block, "rows"):
            yield from _docx_table_lines(block)
        else:
            yield block.text


def _docx_table_lines(table) -> Iterator[str]:
    seen = set()
    for row in table.rows:
        for cell in row.cells:
            if cell._tc in seen:
                continue
            seen.add(cell._tc)
            yield from _docx_lines(cell)


def _import_module(module: str, required_attribute: str):
    try:
        imported = importlib.import_module(module)
    except ImportError as exc:
        raise DependencyError(
            f"Dependency '{module}' is required for document extraction. "
            "Reinstall precision-quiz to pull in its parser libraries."
        ) from exc
    if not hasattr(imported, required_attribute):
        raise DependencyError(
            f"Dependency '{module}' is installed but missing the "
            f"'{required_attribute}' attribute. Upgrade or reinstall the "
            "package."
        )
    return imported


__all__ = [
    "DependencyError",
    "ExtractionError",
    "ExtractorDependencies",
    "ParseFailureError",
    "UnsupportedTypeError",
    "default_dependencies",
    "extract_text",
    "read_docx_text",
    "read_pdf_pages",
]
