"""PDF text extraction backed by ``pypdf``."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any

from .errors import ExtractionError

try:  # Allow module import even when pypdf is absent.
    import pypdf  # type: ignore
except ImportError:  # pragma: no cover - optional dependency guard
    pypdf = None  # type: ignore

__all__ = ["PAGE_SEPARATOR", "extract_text", "extract_pdf_file"]

PAGE_SEPARATOR = "\n\n"

logger = logging.getLogger(__name__)


def extract_text(data: bytes) -> str:
    """Return the text of every page of the PDF in ``data``.

    Fragments within a page are joined with single spaces and pages are
    joined with a blank line, in page order. Any failure aborts the whole
    extraction with :class:`ExtractionError`.
    """
    if pypdf is None:
        raise ExtractionError(
            "The 'pypdf' package is required to read PDF files. "
            "Install it and retry."
        )
    if not data:
        raise ExtractionError("The PDF file is empty.")

    try:
        reader = pypdf.PdfReader(io.BytesIO(data))
        _unlock(reader)
        pages = [_page_text(page) for page in reader.pages]
    except ExtractionError:
        raise
    except Exception as exc:
        # pypdf surfaces malformed input through many exception types.
        raise ExtractionError(
            f"Could not read PDF: {str(exc) or type(exc).__name__}"
        ) from exc

    logger.debug(
        "Extracted PDF text",
        extra={"page_count": len(pages), "char_count": sum(map(len, pages))},
    )
    return PAGE_SEPARATOR.join(pages)


def extract_pdf_file(path: Path) -> str:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ExtractionError(f"Could not open {path}: {exc}") from exc
    return extract_text(data)


def _unlock(reader: Any) -> None:
    if not reader.is_encrypted:
        return
    # Many "protected" PDFs only carry an owner password.
    if not reader.decrypt(""):
        raise ExtractionError("The PDF is password protected.")


def _page_text(page: Any) -> str:
    fragments: list[str] = []

    def _collect(text: str, *_args: Any) -> None:
        cleaned = text.strip()
        if cleaned:
            fragments.append(cleaned)

    page.extract_text(visitor_text=_collect)
    return " ".join(fragments)
