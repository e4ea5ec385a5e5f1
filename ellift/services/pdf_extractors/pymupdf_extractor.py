"""PyMuPDF (fitz) document loader.

Opens PDFs straight from memory and decodes each page into its words in
reading order.
"""

from typing import Any, List

import structlog

from ellift.models.pdf_extraction import PDFBackend
from ellift.services.pdf_extractors.base import DocumentLoader, LoadedDocument
from ellift.utils.exceptions import (
    InvalidDocumentError,
    LibraryUnavailableError,
    PasswordProtectedError,
)

logger = structlog.get_logger()


class PyMuPDFDocument(LoadedDocument):
    """A fitz.Document wrapper."""

    def __init__(self, doc: Any):
        self._doc = doc

    @property
    def page_count(self) -> int:
        return len(self._doc)

    def page_tokens(self, index: int) -> List[str]:
        # word tuple format: (x0, y0, x1, y1, word, block_no, line_no, word_no)
        words = self._doc[index].get_text("words")
        return [w[4] for w in words]

    def close(self) -> None:
        self._doc.close()


class PyMuPDFLoader(DocumentLoader):
    """PDF loader using PyMuPDF (fitz) library."""

    @property
    def name(self) -> PDFBackend:
        """Return the backend identifier."""
        return PDFBackend.PYMUPDF

    def validate_setup(self) -> bool:
        """Check if PyMuPDF is installed."""
        try:
            import fitz  # noqa: F401

            return True
        except ImportError:
            logger.warning("pymupdf_not_installed")
            return False

    def open(self, data: bytes) -> PyMuPDFDocument:
        try:
            import fitz
        except ImportError as e:
            logger.error("pymupdf_import_failed", error=str(e))
            raise LibraryUnavailableError(
                "PDF processing library failed to load"
            ) from e

        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except fitz.FileDataError as e:
            logger.warning("pdf_open_failed", error=str(e), size_bytes=len(data))
            raise InvalidDocumentError(
                "This file is not a valid PDF. Please check the file and try again."
            ) from e

        if doc.needs_pass:
            doc.close()
            raise PasswordProtectedError(
                "This PDF is password protected. "
                "Please unlock it first or copy the text manually."
            )

        return PyMuPDFDocument(doc)
