"""PDF text extraction pipeline.

Turns an uploaded PDF into clean plain text suitable as adaptation input:

    pipeline = ExtractionPipeline()
    text = await pipeline.extract(pdf_bytes)

Pages are decoded one at a time on a single dedicated worker thread: the event
loop is never blocked and MuPDF, which is not thread-safe, is never entered
concurrently. Failures are reported as one of the typed ExtractionError
subclasses and never carry partial text.
"""

import asyncio
import base64
import binascii
import re
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, AsyncIterator, Callable, Iterable, Optional

import structlog

from ellift.models.pdf_extraction import ExtractionJob, ExtractionStatus
from ellift.observability.metrics import PDF_EXTRACTIONS, PDF_PAGES_PROCESSED
from ellift.services.pdf_extractors.base import DocumentLoader
from ellift.services.pdf_extractors.pymupdf_extractor import PyMuPDFLoader
from ellift.utils.exceptions import (
    ExtractionError,
    ExtractionFailedError,
    InputValidationError,
    NoExtractableTextError,
)

logger = structlog.get_logger()

PAGE_SEPARATOR = "\n\n--- PAGE BREAK ---\n\n"

_WHITESPACE_RUN = re.compile(r"\s+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_DATA_URL_PREFIX = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)

# Shared by every pipeline so all document decoding is serialized
_DECODE_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-decode")


def clean_page_text(tokens: Iterable[str]) -> str:
    """Join page tokens with single spaces and collapse whitespace runs."""
    return _WHITESPACE_RUN.sub(" ", " ".join(tokens)).strip()


def finalize_text(text: str) -> str:
    """Collapse three or more consecutive newlines to two and trim."""
    return _EXCESS_NEWLINES.sub("\n\n", text).strip()


def decode_base64_document(data: Optional[str]) -> bytes:
    """Decode a base64 (optionally data-URL prefixed) document payload.

    Raises:
        InputValidationError: payload is missing or not valid base64
    """
    if not data or not data.strip():
        raise InputValidationError("Missing base64Data")

    # MIME-wrapped payloads carry line breaks every 76 characters
    payload = _WHITESPACE_RUN.sub("", _DATA_URL_PREFIX.sub("", data.strip()))
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputValidationError(
            "base64Data is not valid base64",
            errors=[{"field": "base64Data", "message": str(e)}],
        ) from e


class ExtractionPipeline:
    """Extracts plain text from PDF bytes page by page."""

    def __init__(
        self,
        loader: Optional[DocumentLoader] = None,
        executor: Optional[Executor] = None,
    ):
        self.loader = loader or PyMuPDFLoader()
        self.executor = executor or _DECODE_EXECUTOR

    async def iter_pages(self, job: ExtractionJob) -> AsyncIterator[str]:
        """Yield the cleaned text of each page in order.

        Empty pages yield "". The job is updated as pages are decoded and is
        marked failed (with its accumulated text discarded) if any step
        raises. Not restartable.
        """
        job.status = ExtractionStatus.EXTRACTING
        job.backend = self.loader.name

        document = await self._decode(job, self.loader.open, job.source_bytes)
        try:
            job.page_count = await self._decode(job, lambda: document.page_count)
            logger.info("pdf_extraction_started", page_count=job.page_count)

            for index in range(job.page_count):
                tokens = await self._decode(job, document.page_tokens, index)
                job.pages_processed += 1
                yield clean_page_text(tokens)
        finally:
            await asyncio.get_running_loop().run_in_executor(self.executor, document.close)

    async def _decode(self, job: ExtractionJob, func: Callable[..., Any], *args: Any) -> Any:
        """Run one decoding step on the executor, failing the job if it raises."""
        try:
            return await asyncio.get_running_loop().run_in_executor(
                self.executor, func, *args
            )
        except ExtractionError as e:
            self._fail(job, e)
            raise
        except Exception as e:
            raise self._fail(job, e) from e

    async def extract(self, data: bytes) -> str:
        """
        Extract the full text of a PDF.

        Args:
            data: Raw PDF bytes

        Returns:
            Non-empty text with pages separated by PAGE_SEPARATOR

        Raises:
            ExtractionError: One of the typed failure kinds
        """
        job = ExtractionJob(source_bytes=data)
        pages = []

        async for page_text in self.iter_pages(job):
            if page_text:
                pages.append(page_text)
                job.accumulated_text = PAGE_SEPARATOR.join(pages)

        text = finalize_text(job.accumulated_text)
        if not text:
            raise self._fail(
                job,
                NoExtractableTextError(
                    "No text found in PDF. This might be an image-based PDF."
                ),
            )

        job.accumulated_text = text
        job.status = ExtractionStatus.DONE
        PDF_EXTRACTIONS.labels(status=ExtractionStatus.DONE.value).inc()
        PDF_PAGES_PROCESSED.observe(job.pages_processed)
        logger.info(
            "pdf_extraction_completed",
            page_count=job.page_count,
            text_length=len(text),
        )
        return text

    def _fail(self, job: ExtractionJob, error: BaseException) -> ExtractionError:
        if isinstance(error, ExtractionError):
            failure = error
        else:
            failure = ExtractionFailedError(
                f"PDF processing failed: {error}", cause=error
            )

        job.status = ExtractionStatus.FAILED
        job.failure_kind = failure.kind
        job.error = str(failure)
        job.accumulated_text = ""

        PDF_EXTRACTIONS.labels(status=failure.kind.value).inc()
        logger.error(
            "pdf_extraction_failed",
            kind=failure.kind.value,
            error=str(failure),
            pages_processed=job.pages_processed,
        )
        return failure
