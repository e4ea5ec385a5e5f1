"""PDF Extraction Data Models.

This module defines the data structures for tracking a document extraction
job through its lifecycle, together with the typed failure kinds.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class PDFBackend(str, Enum):
    """PDF decoding backend identifier."""

    PYMUPDF = "pymupdf"


class ExtractionStatus(str, Enum):
    """Lifecycle state of an extraction job."""

    PENDING = "pending"
    EXTRACTING = "extracting"
    DONE = "done"
    FAILED = "failed"


class ExtractionFailureKind(str, Enum):
    """Terminal failure kinds, assigned where the failure is detected."""

    PASSWORD_PROTECTED = "PasswordProtected"
    INVALID_DOCUMENT = "InvalidDocument"
    NO_EXTRACTABLE_TEXT = "NoExtractableText"
    LIBRARY_UNAVAILABLE = "LibraryUnavailable"
    EXTRACTION_FAILED = "ExtractionFailed"


class ExtractionJob(BaseModel):
    """One document submitted for extraction.

    Mutated page by page by the extraction pipeline; terminal on DONE or
    FAILED. Accumulated text is discarded on failure.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source_bytes: bytes = Field(repr=False)
    backend: PDFBackend = PDFBackend.PYMUPDF
    page_count: int = Field(default=0, ge=0)
    pages_processed: int = Field(default=0, ge=0)
    accumulated_text: str = ""
    status: ExtractionStatus = ExtractionStatus.PENDING
    failure_kind: Optional[ExtractionFailureKind] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ExtractionStatus.DONE, ExtractionStatus.FAILED)
