"""Abstract base classes for PDF decoding backends.

A DocumentLoader opens raw PDF bytes and returns a LoadedDocument whose pages
can be decoded one at a time into raw text tokens. Loaders are synchronous;
the extraction pipeline runs them in an executor.

Loaders raise the typed extraction errors they can detect themselves
(PasswordProtectedError, InvalidDocumentError, LibraryUnavailableError).
Anything else propagates and is wrapped by the pipeline.
"""

from abc import ABC, abstractmethod
from typing import List

from ellift.models.pdf_extraction import PDFBackend


class LoadedDocument(ABC):
    """An opened PDF. Must be closed when no longer needed."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        raise NotImplementedError("Subclasses must implement page_count")

    @abstractmethod
    def page_tokens(self, index: int) -> List[str]:
        """
        Decode one page into raw text tokens.

        Args:
            index: Zero-based page index

        Returns:
            Text tokens in reading order (may be empty)
        """
        raise NotImplementedError("Subclasses must implement page_tokens()")

    def close(self) -> None:
        """Release resources held by the document."""


class DocumentLoader(ABC):
    """
    Abstract base class for PDF decoding backends.

    All concrete loaders must implement:
    - open(): Parse PDF bytes into a LoadedDocument
    - validate_setup(): Check if backend is available
    - name property: Return backend identifier
    """

    @abstractmethod
    def open(self, data: bytes) -> LoadedDocument:
        """
        Parse a PDF from memory.

        Raises:
            LibraryUnavailableError: decoding engine cannot be loaded
            InvalidDocumentError: bytes are not a parseable PDF
            PasswordProtectedError: document requires a password
        """
        raise NotImplementedError("Subclasses must implement open()")

    @abstractmethod
    def validate_setup(self) -> bool:
        """
        Check if this backend is properly configured and available.

        Returns:
            True if backend can be used, False otherwise
        """
        raise NotImplementedError("Subclasses must implement validate_setup()")

    @property
    @abstractmethod
    def name(self) -> PDFBackend:
        """Return the backend identifier."""
        raise NotImplementedError("Subclasses must implement name property")
