"""Exception taxonomy for the adaptation service.

Every failure leaving the service is translated into one of these kinds at
the request boundary:
- InputValidationError: malformed or missing fields (user-correctable)
- ConfigurationError: missing backend credential (not user-correctable)
- UpstreamBackendError: non-2xx or unusable response from a provider
- ExtractionError: one of the five document-extraction failure kinds
- RateLimitedError: admission denied, carries the reset time

All exceptions inherit from AdapterError and carry the HTTP status the API
layer responds with.
"""

from typing import Any, Dict, List, Optional

from ellift.models.pdf_extraction import ExtractionFailureKind

MANUAL_TRANSCRIPTION_HINT = "copy the text manually into the text area"


class AdapterError(Exception):
    """Base exception for all service errors

    Use this to catch any translated error at the boundary:
    ```python
    try:
        outcome = await controller.adapt(request, policy, identity)
    except AdapterError as e:
        logger.error("adaptation_failed", error=str(e))
    ```
    """

    status_code: int = 500

    def to_response(self) -> Dict[str, Any]:
        return {"error": str(self)}


class InputValidationError(AdapterError):
    """Request is malformed or missing required fields

    Raised when:
    - messages is missing or not a list of role-tagged messages
    - prompt is empty, not a string, or too long
    - base64Data is missing or not valid base64
    """

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        if self.errors:
            body["details"] = self.errors
        return body


class ConfigurationError(AdapterError):
    """A selected backend has no usable credential

    Reported immediately; never falls through to another backend.
    """

    status_code = 500

    def __init__(self, message: str, backend: Optional[str] = None):
        super().__init__(message)
        self.backend = backend


class UpstreamBackendError(AdapterError):
    """A model or image provider returned a non-success response

    The original status code and raw body are preserved for diagnostics.
    Transport failures (connection errors, timeouts) and 2xx payloads that
    cannot be normalized use status 502.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        body: str = "",
        backend: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.backend = backend

    def to_response(self) -> Dict[str, Any]:
        return {"error": str(self), "details": self.body}


class RateLimitedError(AdapterError):
    """Admission denied by the sliding-window rate limiter

    Attributes:
        reset_time: Epoch milliseconds at which a new request will be admitted
        now: Epoch milliseconds at which the request was rejected
    """

    status_code = 429

    def __init__(self, message: str, reset_time: int, now: Optional[int] = None):
        super().__init__(message)
        self.reset_time = reset_time
        self.now = now

    @property
    def retry_after_seconds(self) -> int:
        if self.now is None:
            return 0
        return max(0, -(-(self.reset_time - self.now) // 1000))

    def to_response(self) -> Dict[str, Any]:
        return {"error": str(self), "resetTime": self.reset_time, "remaining": 0}


# Extraction failures


class ExtractionError(AdapterError):
    """Document text extraction failed

    Each subclass is a terminal failure kind with its own user-facing remedy.
    No partial text is ever returned alongside an ExtractionError.
    """

    status_code = 500
    kind: ExtractionFailureKind = ExtractionFailureKind.EXTRACTION_FAILED
    remedy: str = (
        "Please try a different PDF, or " + MANUAL_TRANSCRIPTION_HINT + "."
    )

    def to_response(self) -> Dict[str, Any]:
        return {"error": str(self), "kind": self.kind.value, "remedy": self.remedy}


class PasswordProtectedError(ExtractionError):
    """PDF requires a password to open"""

    kind = ExtractionFailureKind.PASSWORD_PROTECTED
    remedy = "Unlock the PDF first, or " + MANUAL_TRANSCRIPTION_HINT + "."


class InvalidDocumentError(ExtractionError):
    """Source is not a parseable PDF (malformed, truncated or another format)"""

    kind = ExtractionFailureKind.INVALID_DOCUMENT
    remedy = (
        "Check that the file is a valid PDF and try again, or "
        + MANUAL_TRANSCRIPTION_HINT
        + "."
    )


class NoExtractableTextError(ExtractionError):
    """Every page decoded to empty text (typically a scanned, image-only PDF)"""

    kind = ExtractionFailureKind.NO_EXTRACTABLE_TEXT
    remedy = (
        "This might be an image-based PDF. Run it through OCR software first, or "
        + MANUAL_TRANSCRIPTION_HINT
        + "."
    )


class LibraryUnavailableError(ExtractionError):
    """The PDF decoding engine could not be loaded"""

    kind = ExtractionFailureKind.LIBRARY_UNAVAILABLE
    remedy = (
        "PDF upload is temporarily unavailable. Please "
        + MANUAL_TRANSCRIPTION_HINT
        + "."
    )


class ExtractionFailedError(ExtractionError):
    """Any other fault during extraction, carrying the original message"""

    kind = ExtractionFailureKind.EXTRACTION_FAILED

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
