"""Error taxonomy surfaced by the reconciliation core."""

from __future__ import annotations


class QuoteStoreError(RuntimeError):
    """Base class for failures talking to the remote quotation store."""


class NetworkError(QuoteStoreError):
    """Raised when the request never produced a response (connectivity, timeouts)."""


class HttpError(QuoteStoreError):
    """Raised when the remote store answers with a non-success status code."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(QuoteStoreError):
    """Raised when the response body is HTML or otherwise not parseable."""


class ValidationError(ValueError):
    """Raised when a backup document is malformed."""
