"""Library-specific exceptions."""

from __future__ import annotations


class ChainreqError(Exception):
    """Base exception for all chainreq failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.cause is None:
            return str(self.args[0])
        return f"{self.args[0]}: {self.cause}"


class InvalidRequestError(ChainreqError):
    """Raised when the method or URL of a request is malformed."""


class OptionError(ChainreqError):
    """Raised when a request option cannot be applied."""


class MultipartStreamError(ChainreqError):
    """Raised on the consumer side when the multipart producer failed."""


class TransportError(ChainreqError):
    """Raised for transport-level failures like DNS, TCP, TLS and I/O errors."""


class TransportTimeoutError(TransportError):
    """Raised when a request exceeds the configured timeout."""


class RequestCancelledError(TransportError):
    """Raised when the request context was cancelled or its deadline passed."""


class StatusMismatchError(ChainreqError):
    """Raised when the response status does not match the expected one."""

    def __init__(self, expected: int | str, actual: int) -> None:
        super().__init__(f"bad status: expected {expected}, got {actual}", status_code=actual)
        self.expected = expected
        self.actual = actual


class BodyReadError(ChainreqError):
    """Raised when the response body cannot be read, decoded or saved."""


class CookieNotFoundError(ChainreqError):
    """Raised when a cookie lookup finds nothing."""
