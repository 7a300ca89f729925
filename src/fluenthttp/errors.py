"""Error types for request dispatch.

Configuration calls never raise. Every failure surfaces from a terminal
dispatch call as one of the exceptions below, with the underlying ``httpx``,
``pydantic`` or ``json`` exception chained as ``__cause__``.
"""

from enum import Enum


class DispatchErrorClass(str, Enum):
    """Classification of dispatch errors for metrics and logging.

    - ENCODING: Request body could not be serialized
    - TRANSPORT: Connection, DNS, TLS or protocol failure
    - TIMEOUT: Dispatch exceeded the configured timeout
    - CANCELLED: Dispatch aborted through the cancellation event
    - DECODING: Response body could not be parsed into the requested shape
    - POOL: Builder bound to a pool entry that no longer exists
    """

    ENCODING = "ENCODING"
    TRANSPORT = "TRANSPORT"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    DECODING = "DECODING"
    POOL = "POOL"


class FluentHttpError(Exception):
    """Base exception for all dispatch errors.

    Provides structured error information for logging.
    """

    error_class: DispatchErrorClass = DispatchErrorClass.TRANSPORT

    def __init__(self, message: str, url: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            url: Target URL of the failed dispatch, if known.
        """
        super().__init__(message)
        self.message = message
        self.url = url

    def to_dict(self) -> dict[str, str | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "url": self.url,
        }


class EncodingError(FluentHttpError):
    """Request body could not be serialized."""

    error_class = DispatchErrorClass.ENCODING


class TransportError(FluentHttpError):
    """Network-level failure reported by the transport."""

    error_class = DispatchErrorClass.TRANSPORT


class RequestTimeoutError(TransportError):
    """Dispatch did not finish within the configured timeout.

    Attributes:
        timeout_seconds: The timeout that was exceeded.
    """

    error_class = DispatchErrorClass.TIMEOUT

    def __init__(
        self,
        message: str,
        url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message, url=url)
        self.timeout_seconds = timeout_seconds


class CancellationError(FluentHttpError):
    """Dispatch was aborted through its cancellation event."""

    error_class = DispatchErrorClass.CANCELLED


class DecodingError(FluentHttpError):
    """Response body could not be parsed into the requested shape.

    Attributes:
        status_code: HTTP status of the response whose body failed to decode.
    """

    error_class = DispatchErrorClass.DECODING

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class PoolEntryNotFoundError(FluentHttpError):
    """Raised when a pool key does not resolve to a live entry."""

    error_class = DispatchErrorClass.POOL

    def __init__(self, key: object) -> None:
        """Initialize the error with the missing key.

        Args:
            key: The pool key that was not found.
        """
        self.key = key
        super().__init__(f"Pool entry not found: {key}")
