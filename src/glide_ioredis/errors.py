"""
Package exceptions and error classification

Backend errors (``glide.RequestError``, ``glide.TimeoutError``...) propagate
unchanged; this module only adds the errors the compatibility layer raises by
itself, and the classifier that decides which backend failures are
connection-level (and therefore also emitted as ``error`` events).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class GlideIoredisError(Exception):
    """Base class for errors raised by the compatibility layer"""


class ReplyError(GlideIoredisError):
    """
    Error synthesized from a non-exception error value.

    ``original`` holds the raw value (mapping, object, string) it came from.
    """

    def __init__(self, message: str = "", original: Any = None):
        super().__init__(message)
        self.message = message
        self.original = original


class ConnectionClosedError(GlideIoredisError):
    """Command issued on a client that has been closed"""

    def __init__(self, message: str = "Connection is closed."):
        super().__init__(message)
        self.message = message


class ErrorType(Enum):
    CONNECTION = "connection"
    CLOSING = "closing"
    TIMEOUT = "timeout"
    COMMAND = "command"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorClassification:
    error_type: ErrorType
    message: str

    @property
    def is_connection_level(self) -> bool:
        return self.error_type in _CONNECTION_LEVEL

    @property
    def is_retryable(self) -> bool:
        return self.error_type in (ErrorType.CONNECTION, ErrorType.TIMEOUT, ErrorType.NETWORK)

    @property
    def should_suppress(self) -> bool:
        """Expected during shutdown; logged at debug level only"""
        return self.error_type is ErrorType.CLOSING


_CONNECTION_LEVEL = frozenset({
    ErrorType.CONNECTION,
    ErrorType.CLOSING,
    ErrorType.AUTHENTICATION,
    ErrorType.NETWORK,
})

_AUTH_MARKERS = ('NOAUTH', 'WRONGPASS', 'AUTHENTICATION', 'INVALID PASSWORD')
_NETWORK_MARKERS = ('ECONNREFUSED', 'ECONNRESET', 'BROKEN PIPE', 'CONNECTION REFUSED',
                    'CONNECTION RESET', 'NETWORK')


class ErrorClassifier:
    """
    Classify exceptions by type name and message.

    Names are matched rather than classes so that the classifier works for
    both ``glide`` exceptions and the builtin ones GLIDE raises from its
    transport (``ConnectionError``, ``TimeoutError``, ``OSError``).
    """

    def classify(self, error: BaseException) -> ErrorClassification:
        name = type(error).__name__
        message = str(error)
        upper = message.upper()

        if isinstance(error, ConnectionClosedError) or name == 'ClosingError':
            error_type = ErrorType.CLOSING
        elif any(marker in upper for marker in _AUTH_MARKERS):
            error_type = ErrorType.AUTHENTICATION
        elif name == 'TimeoutError' or isinstance(error, TimeoutError):
            error_type = ErrorType.TIMEOUT
        elif name == 'ConnectionError' or isinstance(error, ConnectionError):
            error_type = ErrorType.CONNECTION
        elif isinstance(error, OSError) or any(marker in upper for marker in _NETWORK_MARKERS):
            error_type = ErrorType.NETWORK
        elif name in ('RequestError', 'ExecAbortError') or isinstance(error, ReplyError):
            error_type = ErrorType.COMMAND
        else:
            error_type = ErrorType.UNKNOWN

        return ErrorClassification(error_type=error_type, message=message)


_default_classifier: Optional[ErrorClassifier] = None


def get_classifier() -> ErrorClassifier:
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = ErrorClassifier()
    return _default_classifier
