"""Error types and classification.

Callers branch on :class:`ErrorKind` (via :func:`classify`) instead of comparing
exception instances.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schemas import Action


class ErrorCode(str, Enum):
    """Error codes returned by the cloud API in ``{"error": {"code": ...}}``."""

    CONFLICT = "conflict"
    LOCKED = "locked"
    NOT_FOUND = "not_found"
    SERVER_ALREADY_ATTACHED = "server_already_attached"
    INVALID_INPUT = "invalid_input"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SERVICE_ERROR = "service_error"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw: str | None) -> "ErrorCode":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


class ErrorKind(str, Enum):
    """How a failure should be handled by a caller."""

    INVALID_IDENTIFIER = "invalid_identifier"
    RESOURCE_GONE = "resource_gone"
    CONFLICT = "conflict"
    FATAL = "fatal"


class CloudAPIError(Exception):
    """Error response returned by the cloud API."""

    def __init__(self, code: ErrorCode, message: str, status_code: int | None = None):
        super().__init__(f"{message} ({code.value}, {status_code})")
        self.code = code
        self.message = message
        self.status_code = status_code


class CloudTransportError(Exception):
    """The cloud API could not be reached or did not answer in time."""


class ActionFailedError(Exception):
    """An asynchronous action finished with status ``error``."""

    def __init__(self, action: "Action"):
        detail = action.error.message if action.error else "unknown error"
        code = action.error.code if action.error else "unknown"
        super().__init__(f"action {action.id} ({action.command}) failed: {detail} ({code})")
        self.action = action


class InvalidInputError(ValueError):
    """Declared state is not usable; raised before any API call."""


class InvalidIdentifierError(ValueError):
    """External id is malformed or points at a server or network that is gone."""


class ConvergenceError(Exception):
    """A convergence operation failed; wraps the underlying cause."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation}: {cause}")
        self.operation = operation
        self.cause = cause


def is_error(exc: BaseException | None, *codes: ErrorCode) -> bool:
    """Return True if ``exc`` is a cloud API error with one of ``codes``."""
    if isinstance(exc, ConvergenceError):
        exc = exc.cause
    return isinstance(exc, CloudAPIError) and exc.code in codes


def classify(exc: BaseException) -> ErrorKind:
    """Map an exception to the :class:`ErrorKind` callers switch on."""
    if isinstance(exc, InvalidIdentifierError):
        return ErrorKind.INVALID_IDENTIFIER
    if is_error(exc, ErrorCode.NOT_FOUND):
        return ErrorKind.RESOURCE_GONE
    if is_error(exc, ErrorCode.CONFLICT, ErrorCode.LOCKED):
        return ErrorKind.CONFLICT
    return ErrorKind.FATAL
