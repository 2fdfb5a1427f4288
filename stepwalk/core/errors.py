"""
Error classification for the iteration controller.

Validation failures are raised as InvalidArgument before a run starts.
Failures inside user callbacks are not caught by the controller; where a
failure has to be reported out of band (run events, the asyncio adapter)
it is described by an ErrorInfo built with classify_error().
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Error categories reported in run events."""

    INVALID_ARGUMENT = "invalid_argument"   # Bad iterate() arguments
    STEP_FAILURE = "step_failure"           # Exception raised by a step function
    CALLBACK_FAILURE = "callback_failure"   # Exception raised by done or an event callback

    UNKNOWN = "unknown"


class ErrorInfo(BaseModel):
    """Standardized error object for run events and logs."""

    kind: ErrorKind = Field(
        default=ErrorKind.UNKNOWN,
        description="Error category"
    )
    code: str = Field(
        default="UNKNOWN",
        description="Short error code (INVALID_ITEMS, PY_ValueError, etc.)"
    )
    message: str = Field(
        default="Unknown error",
        description="Human-readable error message"
    )
    argument: Optional[str] = Field(
        None, description="Name of the rejected iterate() argument"
    )
    received_type: Optional[str] = Field(
        None, description="Type name of the rejected value"
    )
    exception_type: Optional[str] = Field(
        None, description="Python exception class name"
    )
    index: Optional[int] = Field(
        None, description="Index in flight when the error happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Optional extra context"
    )

    def to_dict(self) -> dict[str, Any]:
        d = {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
        }
        if self.argument is not None:
            d["argument"] = self.argument
        if self.received_type is not None:
            d["received_type"] = self.received_type
        if self.exception_type is not None:
            d["exception_type"] = self.exception_type
        if self.index is not None:
            d["index"] = self.index
        if self.details:
            d["details"] = self.details
        return d


class IteratorError(Exception):
    """Base class for errors raised by the iteration controller."""

    def __init__(self, message: str, info: Optional[ErrorInfo] = None):
        super().__init__(message)
        self.info = info or ErrorInfo(message=message)


class InvalidArgument(IteratorError, TypeError):
    """Raised by iterate() when items, step or done has the wrong type."""

    def __init__(self, argument: str, message: str, value: Any = None):
        received = type(value).__name__
        info = ErrorInfo(
            kind=ErrorKind.INVALID_ARGUMENT,
            code=f"INVALID_{argument.upper()}",
            message=message,
            argument=argument,
            received_type=received,
        )
        super().__init__(f'{message}. Got "{received}"', info)
        self.argument = argument


def classify_error(
    error: BaseException,
    kind: ErrorKind = ErrorKind.STEP_FAILURE,
    index: Optional[int] = None,
) -> ErrorInfo:
    """
    Describe an exception as an ErrorInfo.

    IteratorError instances carry their own info; anything else is
    reported under the given kind with a PY_<ExceptionName> code.
    """
    if isinstance(error, IteratorError):
        if index is not None and error.info.index is None:
            return error.info.model_copy(update={"index": index})
        return error.info

    error_type = type(error).__name__
    return ErrorInfo(
        kind=kind,
        code=f"PY_{error_type}",
        message=str(error) or error_type,
        exception_type=error_type,
        index=index,
    )


__all__ = [
    "ErrorKind",
    "ErrorInfo",
    "IteratorError",
    "InvalidArgument",
    "classify_error",
]
