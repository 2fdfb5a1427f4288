from .controller.iterator import (
    MISSING,
    Continuation,
    IterationController,
    IterationRun,
    RunStatus,
    get_default_controller,
    iterate,
    iterate_async,
)
from .core.config import IteratorSettings, get_settings
from .core.errors import ErrorInfo, ErrorKind, InvalidArgument, IteratorError
from .core.logger import setup_logger

__version__ = "0.1.0"

__all__ = [
    "iterate",
    "iterate_async",
    "get_default_controller",
    "IterationController",
    "IterationRun",
    "RunStatus",
    "Continuation",
    "MISSING",
    "IteratorSettings",
    "get_settings",
    "ErrorInfo",
    "ErrorKind",
    "InvalidArgument",
    "IteratorError",
    "setup_logger",
]
