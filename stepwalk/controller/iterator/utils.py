"""
Iterator utility functions.

Provides the absent-value sentinel and the argument checks run by
iterate() before any state is touched.
"""

from collections.abc import MutableSequence
from typing import Any, Callable, Optional

from stepwalk.core.errors import InvalidArgument


class _Missing:
    """Marker for "no replacement value"; distinct from None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Missing, ())


MISSING: Any = _Missing()


def is_present(value: Any) -> bool:
    return value is not MISSING


def noop(*args: Any, **kwargs: Any) -> None:
    pass


def validate_items(items: Any) -> MutableSequence:
    """
    Accept ordered, mutable sequences only.

    Tuples and strings are ordered but immutable; mappings, sets and
    generators have no stable index to write back to.
    """
    if not isinstance(items, MutableSequence):
        raise InvalidArgument("items", "items must be a sequence", items)
    return items


def validate_step(step: Any) -> Callable:
    if not callable(step):
        raise InvalidArgument("step", "step must be callable", step)
    return step


def validate_done(done: Optional[Any]) -> Callable:
    """None means the caller did not pass done; a no-op is used instead."""
    if done is None:
        return noop
    if not callable(done):
        raise InvalidArgument("done", "done must be callable", done)
    return done
