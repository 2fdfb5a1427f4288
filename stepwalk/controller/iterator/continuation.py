"""
Continuation handed to each step call.

Calling the continuation advances the run; ``abort`` ends it. Both are
bound to the run and index the step was dispatched for.
"""

from typing import TYPE_CHECKING, Any

from .utils import MISSING

if TYPE_CHECKING:
    from .state import IterationRun


class Continuation:
    __slots__ = ("_run", "index")

    def __init__(self, run: "IterationRun", index: int):
        self._run = run
        self.index = index

    @property
    def run_id(self) -> str:
        return self._run.run_id

    def __call__(self, value: Any = MISSING) -> None:
        """Advance past this index, replacing its element when value is given."""
        self._run.advance(self.index, value)

    advance = __call__

    def abort(self, value: Any = MISSING) -> None:
        """End the run now, replacing this index's element when value is given."""
        self._run.abort(self.index, value)

    def __repr__(self) -> str:
        return f"Continuation(run_id={self._run.run_id!r}, index={self.index})"
