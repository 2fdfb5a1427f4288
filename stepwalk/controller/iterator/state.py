"""
Per-run iteration state.

An IterationRun is created fresh by every iterate() call and is the only
thing its continuations close over, so handles from one run can never
touch another run's items. The run owns the dispatch pump: a step that
advances synchronously only queues the next dispatch, and the pump loop
calls the following step once the current one returns.
"""

import threading
import uuid
from enum import Enum
from typing import Any, Callable, Dict, MutableSequence, Optional

from stepwalk.core.config import IteratorSettings
from stepwalk.core.errors import ErrorKind, classify_error
from stepwalk.core.logger import setup_logger
from stepwalk.core.logging_context import LoggingContext
from .continuation import Continuation
from .utils import MISSING, is_present

logger = setup_logger(__name__, include_location=True)


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    SUPERSEDED = "superseded"


class IterationRun:
    """Tracks a single walk over one sequence."""

    def __init__(
        self,
        items: MutableSequence,
        step: Callable,
        done: Callable,
        settings: IteratorSettings,
        log_event_callback: Optional[Callable] = None,
    ):
        self.run_id = str(uuid.uuid4())
        self.items = items
        self.step = step
        self.done = done
        self.settings = settings
        self.log_event_callback = log_event_callback

        self.status = RunStatus.RUNNING
        self.index = 0
        self.done_calls = 0
        # Set once a newer run has started on the same controller
        self.superseded = False

        self._lock = threading.RLock()
        self._pending = False
        self._dispatching = False

    @property
    def aborted(self) -> bool:
        return self.status is RunStatus.ABORTED

    @property
    def finished(self) -> bool:
        return self.status is not RunStatus.RUNNING

    @property
    def total(self) -> int:
        return len(self.items)

    def start(self) -> None:
        """Dispatch the first step, or settle an empty run immediately."""
        with LoggingContext(logger, run_id=self.run_id):
            if not self.items:
                self.status = RunStatus.COMPLETED
                logger.info("ITERATOR: empty sequence, nothing to iterate")
                self._emit("iterator_completed")
                if self.settings.done_on_empty:
                    self._finish()
                return

            logger.info(f"ITERATOR: starting run over {len(self.items)} items")
            self._emit("iterator_started")
            with self._lock:
                self._pending = True
                self._dispatching = True
        self._pump()

    def advance(self, index: int, value: Any = MISSING) -> bool:
        """
        Store value at index and move on to the next index.

        Honored only for the current index of a running run; any other call
        is a stale or duplicate handle and changes nothing.
        """
        with self._lock:
            if self.superseded or self.status is not RunStatus.RUNNING or index != self.index:
                logger.warning(
                    f"ITERATOR: ignoring advance for index {index} "
                    f"(status={self.status.value}, current={self.index}, superseded={self.superseded})",
                    extra={"run_id": self.run_id},
                )
                return False

            if is_present(value):
                self.items[index] = value
            self.index = index + 1

            completed = self.index >= len(self.items)
            start_pump = False
            if completed:
                self.status = RunStatus.COMPLETED
            else:
                self._pending = True
                start_pump = not self._dispatching
                if start_pump:
                    self._dispatching = True

        logger.debug(f"ITERATOR: advanced past index {index}", extra={"run_id": self.run_id})

        if completed:
            logger.success(
                f"ITERATOR: run completed after {len(self.items)} items",
                extra={"run_id": self.run_id},
            )
            self._emit("iterator_completed")
            self._finish()
        elif start_pump:
            self._pump()
        return True

    def abort(self, index: int, value: Any = MISSING) -> bool:
        """
        Stop the run, store value at index and call done.

        After the run has finished this is a no-op unless abort_after_finish
        is set, in which case the overwrite and the done call happen again.
        """
        with self._lock:
            if self.superseded:
                logger.warning(
                    f"ITERATOR: ignoring abort for index {index} of a superseded run",
                    extra={"run_id": self.run_id},
                )
                return False
            if self.status is not RunStatus.RUNNING and not self.settings.abort_after_finish:
                logger.warning(
                    f"ITERATOR: ignoring abort for index {index} (status={self.status.value})",
                    extra={"run_id": self.run_id},
                )
                return False

            self.status = RunStatus.ABORTED
            self._pending = False
            if is_present(value):
                self.items[index] = value

        logger.info(f"ITERATOR: run aborted at index {index}", extra={"run_id": self.run_id})
        self._emit("iterator_aborted", abort_index=index)
        self._finish()
        return True

    def supersede(self) -> bool:
        """Invalidate every handle of this run. Returns True if it was still running."""
        with self._lock:
            self.superseded = True
            self._pending = False
            if self.status is not RunStatus.RUNNING:
                return False
            self.status = RunStatus.SUPERSEDED

        logger.info(
            f"ITERATOR: run superseded by a newer run at index {self.index}",
            extra={"run_id": self.run_id},
        )
        self._emit("iterator_superseded")
        return True

    def _pump(self) -> None:
        # Only one pump runs per run; _dispatching is held by the caller.
        # A step that advances and then raises has its advance honoured:
        # the walk is drained first and the first error re-raised after.
        first_error: Optional[Exception] = None
        try:
            while True:
                with self._lock:
                    if not self._pending or self.status is not RunStatus.RUNNING:
                        self._dispatching = False
                        break
                    self._pending = False
                    index = self.index
                    value = self.items[index]

                logger.debug(f"ITERATOR: dispatching index {index}", extra={"run_id": self.run_id})
                try:
                    with LoggingContext(logger, run_id=self.run_id, index=index):
                        self.step(index, value, Continuation(self, index))
                except Exception as e:
                    if first_error is None:
                        first_error = e
                    else:
                        info = classify_error(e, kind=ErrorKind.STEP_FAILURE, index=index)
                        logger.error(
                            f"ITERATOR: step failed at index {index} after an earlier failure: {e}",
                            extra={"run_id": self.run_id, "error": info.to_dict()},
                        )
        except BaseException:
            with self._lock:
                self._dispatching = False
            raise

        if first_error is not None:
            raise first_error

    def _finish(self) -> None:
        self.done_calls += 1
        self.done(self.items)

    def _emit(self, event_type: str, **extra: Any) -> None:
        if self.log_event_callback is None:
            return
        data: Dict[str, Any] = {
            "status": self.status.value,
            "index": self.index,
            "total": len(self.items),
        }
        data.update(extra)
        try:
            self.log_event_callback(event_type, self.run_id, data)
        except Exception as e:
            info = classify_error(e, kind=ErrorKind.CALLBACK_FAILURE, index=self.index)
            logger.error(
                f"ITERATOR: event callback failed for {event_type}: {e}",
                exc_info=True,
                extra={"run_id": self.run_id, "error": info.to_dict()},
            )

    def __repr__(self) -> str:
        return (
            f"IterationRun(run_id={self.run_id!r}, status={self.status.value}, "
            f"index={self.index}, total={len(self.items)})"
        )
