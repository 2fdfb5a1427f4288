"""
Iteration controller.

Entry point for walking a sequence one item at a time: validates the
arguments, retires the controller's previous run and starts a new one.
"""

import threading
from typing import Any, Callable, Optional

from stepwalk.core.config import IteratorSettings, get_settings
from stepwalk.core.logger import setup_logger
from .state import IterationRun
from .utils import validate_done, validate_items, validate_step

logger = setup_logger(__name__, include_location=True)


class IterationController:
    """
    Runs at most one live iteration at a time.

    Each iterate() call builds a new IterationRun; the previous run, if any,
    is superseded so that handles it issued become no-ops.

    Args:
        settings: Controller settings; read from the environment when omitted
        log_event_callback: Called as (event_type, run_id, data) for run
            lifecycle events
    """

    def __init__(
        self,
        settings: Optional[IteratorSettings] = None,
        log_event_callback: Optional[Callable] = None,
    ):
        self._settings = settings
        self.log_event_callback = log_event_callback
        self.run: Optional[IterationRun] = None
        self._lock = threading.Lock()

    @property
    def settings(self) -> IteratorSettings:
        return self._settings if self._settings is not None else get_settings()

    def iterate(
        self,
        items: Any,
        step: Any,
        done: Any = None,
        *,
        log_event_callback: Optional[Callable] = None,
    ) -> IterationRun:
        """
        Walk items, calling step(index, value, next) for one index at a time.

        The walk moves on only when the step calls next() (optionally with a
        replacement value) and stops early on next.abort(). done(items) is
        called once the last item is advanced past or the run is aborted.

        Args:
            items: Mutable sequence to walk; elements are replaced in place
            step: Callable taking (index, value, next)
            done: Optional callable taking the final items

        Returns:
            The new IterationRun

        Raises:
            InvalidArgument: If items is not a mutable sequence, or step or
                done is not callable
        """
        items = validate_items(items)
        step = validate_step(step)
        done = validate_done(done)

        run = IterationRun(
            items,
            step,
            done,
            settings=self.settings,
            log_event_callback=log_event_callback or self.log_event_callback,
        )
        with self._lock:
            previous, self.run = self.run, run
        logger.debug(
            f"ITERATOR.EXECUTOR: created run {run.run_id} for {len(items)} items "
            f"(previous={previous.run_id if previous is not None else None})"
        )
        if previous is not None:
            previous.supersede()

        run.start()
        return run


_default_controller: Optional[IterationController] = None
_default_lock = threading.Lock()


def get_default_controller() -> IterationController:
    """Process-wide controller used by the module-level iterate()."""
    global _default_controller
    with _default_lock:
        if _default_controller is None:
            _default_controller = IterationController()
        return _default_controller


def iterate(
    items: Any,
    step: Any,
    done: Any = None,
    *,
    log_event_callback: Optional[Callable] = None,
) -> IterationRun:
    return get_default_controller().iterate(items, step, done, log_event_callback=log_event_callback)
