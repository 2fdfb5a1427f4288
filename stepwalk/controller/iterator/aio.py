"""
asyncio adapter for the iteration controller.

iterate_async() awaits the final items instead of taking a done callback,
and accepts coroutine step functions: a step that returns an awaitable has
it scheduled as a task on the running loop.
"""

import asyncio
import inspect
from typing import Any, Callable, Optional

from stepwalk.core.config import IteratorSettings
from stepwalk.core.errors import ErrorKind, IteratorError, classify_error
from stepwalk.core.logger import setup_logger
from .executor import IterationController
from .state import RunStatus
from .utils import validate_step

logger = setup_logger(__name__, include_location=True)


async def _cancel_pending(pending) -> None:
    """Cancel step tasks still running once the run has settled."""
    leftover = [task for task in pending if not task.done()]
    for task in leftover:
        task.cancel()
    if leftover:
        logger.debug(f"ITERATOR.AIO: cancelled {len(leftover)} step task(s) left after the run settled")
        await asyncio.gather(*leftover, return_exceptions=True)


async def iterate_async(
    items: Any,
    step: Any,
    *,
    controller: Optional[IterationController] = None,
    settings: Optional[IteratorSettings] = None,
    log_event_callback: Optional[Callable] = None,
) -> Any:
    """
    Walk items like iterate() and return the final items.

    Continuations may be called from the loop or from other threads.
    A run superseded by another iterate() on the same controller fails
    with IteratorError; an exception raised by a coroutine step is
    re-raised here.
    """
    step = validate_step(step)
    loop = asyncio.get_running_loop()
    result: asyncio.Future = loop.create_future()
    pending = set()

    if controller is None:
        controller = IterationController(settings=settings)

    def settle(final_items):
        if not result.done():
            result.set_result(final_items)

    def fail(error: BaseException):
        if not result.done():
            result.set_exception(error)

    def done(final_items):
        loop.call_soon_threadsafe(settle, final_items)

    def on_event(event_type, run_id, data):
        if event_type == "iterator_superseded":
            loop.call_soon_threadsafe(fail, IteratorError(f"run {run_id} was superseded at index {data['index']}"))
        callback = log_event_callback or controller.log_event_callback
        if callback is not None:
            callback(event_type, run_id, data)

    def on_step_done(task):
        pending.discard(task)
        if task.cancelled():
            if not result.done():
                result.cancel()
            return
        error = task.exception()
        if error is not None:
            info = classify_error(error, kind=ErrorKind.STEP_FAILURE)
            logger.error(f"ITERATOR: async step failed: {error}", extra={"error": info.to_dict()})
            fail(error)

    def schedule(awaitable):
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            task = asyncio.ensure_future(awaitable)
            pending.add(task)
            task.add_done_callback(on_step_done)
        else:
            # continuation was called from another thread
            loop.call_soon_threadsafe(schedule, awaitable)

    def dispatch(index, value, next_):
        outcome = step(index, value, next_)
        if inspect.isawaitable(outcome):
            schedule(outcome)

    run = controller.iterate(items, dispatch, done, log_event_callback=on_event)
    if run.status is RunStatus.COMPLETED and run.done_calls == 0:
        settle(run.items)

    try:
        return await result
    finally:
        await _cancel_pending(pending)
