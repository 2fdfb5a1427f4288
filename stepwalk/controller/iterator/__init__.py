"""
Sequential iteration controller package.

Walks a mutable sequence one item at a time, handing each step a
continuation that advances (optionally replacing the element) or aborts
the run, and reports the final items to a completion callback.

Package Structure:
    - utils.py: Absent-value sentinel and argument validation
    - continuation.py: Per-step advance/abort handle
    - state.py: Per-run state and dispatch pump
    - executor.py: Controller and module-level iterate()
    - aio.py: asyncio adapter
"""

from stepwalk.controller.iterator.aio import iterate_async
from stepwalk.controller.iterator.continuation import Continuation
from stepwalk.controller.iterator.executor import (
    IterationController,
    get_default_controller,
    iterate,
)
from stepwalk.controller.iterator.state import IterationRun, RunStatus
from stepwalk.controller.iterator.utils import MISSING

__all__ = [
    'iterate',
    'iterate_async',
    'get_default_controller',
    'IterationController',
    'IterationRun',
    'RunStatus',
    'Continuation',
    'MISSING',
]
