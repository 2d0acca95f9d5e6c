"""
futurekit Core

Single-assignment futures, combinators, and the executor/scheduler they run on.
"""

from .future import Future
from .executor import Executor, WorkerPool, adapt
from .scheduler import Scheduler, ScheduledHandle, ThreadScheduler
from .combinators import (
    all_as_list,
    successful_as_list,
    exceptionally_completed_future,
    is_completed,
    check_completed,
    get_completed,
    get_exception,
    handle_compose,
    exceptionally_compose,
    dereference,
    combine,
    poll,
)

__all__ = [
    'Future',
    'Executor',
    'WorkerPool',
    'adapt',
    'Scheduler',
    'ScheduledHandle',
    'ThreadScheduler',
    'all_as_list',
    'successful_as_list',
    'exceptionally_completed_future',
    'is_completed',
    'check_completed',
    'get_completed',
    'get_exception',
    'handle_compose',
    'exceptionally_compose',
    'dereference',
    'combine',
    'poll',
]
