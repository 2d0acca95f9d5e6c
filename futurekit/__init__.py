"""
futurekit - Composable Futures

Combinators over single-assignment futures: aggregation, recovery,
composition and periodic polling with cancellation.

Features:
- Thread-safe write-once futures, awaitable from asyncio
- Ordered all/successful aggregation that keeps the original exception
- Asynchronous composition and recovery
- Polling with guaranteed teardown of the schedule
"""

from .config import SchedulerConfig, WorkerPoolConfig
from .exceptions import (
    FutureError,
    FutureStateError,
    FutureNotCompletedError,
    FutureNotFailedError,
    FutureCancelledError,
    SchedulerShutdownError,
    ExecutorShutdownError,
)
from .core import (
    Future,
    Executor,
    WorkerPool,
    adapt,
    Scheduler,
    ScheduledHandle,
    ThreadScheduler,
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

__version__ = "0.1.0"

__all__ = [
    # Futures and combinators
    'Future',
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
    # Execution
    'Executor',
    'WorkerPool',
    'adapt',
    'Scheduler',
    'ScheduledHandle',
    'ThreadScheduler',
    # Configuration
    'SchedulerConfig',
    'WorkerPoolConfig',
    # Errors
    'FutureError',
    'FutureStateError',
    'FutureNotCompletedError',
    'FutureNotFailedError',
    'FutureCancelledError',
    'SchedulerShutdownError',
    'ExecutorShutdownError',
]
