"""
Single-Assignment Futures

Thread-safe future cell with continuation chaining and asyncio integration.
"""

import asyncio
import collections
import logging
import threading
from typing import TypeVar, Generic, Callable, List, Any, Optional, Tuple

from ..exceptions import FutureCancelledError, FutureNotCompletedError

logger = logging.getLogger(__name__)

T = TypeVar('T')
U = TypeVar('U')
R = TypeVar('R')

_PENDING = 'PENDING'
_SUCCEEDED = 'SUCCEEDED'
_FAILED = 'FAILED'
_CANCELLED = 'CANCELLED'

# Per-thread queue of (future, callback) pairs waiting to run
_dispatch_state = threading.local()


class Future(Generic[T]):
    """
    Write-once result cell.

    A future starts pending and settles exactly once: with a value, with an
    exception, or by being cancelled. Later attempts to settle it are ignored.
    Callbacks registered with add_done_callback() run exactly once, on the
    thread that settles the future (or immediately, if it is already settled).
    Callbacks triggered from inside another callback are queued and run after
    it returns, so long continuation chains do not grow the stack.

    Supports both async/await and explicit continuation chains.

    Examples:
        # Async/await
        result = await future

        # Explicit chaining
        future.then(lambda x: process(x)).handle_error(lambda e: fallback)
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._state = _PENDING
        self._value: Optional[T] = None
        self._exception: Optional[BaseException] = None
        self._callbacks: List[Callable[['Future[T]'], Any]] = []

    def __repr__(self) -> str:
        with self._condition:
            state = self._state
        return f"<Future state={state} at {id(self):#x}>"

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _settle(self, state: str, value: Any, exception: Optional[BaseException]) -> bool:
        with self._condition:
            if self._state != _PENDING:
                return False
            self._state = state
            self._value = value
            self._exception = exception
            callbacks = self._callbacks
            self._callbacks = []
            self._condition.notify_all()

        for callback in callbacks:
            _dispatch(self, callback)
        return True

    def _invoke_callback(self, callback: Callable[['Future[T]'], Any]) -> None:
        try:
            callback(self)
        except Exception:
            logger.exception(f"Exception in done callback {callback!r} of {self!r}")

    def set_result(self, value: T) -> bool:
        """
        Settle the future with a value.

        Returns:
            True if this call settled the future, False if it was already settled
        """
        return self._settle(_SUCCEEDED, value, None)

    def set_exception(self, exception: BaseException) -> bool:
        """
        Settle the future with a failure.

        Args:
            exception: The failure cause (an exception instance)

        Returns:
            True if this call settled the future, False if it was already settled

        Raises:
            TypeError: If exception is None or not an exception instance
        """
        if exception is None:
            raise TypeError("exception must not be None")
        if not isinstance(exception, BaseException):
            raise TypeError(
                f"exception must be an exception instance, got {type(exception).__name__}"
            )
        return self._settle(_FAILED, None, exception)

    def cancel(self) -> bool:
        """
        Cancel the future.

        A cancelled future is failed with a FutureCancelledError. Cancelling
        a derived future does not cancel the futures it was derived from.

        Returns:
            True if this call cancelled the future, False if it was already settled
        """
        return self._settle(_CANCELLED, None, FutureCancelledError())

    def add_done_callback(self, fn: Callable[['Future[T]'], Any]) -> None:
        """
        Register a callback to run once the future settles.

        Args:
            fn: Called with this future as its only argument
        """
        if fn is None:
            raise TypeError("callback must not be None")
        with self._condition:
            if self._state == _PENDING:
                self._callbacks.append(fn)
                return
        _dispatch(self, fn)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def is_ready(self) -> bool:
        """Check if future has settled (value, failure or cancellation)."""
        with self._condition:
            return self._state != _PENDING

    def failed(self) -> bool:
        """Check if future has failed or was cancelled."""
        with self._condition:
            return self._state in (_FAILED, _CANCELLED)

    def cancelled(self) -> bool:
        """Check if future was cancelled."""
        with self._condition:
            return self._state == _CANCELLED

    def exception(self) -> Optional[BaseException]:
        """
        Get the failure cause of a settled future without blocking.

        Returns:
            The cause, or None if the future succeeded

        Raises:
            FutureNotCompletedError: If the future is still pending
        """
        with self._condition:
            if self._state == _PENDING:
                raise FutureNotCompletedError("future was not completed")
            return self._exception

    def _outcome(self) -> Tuple[Any, Optional[BaseException]]:
        with self._condition:
            return self._value, self._exception

    def get(self, timeout: Optional[float] = None) -> T:
        """
        Get the value (blocking).

        Only use in synchronous harness or test code.

        Args:
            timeout: Seconds to wait (None = wait forever)

        Returns:
            The future's value

        Raises:
            The original failure cause if the future failed
            FutureCancelledError: If the future was cancelled
            TimeoutError: If the future is still pending after timeout
        """
        with self._condition:
            if not self._condition.wait_for(lambda: self._state != _PENDING, timeout):
                raise TimeoutError(f"future not completed after {timeout}s")
            if self._exception is not None:
                raise self._exception
            return self._value

    # ------------------------------------------------------------------
    # Continuations
    # ------------------------------------------------------------------

    def then(self, func: Callable[[T], U]) -> 'Future[U]':
        """
        Transform the value once it is available.

        Failures pass through unchanged and func is not called.

        Example:
            future.then(lambda x: x * 2).then(lambda y: str(y))
        """
        derived: Future[U] = Future()

        def _on_done(source: Future[T]) -> None:
            value, exception = source._outcome()
            if exception is not None:
                derived.set_exception(exception)
            else:
                _complete_with(derived, func, value)

        self.add_done_callback(_on_done)
        return derived

    def handle(self, func: Callable[[Optional[T], Optional[BaseException]], U]) -> 'Future[U]':
        """
        Apply func to the outcome, whether success or failure.

        func receives (value, None) on success and (None, exception) on
        failure; its return value completes the derived future.
        """
        derived: Future[U] = Future()

        def _on_done(source: Future[T]) -> None:
            value, exception = source._outcome()
            _complete_with(derived, func, value, exception)

        self.add_done_callback(_on_done)
        return derived

    def handle_error(self, func: Callable[[BaseException], T]) -> 'Future[T]':
        """
        Replace a failure with the value returned by func.

        Args:
            func: Error handler that receives the exception

        Returns:
            New future with the original value, or func's result on failure
        """
        derived: Future[T] = Future()

        def _on_done(source: Future[T]) -> None:
            value, exception = source._outcome()
            if exception is None:
                derived.set_result(value)
            else:
                _complete_with(derived, func, exception)

        self.add_done_callback(_on_done)
        return derived

    def then_compose(self, func: Callable[[T], 'Future[U]']) -> 'Future[U]':
        """
        Chain into another asynchronous computation.

        func receives the value and returns a future; the derived future
        settles the same way that future does.
        """
        derived: Future[U] = Future()

        def _on_done(source: Future[T]) -> None:
            value, exception = source._outcome()
            if exception is not None:
                derived.set_exception(exception)
                return
            try:
                inner = func(value)
            except Exception as e:
                derived.set_exception(e)
                return
            if not isinstance(inner, Future):
                derived.set_exception(TypeError(
                    f"compose function must return a Future, got {type(inner).__name__}"
                ))
                return
            inner.add_done_callback(lambda f: _transfer(f, derived))

        self.add_done_callback(_on_done)
        return derived

    def then_combine(self, other: 'Future[U]', func: Callable[[T, U], R]) -> 'Future[R]':
        """
        Combine with another future once both have succeeded.

        Fails as soon as either future fails, with that future's cause.
        """
        if other is None:
            raise TypeError("other future must not be None")
        derived: Future[R] = Future()
        lock = threading.Lock()
        remaining = [2]

        def _on_done(source: Future[Any]) -> None:
            _, exception = source._outcome()
            if exception is not None:
                derived.set_exception(exception)
                return
            with lock:
                remaining[0] -= 1
                ready = remaining[0] == 0
            if ready:
                _complete_with(derived, func, self._outcome()[0], other._outcome()[0])

        self.add_done_callback(_on_done)
        other.add_done_callback(_on_done)
        return derived

    # ------------------------------------------------------------------
    # asyncio integration
    # ------------------------------------------------------------------

    def __await__(self):
        """
        Make future awaitable.

        Settlement on another thread is handed to the running event loop.
        A cancelled future raises asyncio.CancelledError in the awaiter.
        """
        async def _await_impl():
            if self.is_ready():
                # Fast path: already settled
                if self.cancelled():
                    raise asyncio.CancelledError()
                return self.get()

            loop = asyncio.get_running_loop()
            py_future = loop.create_future()

            def callback(source: Future[T]) -> None:
                loop.call_soon_threadsafe(_transfer_to_asyncio, source, py_future)

            self.add_done_callback(callback)
            return await py_future

        return _await_impl().__await__()

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @staticmethod
    def make_ready(value: T) -> 'Future[T]':
        """Create a future that's already resolved."""
        f: Future[T] = Future()
        f.set_result(value)
        return f

    @staticmethod
    def make_exception(exception: BaseException) -> 'Future[T]':
        """Create a future that's already failed."""
        f: Future[T] = Future()
        f.set_exception(exception)
        return f


def _dispatch(future: Future[Any], callback: Callable[[Future[Any]], Any]) -> None:
    """
    Run callback(future) without nesting on the stack.

    The outermost call on a thread drains the queue; callbacks that settle
    further futures only enqueue, so a chain of any length runs in a loop.
    """
    queue = getattr(_dispatch_state, 'queue', None)
    if queue is None:
        queue = _dispatch_state.queue = collections.deque()
    queue.append((future, callback))
    if getattr(_dispatch_state, 'draining', False):
        return

    _dispatch_state.draining = True
    try:
        while queue:
            source, pending = queue.popleft()
            source._invoke_callback(pending)
    finally:
        _dispatch_state.draining = False


def _complete_with(target: Future[Any], func: Callable[..., Any], *args: Any) -> None:
    try:
        result = func(*args)
    except Exception as e:
        target.set_exception(e)
    else:
        target.set_result(result)


def _transfer(source: Future[Any], target: Future[Any]) -> None:
    value, exception = source._outcome()
    if exception is not None:
        target.set_exception(exception)
    else:
        target.set_result(value)


def _transfer_to_asyncio(source: Future[Any], py_future: 'asyncio.Future[Any]') -> None:
    if py_future.done():
        # Awaiter went away
        return
    if source.cancelled():
        py_future.cancel()
        return
    value, exception = source._outcome()
    if exception is not None:
        py_future.set_exception(exception)
    else:
        py_future.set_result(value)
