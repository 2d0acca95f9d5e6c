"""futurekit exception hierarchy."""


class FutureError(Exception):
    """Base exception for all futurekit errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class FutureStateError(FutureError):
    """A synchronous accessor was used on a future in the wrong state."""
    pass


class FutureNotCompletedError(FutureStateError):
    """Future is still pending."""
    pass


class FutureNotFailedError(FutureStateError):
    """Future is pending or completed successfully."""
    pass


class FutureCancelledError(FutureError):
    """Future was cancelled before it produced a value."""

    def __init__(self, message: str = "future was cancelled"):
        super().__init__(message)


class SchedulerShutdownError(FutureError):
    """Task submitted to a scheduler that has been shut down."""
    pass


class ExecutorShutdownError(FutureError):
    """Task submitted to an executor that has been shut down."""
    pass
