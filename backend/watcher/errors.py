"""
Sorta Watcher Errors.

All watcher errors inherit from WatcherError for easy catching.
Requires Python 3.11+.
"""


class WatcherError(Exception):
    """Base exception for all watcher failures."""


class FileVanishedError(WatcherError, FileNotFoundError):
    """Raised when a file disappears before it could be checked."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class FileUnstableError(WatcherError):
    """Raised when a file keeps changing size until the timeout expires."""

    def __init__(self, path: str, timeout: float) -> None:
        self.path = path
        self.timeout = timeout
        super().__init__(f"File did not stabilize within {timeout:g}s: {path}")


class StabilityWaitCancelled(WatcherError):
    """Raised when a stability wait is cancelled before it finishes."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Stability wait cancelled: {path}")


class WatchSubscriptionError(WatcherError):
    """Raised when a directory cannot be watched."""

    def __init__(self, directory: str, reason: str) -> None:
        self.directory = directory
        self.reason = reason
        super().__init__(f"Cannot watch {directory}: {reason}")


class WatcherStateError(WatcherError):
    """Raised when start/stop is called in the wrong lifecycle state."""

    def __init__(self, current_state: str, operation: str) -> None:
        self.current_state = current_state
        self.operation = operation
        super().__init__(f"Cannot {operation} a watcher that is {current_state}")
