"""
Sorta Stability Checker.

Waits for a file's size to stop changing before it is handed on.
Requires Python 3.11+.
"""

import os
import threading
import time

from utils.logger import LoggerMixin
from watcher.errors import FileUnstableError, FileVanishedError, StabilityWaitCancelled

DEFAULT_TIMEOUT = 30.0
MIN_INTERVAL = 0.05


class StabilityChecker(LoggerMixin):
    """
    Detects files that are still being written.

    A file is stable once its size has stayed the same for ``threshold``
    seconds. The size is polled every ``interval`` seconds, and the whole
    wait gives up after ``timeout`` seconds.
    """

    def __init__(
        self,
        threshold: float,
        timeout: float = DEFAULT_TIMEOUT,
        interval: float | None = None,
    ) -> None:
        """
        Initialize the checker.

        Args:
            threshold: Seconds the size must remain unchanged
            timeout: Seconds before wait_for_stable gives up
            interval: Poll period; defaults to threshold / 4, at least 50ms
        """
        if interval is None:
            interval = max(threshold / 4, MIN_INTERVAL)
        self._threshold = threshold
        self._timeout = timeout
        self._interval = interval

    @classmethod
    def with_options(
        cls, threshold: float, timeout: float, interval: float
    ) -> "StabilityChecker":
        """Create a checker with an explicit timeout and poll interval."""
        return cls(threshold=threshold, timeout=timeout, interval=interval)

    def wait_for_stable(
        self,
        path: str,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Block until the file size has been steady for the threshold.

        Args:
            path: File to watch
            cancel: Event that aborts the wait when set
            timeout: Override for the configured timeout

        Raises:
            FileVanishedError: The file does not exist or disappeared
            FileUnstableError: The size kept changing until the timeout
            StabilityWaitCancelled: ``cancel`` was set first
        """
        if cancel is None:
            cancel = threading.Event()
        if timeout is None:
            timeout = self._timeout

        deadline = time.monotonic() + timeout
        last_size = self._get_file_size(path)
        last_change = time.monotonic()

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self.log.debug("file_unstable", path=path, size=last_size)
                raise FileUnstableError(path, timeout)

            if cancel.wait(min(self._interval, remaining)):
                raise StabilityWaitCancelled(path)
            if time.monotonic() >= deadline:
                continue

            current_size = self._get_file_size(path)
            now = time.monotonic()
            if current_size != last_size:
                last_size = current_size
                last_change = now
            elif now - last_change >= self._threshold:
                return

    def is_stable(self, path: str) -> bool:
        """Sample the size twice, one threshold apart, and compare."""
        return self.is_stable_quick(path, self._threshold)

    def is_stable_quick(self, path: str, sample_interval: float) -> bool:
        """
        Sample the size twice, ``sample_interval`` seconds apart.

        Any stat failure, including a missing file, reports False.
        """
        try:
            initial_size = self._get_file_size(path)
            time.sleep(sample_interval)
            final_size = self._get_file_size(path)
        except OSError:
            return False
        return initial_size == final_size

    def _get_file_size(self, path: str) -> int:
        try:
            return os.stat(path).st_size
        except FileNotFoundError:
            raise FileVanishedError(path) from None

    @property
    def threshold(self) -> float:
        """Get the stability threshold in seconds."""
        return self._threshold

    @property
    def timeout(self) -> float:
        """Get the overall wait timeout in seconds."""
        return self._timeout

    @property
    def interval(self) -> float:
        """Get the poll interval in seconds."""
        return self._interval
