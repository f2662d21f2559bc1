"""
Sorta Debouncer.

Debounces rapid file system events, one deferred action per path.
Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from utils.logger import LoggerMixin


@dataclass
class PendingEntry:
    """A path waiting for its quiet period to elapse."""

    path: str
    armed_at: float  # time.monotonic() of the most recent add()
    timer: threading.Timer | None = None


class Debouncer(LoggerMixin):
    """
    Debounces rapid file events per path.

    Each path gets its own timer. Adding a path that is already pending
    cancels its timer and arms a new one, so a burst of events produces a
    single callback fired ``delay`` seconds after the last event. Different
    paths fire independently and may run their callbacks concurrently.
    """

    def __init__(
        self,
        delay: float = 2.0,
        callback: Callable[[str], Any] | None = None,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            delay: Quiet period in seconds before the callback fires
            callback: Function called with the path; None only clears bookkeeping
        """
        self._delay = max(0.0, delay)
        self._callback = callback
        self._pending: dict[str, PendingEntry] = {}
        self._lock = threading.Lock()

    def set_callback(self, callback: Callable[[str], Any] | None) -> None:
        """Set or update the callback function."""
        self._callback = callback

    def add(self, path: str) -> None:
        """
        Schedule a path for processing after the debounce delay.

        If the path is already pending its timer is restarted.
        """
        entry = PendingEntry(path=path, armed_at=time.monotonic())
        entry.timer = threading.Timer(self._delay, self._fire, args=(entry,))
        entry.timer.daemon = True

        with self._lock:
            previous = self._pending.get(path)
            if previous is not None and previous.timer is not None:
                previous.timer.cancel()
            self._pending[path] = entry
            entry.timer.start()

        self.log.debug("debounce_armed", path=path, rearmed=previous is not None)

    def _fire(self, entry: PendingEntry) -> None:
        """Timer body: claim the entry, then run the callback unlocked."""
        with self._lock:
            # A replaced or cancelled timer may already be past its wait
            if self._pending.get(entry.path) is not entry:
                return
            del self._pending[entry.path]

        callback = self._callback
        if callback is None:
            return

        try:
            callback(entry.path)
        except Exception as e:
            self.log.error("debounce_callback_failed", path=entry.path, error=str(e))

    def cancel(self, path: str) -> None:
        """Remove a pending path. No-op if the path is not pending."""
        with self._lock:
            entry = self._pending.pop(path, None)
            if entry is not None and entry.timer is not None:
                entry.timer.cancel()

    def cancel_all(self) -> None:
        """Cancel every pending path so no callback fires afterwards."""
        with self._lock:
            entries = list(self._pending.values())
            self._pending.clear()
            for entry in entries:
                if entry.timer is not None:
                    entry.timer.cancel()

        if entries:
            self.log.debug("debounce_cancelled_all", count=len(entries))

    def is_pending(self, path: str) -> bool:
        """Check if a path is waiting to fire."""
        with self._lock:
            return path in self._pending

    @property
    def pending_count(self) -> int:
        """Get number of pending paths."""
        with self._lock:
            return len(self._pending)

    @property
    def pending_paths(self) -> list[str]:
        """Get list of paths with pending timers."""
        with self._lock:
            return list(self._pending)

    @property
    def delay(self) -> float:
        """Get the configured debounce delay in seconds."""
        return self._delay
