"""
Sorta File Watcher Package.

Watches download folders and hands settled files to an organizer.
Requires Python 3.11+.
"""

from watcher.debouncer import Debouncer
from watcher.errors import (
    FileUnstableError,
    FileVanishedError,
    StabilityWaitCancelled,
    WatcherError,
    WatcherStateError,
    WatchSubscriptionError,
)
from watcher.file_watcher import (
    FileHandler,
    FileWatcher,
    WatchConfig,
    WatcherState,
    WatchSummary,
)
from watcher.filters import (
    DEFAULT_IGNORE_PATTERNS,
    FileFilter,
    default_ignore_patterns,
    is_temporary_file,
)
from watcher.stability import StabilityChecker

__all__ = [
    "FileWatcher",
    "FileHandler",
    "WatchConfig",
    "WatchSummary",
    "WatcherState",
    "Debouncer",
    "FileFilter",
    "DEFAULT_IGNORE_PATTERNS",
    "default_ignore_patterns",
    "is_temporary_file",
    "StabilityChecker",
    "WatcherError",
    "FileVanishedError",
    "FileUnstableError",
    "StabilityWaitCancelled",
    "WatchSubscriptionError",
    "WatcherStateError",
]
