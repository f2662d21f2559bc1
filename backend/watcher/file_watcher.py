"""
Sorta File Watcher.

Watches directories for new files and hands each settled file to an
organizer callback: filter -> debounce -> stability -> handler.
Requires Python 3.11+.
"""

import os
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from watchdog.events import (
    DirCreatedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from utils.config import get_settings
from utils.logger import LoggerMixin
from watcher.debouncer import Debouncer
from watcher.errors import (
    FileUnstableError,
    FileVanishedError,
    StabilityWaitCancelled,
    WatcherStateError,
    WatchSubscriptionError,
)
from watcher.filters import FileFilter, default_ignore_patterns
from watcher.stability import StabilityChecker

# Receives an absolute path and returns (organized, reviewed).
# Raising marks the file as skipped.
FileHandler = Callable[[str], tuple[bool, bool]]

_POLL_INTERVAL = 0.1


@dataclass(frozen=True)
class WatchConfig:
    """Watcher settings, fixed for the life of a watcher."""

    debounce_seconds: float = 2.0
    stable_threshold_ms: int = 1000
    ignore_patterns: tuple[str, ...] = field(
        default_factory=lambda: tuple(default_ignore_patterns())
    )
    stability_timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        # Lists are accepted for convenience but stored immutably
        object.__setattr__(self, "ignore_patterns", tuple(self.ignore_patterns))

    @classmethod
    def from_settings(cls) -> "WatchConfig":
        """Build a config from WATCHER_* environment settings."""
        settings = get_settings().watcher
        return cls(
            debounce_seconds=settings.debounce_seconds,
            stable_threshold_ms=settings.stable_threshold_ms,
            ignore_patterns=tuple(settings.ignore_patterns or default_ignore_patterns()),
            stability_timeout_seconds=settings.stability_timeout_seconds,
        )


@dataclass(frozen=True)
class WatchSummary:
    """Outcome counts for one watch session."""

    files_organized: int
    files_reviewed: int
    files_skipped: int
    duration: float  # seconds

    @property
    def total_files(self) -> int:
        """Get number of files seen, whatever their outcome."""
        return self.files_organized + self.files_reviewed + self.files_skipped

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and output."""
        return {
            "files_organized": self.files_organized,
            "files_reviewed": self.files_reviewed,
            "files_skipped": self.files_skipped,
            "duration_seconds": round(self.duration, 3),
        }


@dataclass
class SessionStats:
    """Mutable counters behind a WatchSummary."""

    organized: int = 0
    reviewed: int = 0
    skipped: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def snapshot(self, now: float | None = None) -> WatchSummary:
        end = time.monotonic() if now is None else now
        return WatchSummary(
            files_organized=self.organized,
            files_reviewed=self.reviewed,
            files_skipped=self.skipped,
            duration=max(0.0, end - self.started_at),
        )


class WatcherState(str, Enum):
    """Lifecycle states of a FileWatcher."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class EventKind(str, Enum):
    """Kinds of items on the watcher's intake queue."""

    CREATED = "created"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A raw notification waiting for the drain thread."""

    kind: EventKind
    path: str = ""
    error: BaseException | None = None


class CreatedFileHandler(FileSystemEventHandler):
    """
    Forwards new-file notifications to the watcher's intake queue.

    A file moved or renamed into a watched directory counts as created;
    browsers finish downloads by renaming ``x.crdownload`` to ``x``.
    Directory events are dropped.
    """

    def __init__(self, events: "queue.Queue[WatchEvent]") -> None:
        super().__init__()
        self._events = events

    def dispatch(self, event: FileSystemEvent) -> None:
        """Dispatch a raw event, turning handler faults into error items."""
        try:
            super().dispatch(event)
        except Exception as e:
            self._events.put(WatchEvent(kind=EventKind.ERROR, path=str(event.src_path), error=e))

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file creation."""
        if event.is_directory:
            return
        self._events.put(WatchEvent(kind=EventKind.CREATED, path=os.fsdecode(event.src_path)))

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle a rename whose destination is a new file name."""
        if event.is_directory:
            return
        self._events.put(WatchEvent(kind=EventKind.CREATED, path=os.fsdecode(event.dest_path)))


class FileWatcher(LoggerMixin):
    """
    Watches directories for new files and organizes them once settled.

    Notifications are drained serially by one background thread. Each
    accepted path is debounced, and when its timer fires the stability
    wait and the handler run on that timer's thread, so a slow file never
    stalls the drain loop. Counters are guarded by a single lock that is
    also taken for summaries.
    """

    def __init__(
        self,
        config: WatchConfig | None = None,
        file_handler: FileHandler | None = None,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            config: Watcher settings; None uses WatchConfig defaults
            file_handler: Organizer callback; None counts every file as organized
        """
        self._config = config or WatchConfig()
        self._file_handler = file_handler

        self._filter = FileFilter(list(self._config.ignore_patterns))
        self._stability = StabilityChecker(
            threshold=self._config.stable_threshold_ms / 1000.0,
            timeout=self._config.stability_timeout_seconds,
        )
        self._debouncer = Debouncer(
            delay=self._config.debounce_seconds,
            callback=self._dispatch,
        )

        self._events: queue.Queue[WatchEvent] = queue.Queue()
        self._handler = CreatedFileHandler(self._events)
        self._observer: Observer | None = None
        self._drain_thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self._state = WatcherState.IDLE
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._stats = SessionStats()
        self._in_flight: set[str] = set()
        self._frozen = False
        self._final_summary: WatchSummary | None = None

    def start(self, dirs: list[str | os.PathLike[str]]) -> None:
        """
        Start watching the given directories.

        Either every directory is subscribed or none is.

        Raises:
            WatchSubscriptionError: A directory cannot be resolved or watched
            WatcherStateError: The watcher was already started
        """
        if self._state is not WatcherState.IDLE:
            raise WatcherStateError(self._state.value, "start")

        observer = Observer()
        watched: list[str] = []
        current = "<observer>"
        try:
            for directory in dirs:
                current = str(directory)
                abs_dir = self._resolve_directory(directory)
                observer.schedule(self._handler, abs_dir, recursive=False)
                watched.append(abs_dir)
            current = "<observer>"
            observer.start()
        except WatchSubscriptionError:
            observer.unschedule_all()
            raise
        except OSError as e:
            observer.unschedule_all()
            raise WatchSubscriptionError(current, str(e)) from e

        self._observer = observer
        self._stats = SessionStats()
        self._stop_event.clear()
        self._drain_thread = threading.Thread(
            target=self._process_events, name="sorta-watch-drain", daemon=True
        )
        self._drain_thread.start()
        self._state = WatcherState.RUNNING

        self.log.info(
            "file_watcher_started",
            dirs=watched,
            debounce_seconds=self._config.debounce_seconds,
            stable_threshold_ms=self._config.stable_threshold_ms,
            ignore_patterns=list(self._config.ignore_patterns),
        )

    @staticmethod
    def _resolve_directory(directory: str | os.PathLike[str]) -> str:
        try:
            abs_dir = os.path.abspath(os.fspath(directory))
        except (TypeError, ValueError) as e:
            raise WatchSubscriptionError(str(directory), str(e)) from e
        if not os.path.isdir(abs_dir):
            raise WatchSubscriptionError(abs_dir, "not an existing directory")
        return abs_dir

    def stop(self) -> WatchSummary:
        """
        Stop watching and return the session summary.

        Once this returns no event is processed and no counter changes.
        Calling stop again returns the same summary.
        """
        if self._state is WatcherState.STOPPED and self._final_summary is not None:
            return self._final_summary

        # Also cancels any stability wait in progress
        self._stop_event.set()

        if self._drain_thread is not None:
            self._drain_thread.join()
            self._drain_thread = None

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None

        self._debouncer.cancel_all()

        with self._idle:
            while self._in_flight:
                self._idle.wait()
            self._frozen = True
            summary = self._stats.snapshot()

        self._state = WatcherState.STOPPED
        self._final_summary = summary
        self.log.info("file_watcher_stopped", **summary.to_dict())
        return summary

    def summary(self) -> WatchSummary:
        """Get a consistent snapshot of the counters so far."""
        if self._final_summary is not None:
            return self._final_summary
        with self._lock:
            return self._stats.snapshot()

    def _process_events(self) -> None:
        """Drain the intake queue until stop is requested."""
        while not self._stop_event.is_set():
            try:
                self._check_emitters()
            except Exception as e:
                self.log.error("watch_emitter_check_failed", error=str(e))

            try:
                event = self._events.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue

            if self._stop_event.is_set():
                break

            try:
                if event.kind is EventKind.ERROR:
                    self.log.warning(
                        "watch_notification_error", path=event.path, error=str(event.error)
                    )
                else:
                    self._handle_created(event.path)
            except Exception as e:
                self.log.error("watch_event_failed", path=event.path, error=str(e))

    def _check_emitters(self) -> None:
        """Report dead watchdog emitters and resubscribe their directories."""
        observer = self._observer
        if observer is None:
            return

        for emitter in list(observer.emitters):
            if emitter.is_alive():
                continue

            watch = emitter.watch
            self.log.warning(
                "watch_notification_error", path=watch.path, error="emitter thread stopped"
            )
            observer.unschedule(watch)
            if os.path.isdir(watch.path):
                observer.schedule(self._handler, watch.path, recursive=False)
                self.log.info("watch_rescheduled", path=watch.path)
            else:
                self.log.warning("watch_root_lost", path=watch.path)

    def _handle_created(self, path: str) -> None:
        if self._filter.should_ignore(path):
            self.log.debug("file_ignored", path=path)
            self._record(skipped=1)
            return

        self.log.debug("file_created", path=path)
        self._debouncer.add(path)

    def _dispatch(self, path: str) -> None:
        """Debounce callback: wait for the file to settle, then organize it."""
        with self._lock:
            if self._frozen or self._stop_event.is_set():
                return
            # One dispatch per path; repeats during it describe the same file
            if path in self._in_flight:
                self.log.debug("dispatch_in_flight", path=path)
                return
            self._in_flight.add(path)

        try:
            outcome = self._settle_and_handle(path)
            if outcome is not None:
                self._record(**{outcome: 1})
        finally:
            with self._idle:
                self._in_flight.discard(path)
                self._idle.notify_all()

    def _settle_and_handle(self, path: str) -> str | None:
        """Run the stability gate and the handler; return the counter to bump."""
        try:
            self._stability.wait_for_stable(path, cancel=self._stop_event)
        except StabilityWaitCancelled:
            return None
        except FileVanishedError:
            self.log.info("file_vanished", path=path)
            return "skipped"
        except FileUnstableError:
            self.log.warning(
                "file_unstable", path=path, timeout=self._config.stability_timeout_seconds
            )
            return "skipped"
        except OSError as e:
            self.log.warning("file_stat_failed", path=path, error=str(e))
            return "skipped"

        if self._file_handler is None:
            return "organized"

        try:
            organized, reviewed = self._file_handler(path)
        except Exception as e:
            self.log.error("file_handler_failed", path=path, error=str(e))
            return "skipped"

        if organized:
            self.log.info("file_organized", path=path)
            return "organized"
        if reviewed:
            self.log.info("file_reviewed", path=path)
            return "reviewed"
        self.log.info("file_skipped", path=path)
        return "skipped"

    def _record(self, organized: int = 0, reviewed: int = 0, skipped: int = 0) -> None:
        with self._lock:
            if self._frozen:
                return
            self._stats.organized += organized
            self._stats.reviewed += reviewed
            self._stats.skipped += skipped

    @property
    def config(self) -> WatchConfig:
        """Get the watcher configuration."""
        return self._config

    @property
    def state(self) -> WatcherState:
        """Get the lifecycle state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._state is WatcherState.RUNNING

    @property
    def pending_count(self) -> int:
        """Get number of files waiting out their debounce delay."""
        return self._debouncer.pending_count

    def __enter__(self) -> "FileWatcher":
        """Context manager entry; call start() before entering."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        if self._state is WatcherState.RUNNING:
            self.stop()
