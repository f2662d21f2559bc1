"""
Sorta Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import time
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from utils.config import get_settings
from watcher import FileWatcher, WatchConfig


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Make every test read settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def watch_dir(tmp_path: Path) -> Path:
    """Create an empty directory to watch."""
    directory = tmp_path / "inbox"
    directory.mkdir()
    return directory


@pytest.fixture
def fast_config() -> WatchConfig:
    """Config with no debounce and no stability threshold."""
    return WatchConfig(debounce_seconds=0, stable_threshold_ms=0)


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Poll a condition until it holds or the timeout expires."""

    def _wait(condition: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if condition():
                return True
            time.sleep(interval)
        return condition()

    return _wait


@pytest.fixture
def make_watcher() -> Generator[Callable[..., FileWatcher], None, None]:
    """Build watchers that are stopped at teardown if a test leaves them running."""
    created: list[FileWatcher] = []

    def _make(config: WatchConfig | None = None, file_handler=None) -> FileWatcher:
        watcher = FileWatcher(config=config, file_handler=file_handler)
        created.append(watcher)
        return watcher

    yield _make

    for watcher in created:
        if watcher.is_running:
            watcher.stop()
