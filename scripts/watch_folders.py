#!/usr/bin/env python3
"""
Sorta Watch Script.

Watches download folders and reports every file that settles there.
Requires Python 3.11+.

Usage:
    python scripts/watch_folders.py ~/Downloads ~/Desktop --debounce 1
"""

import argparse
import dataclasses
import sys
import time
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from utils.logger import configure_logging, logger
from watcher import FileWatcher, WatchConfig, WatchSubscriptionError


def run_watch(dirs: list[Path], config: WatchConfig) -> int:
    """
    Watch directories until interrupted and print the session summary.

    No organizer is attached here, so every settled file is counted as
    organized; the log shows which files would have been handed over.

    Returns:
        Process exit code
    """
    watcher = FileWatcher(config=config)

    try:
        watcher.start([str(d) for d in dirs])
    except WatchSubscriptionError as e:
        print(f"Error: {e}")
        return 1

    print(f"Watching {len(dirs)} folder(s). Press Ctrl+C to stop.")
    try:
        while watcher.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("watch_interrupted")

    summary = watcher.stop()

    print("\nWatch Session Complete!")
    print(f"  Files organized: {summary.files_organized}")
    print(f"  Files for review: {summary.files_reviewed}")
    print(f"  Files skipped: {summary.files_skipped}")
    print(f"  Duration: {summary.duration:.1f}s")
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Watch folders and hand new files to the organizer once they settle"
    )
    parser.add_argument(
        "dirs",
        type=Path,
        nargs="+",
        help="Directories to watch (not recursive)",
    )
    parser.add_argument(
        "--debounce",
        type=float,
        default=None,
        help="Seconds of quiet before a new file is processed",
    )
    parser.add_argument(
        "--stable-ms",
        type=int,
        default=None,
        help="Milliseconds a file size must stay unchanged",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Glob pattern to ignore (repeatable; replaces the defaults)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every event",
    )

    args = parser.parse_args()
    configure_logging(level="DEBUG" if args.verbose else None)

    config = WatchConfig.from_settings()
    overrides = {}
    if args.debounce is not None:
        overrides["debounce_seconds"] = args.debounce
    if args.stable_ms is not None:
        overrides["stable_threshold_ms"] = args.stable_ms
    if args.ignore:
        overrides["ignore_patterns"] = tuple(args.ignore)
    if overrides:
        config = dataclasses.replace(config, **overrides)

    sys.exit(run_watch(args.dirs, config))


if __name__ == "__main__":
    main()
