"""
Watchdog-based file system listener for the watch roots.

Translates watchdog events into (modified, added, removed) callbacks with
absolute paths. Runs on the observer thread.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver


logger = logging.getLogger(__name__)

ChangeCallback = Callable[[List[str], List[str], List[str]], None]


class DebounceTracker:
    """
    Tracks modification events with debouncing.

    The first modification of a path is reported at once. Further
    modifications within the window are held back and reported once, after
    the path has been quiet for the whole window, so the settled state of a
    burst of writes is always reported.
    """

    def __init__(self, delay_seconds: float = 0.0):
        """
        Initialize debounce tracker.

        Args:
            delay_seconds: Debounce window in seconds (0 disables debouncing)
        """
        self.delay_seconds = delay_seconds
        self._last_reported: Dict[str, float] = {}
        self._pending: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def submit(self, file_path: str, report: Callable[[str], None]) -> None:
        """
        Report a modification now or after the path settles.

        Args:
            file_path: Path that triggered the event
            report: Called with the path when the modification is reported
        """
        if self.delay_seconds <= 0:
            report(file_path)
            return

        now = time.monotonic()
        with self._lock:
            last = self._last_reported.get(file_path)
            leading = (
                file_path not in self._pending
                and (last is None or now - last >= self.delay_seconds)
            )
            if leading:
                self._last_reported[file_path] = now
            else:
                timer = threading.Timer(
                    self.delay_seconds, self._flush, args=(file_path, report)
                )
                timer.daemon = True
                previous = self._pending.get(file_path)
                self._pending[file_path] = timer

        if leading:
            report(file_path)
            return

        if previous is not None:
            previous.cancel()
        logger.debug(f"Debounced modification: {file_path}")
        timer.start()

    def _flush(self, file_path: str, report: Callable[[str], None]) -> None:
        with self._lock:
            # A newer event replaced this timer
            if self._pending.get(file_path) is not threading.current_thread():
                return
            del self._pending[file_path]
            self._last_reported[file_path] = time.monotonic()
        report(file_path)

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def cancel_all(self) -> None:
        """Drop every held-back modification."""
        with self._lock:
            timers = list(self._pending.values())
            self._pending.clear()
        for timer in timers:
            timer.cancel()

    def cleanup_old_events(self, max_age_seconds: float = 60.0) -> None:
        """
        Remove old timestamps to prevent memory growth.

        Args:
            max_age_seconds: Maximum age to keep
        """
        cutoff = time.monotonic() - max_age_seconds
        with self._lock:
            self._last_reported = {
                path: ts
                for path, ts in self._last_reported.items()
                if ts > cutoff
            }


class ChangeListener(FileSystemEventHandler):
    """
    Watches every watch root recursively and reports file changes.

    Directory events are ignored. While paused, events are dropped.
    """

    def __init__(
        self,
        watch_roots: Iterable[Path],
        callback: ChangeCallback,
        latency: Optional[float] = None,
        force_polling: bool = False,
        wait_for_delay: Optional[float] = None
    ):
        """
        Initialize change listener.

        Args:
            watch_roots: Absolute directories to watch
            callback: Called with (modified, added, removed) absolute paths
            latency: Observer timeout / polling interval in seconds
            force_polling: Use the polling observer instead of native events
            wait_for_delay: Debounce window for repeated modifications
        """
        super().__init__()

        self.watch_roots = [Path(root) for root in watch_roots]
        self.callback = callback
        self.latency = latency
        self.force_polling = force_polling

        self.debounce = DebounceTracker(wait_for_delay or 0.0)

        self._paused = False
        self._observer = None

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        """Drop events until ``unpause``."""
        self._paused = True

    def unpause(self) -> None:
        self._paused = False

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(added=[os.fsdecode(event.src_path)])

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        self.debounce.submit(os.fsdecode(event.src_path), self._report_modified)
        self.debounce.cleanup_old_events()

    def _report_modified(self, path: str) -> None:
        self._emit(modified=[path])

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(removed=[os.fsdecode(event.src_path)])

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        if event.is_directory:
            return
        self._emit(
            added=[os.fsdecode(event.dest_path)],
            removed=[os.fsdecode(event.src_path)],
        )

    def _emit(
        self,
        modified: Iterable[str] = (),
        added: Iterable[str] = (),
        removed: Iterable[str] = ()
    ) -> None:
        if self._paused:
            return

        try:
            self.callback(list(modified), list(added), list(removed))
        except Exception as e:
            logger.error(f"Error in change callback: {e}", exc_info=True)

    def _create_observer(self):
        observer_class = PollingObserver if self.force_polling else Observer
        if self.latency is not None:
            return observer_class(timeout=self.latency)
        return observer_class()

    def start(self) -> None:
        """
        Start watching the watch roots.

        Roots that do not exist are logged and skipped.
        """
        if self._observer is not None:
            logger.warning("Listener already running")
            return

        self._observer = self._create_observer()

        for root in self.watch_roots:
            if not root.is_dir():
                logger.error(f"Watch directory does not exist: {root}")
                continue
            self._observer.schedule(self, str(root), recursive=True)
            logger.info(f"Watching: {root}")

        self._observer.start()

    def stop(self) -> None:
        """Stop the observer."""
        self.debounce.cancel_all()

        if self._observer is None:
            return

        try:
            self._observer.stop()
            self._observer.join(timeout=5.0)
        except Exception as e:
            logger.error(f"Error stopping observer: {e}", exc_info=True)
        finally:
            self._observer = None

        logger.debug("Listener stopped")

    def is_running(self) -> bool:
        """
        Check if the listener is currently running.

        Returns:
            True if observer is running
        """
        return self._observer is not None and self._observer.is_alive()
