"""
watcher.py

Responsibility: Turn filesystem notifications under a project's source directories
into a single coalesced "something changed" signal.

Rules:
- Every directory that exists under the watched roots at start time is registered.
  Directories created later are not picked up until the watcher is recreated.
- Create/modify/delete/move events are forwarded at most once per debounce window,
  measured from the last forwarded change. Directory modifications are ignored.
- The change channel holds one pending notification; further events are dropped
  while it is full.
- `close()` joins the observer thread; nothing is delivered after it returns.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Iterable

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

CHANGE_EVENTS = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED})


class WatchError(RuntimeError):
    pass


class ChangeHandler(FileSystemEventHandler):
    """
    Debounces watchdog events and hands them to `notify`.

    `notify` returns False when the event was dropped because a change is already pending.
    The window runs from the last forwarded change; the first event after start always passes.
    """

    def __init__(
        self,
        notify: Callable[[], bool],
        *,
        debounce: float = 0.3,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self._notify = notify
        self._debounce = debounce
        self._clock = clock
        self._last: float | None = None

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in CHANGE_EVENTS:
            return
        # Directory mtime/attribute updates; the file event itself is reported separately.
        if event.is_directory and event.event_type == EVENT_TYPE_MODIFIED:
            return
        now = self._clock()
        if self._last is not None and now - self._last < self._debounce:
            return
        if self._notify():
            self._last = now
            logger.debug("Change detected: %s %s", event.event_type, event.src_path)
        else:
            logger.debug("Change already pending, dropped: %s", event.src_path)


def _walk_dirs(root: Path, dirs: Iterable[str]) -> list[Path]:
    found: list[Path] = []
    for d in dirs:
        base = root / d
        if not base.is_dir():
            logger.debug("Watch directory does not exist, skipping: %s", base)
            continue
        for current, _subdirs, _files in os.walk(base):
            found.append(Path(current))
    return found


class FileWatcher:
    def __init__(self, root: str | Path, dirs: Iterable[str], *, debounce: float = 0.3) -> None:
        self.root = Path(root).resolve()
        self.dirs = tuple(dirs)
        self._changes: queue.Queue[bool] = queue.Queue(maxsize=1)
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._handler = ChangeHandler(self._offer, debounce=debounce)

        self.watched = _walk_dirs(self.root, self.dirs)
        if not self.watched:
            raise WatchError(f"No directories to watch under {self.root} (looked for: {', '.join(self.dirs)})")

        self._observer = Observer()
        try:
            # One non-recursive watch per directory found now; see module docstring.
            for path in self.watched:
                self._observer.schedule(self._handler, str(path), recursive=False)
            self._observer.start()
        except OSError as e:
            self._observer.stop()
            raise WatchError(f"Failed to start file watcher: {e}") from e
        logger.debug("Watching %d directories under %s", len(self.watched), self.root)

    def _offer(self) -> bool:
        if self._closed.is_set():
            return False
        try:
            self._changes.put_nowait(True)
        except queue.Full:
            return False
        return True

    def wait_for_change(self, timeout: float | None = None) -> bool:
        """
        Block until a coalesced change is available.

        Returns False if `timeout` elapses first or the watcher has been closed.
        """
        if self._closed.is_set():
            return False
        try:
            item = self._changes.get(timeout=timeout)
        except queue.Empty:
            return False
        return item and not self._closed.is_set()

    def close(self) -> None:
        with self._close_lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._observer.stop()
            self._observer.join()
            while True:
                try:
                    self._changes.get_nowait()
                except queue.Empty:
                    break
            # Wake a consumer blocked without a timeout.
            self._changes.put_nowait(False)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __enter__(self) -> FileWatcher:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
