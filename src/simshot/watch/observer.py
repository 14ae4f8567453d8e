"""Bridge from watchdog's observer thread to the asyncio event loop.

watchdog delivers events on its own thread. This handler filters them by
the include/exclude globs, hops onto the loop with call_soon_threadsafe,
and waits for a file to stop changing (the write-stability window) before
reporting it, so an editor's save burst becomes one event.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Iterable
from fnmatch import fnmatch
from pathlib import Path

import structlog
from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)

from simshot.models import ChangeKind

logger = structlog.get_logger(__name__)

EventSink = Callable[[str, ChangeKind], None]


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    """Glob-match a relative POSIX path.

    ``**/`` at the start of a pattern also matches at the top level.
    """
    for pattern in patterns:
        if fnmatch(path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch(path, pattern[3:]):
            return True
    return False


def _as_text(path: str | bytes) -> str:
    return os.fsdecode(path)


class FileEventBridge(FileSystemEventHandler):
    """watchdog handler that forwards settled file events to ``sink``."""

    def __init__(
        self,
        root: Path,
        loop: asyncio.AbstractEventLoop,
        sink: EventSink,
        watch_patterns: Iterable[str],
        ignore_patterns: Iterable[str],
        stability: float = 0.5,
    ) -> None:
        super().__init__()
        self.root = Path(root)
        self._loop = loop
        self._sink = sink
        self._watch_patterns = tuple(watch_patterns)
        self._ignore_patterns = tuple(ignore_patterns)
        self._stability = stability
        # Loop-thread state: path -> (pending kind, stability timer)
        self._settling: dict[str, tuple[ChangeKind, asyncio.TimerHandle]] = {}

    def relative(self, path: str | bytes) -> str | None:
        """Return the watched relative path, or None when filtered out."""
        try:
            rel = Path(_as_text(path)).resolve().relative_to(self.root).as_posix()
        except ValueError:
            return None
        if not matches_any(rel, self._watch_patterns):
            return None
        if matches_any(rel, self._ignore_patterns):
            return None
        return rel

    # --- watchdog thread ---

    def _post(self, path: str | bytes, kind: ChangeKind) -> None:
        rel = self.relative(path)
        if rel is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._receive, rel, kind)
        except RuntimeError:
            # Loop already closed during shutdown
            pass

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._post(event.src_path, ChangeKind.ADDED)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._post(event.src_path, ChangeKind.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._post(event.src_path, ChangeKind.REMOVED)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory or not isinstance(event, FileSystemMovedEvent):
            return
        self._post(event.src_path, ChangeKind.REMOVED)
        self._post(event.dest_path, ChangeKind.ADDED)

    # --- event loop thread ---

    def _receive(self, rel: str, kind: ChangeKind) -> None:
        previous = self._settling.pop(rel, None)
        if previous is not None:
            previous[1].cancel()

        if kind is ChangeKind.REMOVED:
            self._emit(rel, kind)
            return

        # A create followed by writes is still an add
        if previous is not None and previous[0] is ChangeKind.ADDED:
            kind = ChangeKind.ADDED

        handle = self._loop.call_later(self._stability, self._settled, rel)
        self._settling[rel] = (kind, handle)

    def _settled(self, rel: str) -> None:
        entry = self._settling.pop(rel, None)
        if entry is not None:
            self._emit(rel, entry[0])

    def _emit(self, rel: str, kind: ChangeKind) -> None:
        try:
            self._sink(rel, kind)
        except Exception:
            logger.exception("watcher_event_dispatch_failed", path=rel, kind=kind.value)

    def cancel_pending(self) -> None:
        """Drop events still inside their stability window."""
        for _, handle in self._settling.values():
            handle.cancel()
        self._settling.clear()
