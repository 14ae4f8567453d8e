"""File-change watcher that turns UI edits into debounced screenshot captures."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from watchdog.observers import Observer

from simshot.capture.orchestrator import CaptureOrchestrator
from simshot.config.settings import (
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_UI_KEYWORDS,
    DEFAULT_WATCH_PATTERNS,
)
from simshot.models import Capture, Change, ChangeKind
from simshot.watch.observer import FileEventBridge
from simshot.watch.relevance import RelevanceFilter

logger = structlog.get_logger(__name__)

DEFAULT_DEBOUNCE_DELAY = 2.0  # seconds
DEFAULT_RING_CAPACITY = 50
CONTEXT_WINDOW_MINUTES = 5
PROVENANCE_NAME_LIMIT = 3
VOLUME_WARNING_THRESHOLD = 5


def _now_ms() -> int:
    return int(time.time() * 1000)


class WatcherState(Enum):
    """State of the file watcher."""

    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class WatcherStatus:
    """Snapshot for the get_watcher_status tool."""

    running: bool
    enabled: bool
    watch_path: str
    debounce_delay_ms: int
    watch_patterns: list[str] = field(default_factory=list)
    pending: int = 0
    error: str | None = None


def describe_trigger(paths: list[str]) -> str:
    """Provenance label for a capture caused by ``paths``."""
    if len(paths) == 1:
        return paths[0]
    shown = ", ".join(paths[:PROVENANCE_NAME_LIMIT])
    more = "..." if len(paths) > PROVENANCE_NAME_LIMIT else ""
    return f"{len(paths)} files: {shown}{more}"


def build_suggestions(changes: list[Change]) -> list[str]:
    """Review hints keyed on what kind of files changed."""
    suggestions: list[str] = []
    if not changes:
        return suggestions

    def count(token: str) -> int:
        return sum(1 for c in changes if token in c.path.lower())

    components = count("component")
    screens = count("screen")
    styles = count("style")

    if components:
        suggestions.append(
            f"Check component rendering and layout for the {components} component file(s) modified"
        )
    if screens:
        suggestions.append(
            f"Verify screen navigation and overall layout for the {screens} screen file(s) modified"
        )
    if styles:
        suggestions.append("Review styling changes, spacing, colors, and visual consistency")
    if len(changes) > VOLUME_WARNING_THRESHOLD:
        suggestions.append(
            f"Multiple files changed ({len(changes)}) - review for consistency across components"
        )
    return suggestions


class ChangeWatcher:
    """Watches a source tree and captures a screenshot after UI edits settle.

    Every observed change is logged to a bounded ring, newest first, even
    while auto-capture is disabled. Relevant adds and modifies go into a
    pending set and (re)arm a trailing-edge debounce timer; when it fires,
    one capture covers the whole burst.

    All state is owned by the instance and mutated on the event loop only.

    Example:
        watcher = ChangeWatcher(orchestrator, Path("~/app").expanduser())
        await watcher.start()
        ...
        await watcher.stop()
    """

    def __init__(
        self,
        orchestrator: CaptureOrchestrator,
        root: Path,
        watch_patterns: Iterable[str] = DEFAULT_WATCH_PATTERNS,
        ignore_patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS,
        ui_keywords: Iterable[str] = DEFAULT_UI_KEYWORDS,
        debounce_delay: float = DEFAULT_DEBOUNCE_DELAY,
        write_stability: float = 0.5,
        capacity: int = DEFAULT_RING_CAPACITY,
        enabled: bool = True,
        clock: Callable[[], int] = _now_ms,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.orchestrator = orchestrator
        self.root = Path(root).resolve()
        self.watch_patterns = list(watch_patterns)
        self.ignore_patterns = list(ignore_patterns)
        self.debounce_delay = debounce_delay
        self.write_stability = write_stability
        self._relevance = RelevanceFilter(self.root, ui_keywords)
        self._clock = clock
        self._observer_factory = observer_factory

        self._state = WatcherState.STOPPED
        self._enabled = enabled
        self._changes: deque[Change] = deque(maxlen=capacity)
        self._pending: dict[str, None] = {}  # insertion-ordered set
        self._timer: asyncio.TimerHandle | None = None
        self._epoch = 0
        self._tasks: set[asyncio.Task] = set()
        self._observer: Any = None
        self._bridge: FileEventBridge | None = None
        self.last_capture: Capture | None = None

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pending_paths(self) -> list[str]:
        return list(self._pending)

    def set_enabled(self, enabled: bool) -> None:
        """Turn auto-capture on or off. Change history keeps recording."""
        if enabled != self._enabled:
            logger.info("auto_capture_toggled", enabled=enabled)
        self._enabled = enabled

    async def start(self) -> None:
        """Start observing the watch root. No-op if already running."""
        if self._state is WatcherState.RUNNING:
            return

        loop = asyncio.get_running_loop()
        bridge = FileEventBridge(
            self.root,
            loop,
            self.dispatch,
            self.watch_patterns,
            self.ignore_patterns,
            stability=self.write_stability,
        )
        observer = self._observer_factory()
        observer.schedule(bridge, str(self.root), recursive=True)
        observer.start()

        self._bridge = bridge
        self._observer = observer
        self._state = WatcherState.RUNNING
        logger.info("watcher_started", watch_path=str(self.root))

    async def stop(self) -> None:
        """Stop observing and drop any capture that has not fired yet."""
        self._epoch += 1
        self._cancel_timer()
        self._pending.clear()

        if self._bridge is not None:
            self._bridge.cancel_pending()
            self._bridge = None

        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            await asyncio.to_thread(observer.join, 5)

        if self._state is WatcherState.RUNNING:
            logger.info("watcher_stopped", watch_path=str(self.root))
        self._state = WatcherState.STOPPED

    def dispatch(self, path: str, kind: ChangeKind) -> None:
        """Schedule handling of a settled event on the running loop."""
        self._track(asyncio.get_running_loop().create_task(self.handle_event(path, kind)))

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def handle_event(self, path: str, kind: ChangeKind) -> None:
        """Process one file event relative to the watch root.

        Errors are logged and swallowed so one bad file never stops the
        watcher.
        """
        epoch = self._epoch
        try:
            self.record_change(path, kind)

            if not self._enabled or kind is ChangeKind.REMOVED:
                return

            verdict = await self._relevance.classify(path)
            if verdict.read is not None and not verdict.read.ok:
                logger.debug("relevance_read_failed", path=path, error=verdict.read.detail)
            if not verdict.relevant:
                logger.debug("change_ignored", path=path, reason=verdict.reason)
                return

            # Stopped (or disabled) while the file was being read
            if epoch != self._epoch or not self._enabled:
                return

            self._pending[path] = None
            self._arm_timer()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("watcher_event_failed", path=path, kind=kind.value)

    def _arm_timer(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_delay, self._on_quiet)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_quiet(self) -> None:
        self._timer = None
        self._track(asyncio.get_running_loop().create_task(self.flush()))

    async def flush(self) -> Capture | None:
        """Capture a screenshot for the pending paths, if any."""
        if not self._pending:
            return None

        paths = list(self._pending)
        self._pending.clear()
        self._cancel_timer()

        triggered_by = describe_trigger(paths)
        window = self.changes_from_last_minutes(CONTEXT_WINDOW_MINUTES)

        try:
            capture = await self.orchestrator.capture(None, triggered_by)
        except Exception:
            logger.exception("auto_capture_failed", triggered_by=triggered_by)
            return None

        if capture is None:
            logger.info("auto_capture_unavailable", triggered_by=triggered_by)
            return None

        capture.file_changes = window
        capture.suggestions = build_suggestions(window)
        self.last_capture = capture
        logger.info(
            "auto_capture_taken",
            timestamp=capture.timestamp,
            files=len(paths),
            triggered_by=triggered_by,
        )
        return capture

    # --- change history ---

    def record_change(self, path: str, kind: ChangeKind) -> Change:
        change = Change(path=path, timestamp=self._clock(), kind=kind)
        self._changes.appendleft(change)
        return change

    def recent_changes(self, limit: int = 10) -> list[Change]:
        return list(self._changes)[:limit]

    def changes_since(self, timestamp: int) -> list[Change]:
        return [c for c in self._changes if c.timestamp >= timestamp]

    def changes_from_last_minutes(self, minutes: float) -> list[Change]:
        return self.changes_since(self._clock() - int(minutes * 60 * 1000))

    def clear_history(self) -> None:
        self._changes.clear()

    def status(self) -> WatcherStatus:
        error = None
        if (
            self._state is WatcherState.RUNNING
            and self._observer is not None
            and not self._observer.is_alive()
        ):
            error = "File observer stopped unexpectedly; restart the server to resume watching"
            logger.error("watcher_backend_stopped", watch_path=str(self.root))

        return WatcherStatus(
            running=self._state is WatcherState.RUNNING,
            enabled=self._enabled,
            watch_path=str(self.root),
            debounce_delay_ms=int(self.debounce_delay * 1000),
            watch_patterns=list(self.watch_patterns),
            pending=len(self._pending),
            error=error,
        )
