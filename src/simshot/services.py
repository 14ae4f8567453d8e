"""Process-wide capture services shared by the MCP tools.

Built lazily from settings on first use, like a connection pool. Tests
swap in their own instances with configure_services().
"""

from __future__ import annotations

from simshot.capture import CaptureOrchestrator, ScreenshotStore
from simshot.config import get_settings
from simshot.simulator import DeviceProbe, make_runner
from simshot.watch import ChangeWatcher

_orchestrator: CaptureOrchestrator | None = None
_watcher: ChangeWatcher | None = None


def get_orchestrator() -> CaptureOrchestrator:
    """Get or create the singleton capture orchestrator."""
    global _orchestrator

    if _orchestrator is None:
        settings = get_settings()
        runner = make_runner(settings.command_timeout)
        probe = DeviceProbe(runner)
        store = ScreenshotStore(
            settings.screenshots_path,
            probe,
            runner,
            max_screenshots=settings.max_screenshots,
        )
        _orchestrator = CaptureOrchestrator(
            probe,
            store,
            runner,
            boot_settle_seconds=settings.boot_settle_seconds,
        )

    return _orchestrator


def get_watcher() -> ChangeWatcher:
    """Get or create the singleton file watcher (not started)."""
    global _watcher

    if _watcher is None:
        settings = get_settings()
        rules = settings.load_watch_rules()
        _watcher = ChangeWatcher(
            get_orchestrator(),
            settings.watch_root,
            watch_patterns=rules["watch_patterns"],
            ignore_patterns=rules["ignore_patterns"],
            ui_keywords=rules["ui_keywords"],
            debounce_delay=settings.debounce_delay,
            write_stability=settings.write_stability,
            capacity=settings.recent_changes_capacity,
            enabled=settings.auto_capture,
        )

    return _watcher


def configure_services(
    orchestrator: CaptureOrchestrator | None = None,
    watcher: ChangeWatcher | None = None,
) -> None:
    """Replace (or reset, when called with no arguments) the shared services."""
    global _orchestrator, _watcher
    _orchestrator = orchestrator
    _watcher = watcher
