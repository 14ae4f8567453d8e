"""Watch module - file-change observation, relevance filtering and debounce."""

from simshot.watch.observer import FileEventBridge, matches_any
from simshot.watch.relevance import Relevance, RelevanceFilter, in_ui_directory
from simshot.watch.watcher import (
    ChangeWatcher,
    WatcherState,
    WatcherStatus,
    build_suggestions,
    describe_trigger,
)

__all__ = [
    "ChangeWatcher",
    "FileEventBridge",
    "Relevance",
    "RelevanceFilter",
    "WatcherState",
    "WatcherStatus",
    "build_suggestions",
    "describe_trigger",
    "in_ui_directory",
    "matches_any",
]
