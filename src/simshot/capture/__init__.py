"""Capture module - screenshot storage, orchestration and comparison."""

from simshot.capture.compare import NO_CHANGES, compare, describe_changes
from simshot.capture.orchestrator import MANUAL_TRIGGER, CaptureOrchestrator
from simshot.capture.store import ScreenshotStore

__all__ = [
    "MANUAL_TRIGGER",
    "NO_CHANGES",
    "CaptureOrchestrator",
    "ScreenshotStore",
    "compare",
    "describe_changes",
]
