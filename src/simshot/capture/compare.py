"""Metadata-only comparison of two captures."""

from __future__ import annotations

from simshot.capture.store import ScreenshotStore
from simshot.models import Capture, ComparisonResult

NO_CHANGES = "No significant metadata changes detected"


def describe_changes(first: Capture, second: Capture) -> list[str]:
    """List human-readable metadata differences from first to second.

    Always returns at least one line.
    """
    changes: list[str] = []

    name1 = first.device.name if first.device else None
    name2 = second.device.name if second.device else None
    if name1 != name2:
        changes.append(f"Device changed from {name1} to {name2}")

    if first.triggered_by != second.triggered_by:
        changes.append(f'Trigger changed from "{first.triggered_by}" to "{second.triggered_by}"')

    if second.file_changes:
        seen = {c.path for c in first.file_changes or []}
        new_files: list[str] = []
        for change in second.file_changes:
            if change.path not in seen and change.path not in new_files:
                new_files.append(change.path)
        if new_files:
            changes.append(f"New files modified: {', '.join(new_files)}")

    return changes or [NO_CHANGES]


def compare(store: ScreenshotStore, timestamp1: int, timestamp2: int) -> ComparisonResult:
    """Compare the captures identified by two timestamps.

    ``found`` is False when either timestamp has no capture.
    """
    first = store.by_timestamp(timestamp1)
    second = store.by_timestamp(timestamp2)

    if first is None or second is None:
        return ComparisonResult(
            found=False,
            timestamp1=timestamp1,
            timestamp2=timestamp2,
            capture1=first,
            capture2=second,
        )

    return ComparisonResult(
        found=True,
        timestamp1=timestamp1,
        timestamp2=timestamp2,
        capture1=first,
        capture2=second,
        time_difference_ms=abs(timestamp2 - timestamp1),
        changes=describe_changes(first, second),
    )
