"""MCP resources: latest screenshot, history, and screenshots by timestamp."""

from __future__ import annotations

import json
from pathlib import Path

from mcp.server.fastmcp.exceptions import ResourceError

from simshot.server import mcp
from simshot.services import get_orchestrator, get_watcher


def _read_png(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ResourceError(f"Screenshot file could not be read: {e}") from e


@mcp.resource(
    "simulator://latest-screenshot",
    name="Latest iOS Simulator Screenshot",
    description="Most recent simulator screenshot.",
    mime_type="image/png",
)
def latest_screenshot() -> bytes:
    latest = get_orchestrator().store.latest()
    if latest is None:
        raise ResourceError(
            "No screenshots available. Make sure the iOS simulator is running "
            "and capture a screenshot."
        )
    return _read_png(latest.path)


@mcp.resource(
    "simulator://screenshot-history",
    name="Screenshot History",
    description="All stored screenshots with metadata, newest first.",
    mime_type="application/json",
)
def screenshot_history() -> str:
    captures = get_orchestrator().store.list()
    recent_changes = get_watcher().changes_from_last_minutes(5)
    return json.dumps(
        {
            "screenshots": [c.to_dict() for c in captures],
            "recent_file_changes": [c.to_dict() for c in recent_changes],
        },
        indent=2,
    )


@mcp.resource(
    "simulator://screenshot/{timestamp}",
    name="Screenshot by timestamp",
    description="A stored screenshot identified by its capture timestamp.",
    mime_type="image/png",
)
def screenshot_by_timestamp(timestamp: str) -> bytes:
    try:
        wanted = int(timestamp)
    except ValueError:
        raise ResourceError(f"Invalid screenshot timestamp: {timestamp}") from None

    capture = get_orchestrator().store.by_timestamp(wanted)
    if capture is None:
        raise ResourceError(f"Screenshot with timestamp {wanted} not found.")
    return _read_png(capture.path)
