"""Watcher tools: toggle auto-capture and inspect recent file changes."""

from __future__ import annotations

import time
from typing import Annotated

from pydantic import Field

from simshot.audit import log_mcp_call
from simshot.server import mcp
from simshot.services import get_watcher

RECENT_CHANGES_SHOWN = 10


@mcp.tool()
async def toggle_auto_capture(
    enabled: Annotated[bool, Field(description="True to enable auto-capture, false to disable")],
) -> str:
    """Enable or disable automatic screenshots when UI files are saved.

    When enabled, a screenshot is taken shortly after saving files in
    components/, screens/ or other UI directories. File changes are still
    tracked while disabled.
    """
    start_time = time.monotonic()
    get_watcher().set_enabled(enabled)

    log_mcp_call(
        tool_name="toggle_auto_capture",
        input_params={"enabled": enabled},
        result_summary=f"enabled={enabled}",
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=True,
    )
    return (
        f"Auto-capture {'enabled' if enabled else 'disabled'}. Screenshots will "
        f"{'now' if enabled else 'no longer'} be automatically captured when UI files change."
    )


@mcp.tool()
async def get_watcher_status() -> str:
    """Show file watcher status, watched patterns and recent file changes.

    Use this to debug why auto-capture isn't firing or to see which files
    triggered recent screenshots.
    """
    start_time = time.monotonic()
    watcher = get_watcher()
    status = watcher.status()
    changes = watcher.recent_changes(RECENT_CHANGES_SHOWN)

    lines = [
        "File Watcher Status:",
        "",
        f"Running: {'Yes' if status.running else 'No'}",
        f"Auto-capture enabled: {'Yes' if status.enabled else 'No'}",
        f"Watch path: {status.watch_path}",
        f"Debounce delay: {status.debounce_delay_ms}ms",
        f"Watch patterns: {', '.join(status.watch_patterns)}",
        f"Pending changes: {status.pending}",
    ]
    if status.error:
        lines.append(f"Error: {status.error}")
    lines.append("")

    if changes:
        now_ms = int(time.time() * 1000)
        lines.append(f"Recent File Changes (last {RECENT_CHANGES_SHOWN}):")
        for change in changes:
            seconds_ago = max(0, (now_ms - change.timestamp) // 1000)
            lines.append(f"  - [{change.kind.value}] {change.path} ({seconds_ago}s ago)")
    else:
        lines.append("No recent file changes tracked.")

    log_mcp_call(
        tool_name="get_watcher_status",
        input_params={},
        result_summary=f"running={status.running}, changes={len(changes)}",
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=True,
    )
    return "\n".join(lines)
