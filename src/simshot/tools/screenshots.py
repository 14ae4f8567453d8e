"""Screenshot tools: capture, browse, compare and clear.

Captures always go through the orchestrator so manual captures are tagged
as such, distinct from captures triggered by the file watcher.
"""

from __future__ import annotations

import time
from typing import Annotated

import structlog
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ImageContent, TextContent
from pydantic import Field

from simshot.audit import log_mcp_call
from simshot.capture import MANUAL_TRIGGER, compare
from simshot.models import Capture
from simshot.server import mcp
from simshot.services import get_orchestrator, get_watcher

logger = structlog.get_logger(__name__)

MAX_LIST_LIMIT = 20


def _image(data: str) -> ImageContent:
    return ImageContent(type="image", data=data, mimeType="image/png")


def _when(capture: Capture) -> str:
    return capture.captured_at.strftime("%Y-%m-%d %H:%M:%S")


def _device_name(capture: Capture) -> str:
    return capture.device.name if capture.device else "Unknown"


@mcp.tool(structured_output=False)
async def capture_simulator_screenshot(
    description: Annotated[
        str | None,
        Field(
            max_length=500,
            description=(
                'Optional description for context (e.g., "Login screen after styling '
                'changes"). This helps track what was being worked on.'
            ),
        ),
    ] = None,
) -> list[TextContent | ImageContent]:
    """Capture a screenshot from the running iOS simulator and display it.

    Prerequisite: a simulator must be booted (check with get_simulator_status).
    Use after UI changes or whenever you need to see the app's current state.
    """
    start_time = time.monotonic()
    params = {"description": description}

    orchestrator = get_orchestrator()
    capture = await orchestrator.capture(description, MANUAL_TRIGGER)

    if capture is None:
        log_mcp_call(
            tool_name="capture_simulator_screenshot",
            input_params=params,
            result_summary="No capture (no booted simulator or capture failed)",
            duration_ms=(time.monotonic() - start_time) * 1000,
            success=True,
        )
        return [
            TextContent(
                type="text",
                text=(
                    "Failed to capture screenshot. Make sure the iOS simulator is running "
                    "and booted (use get_simulator_status or boot_simulator)."
                ),
            )
        ]

    try:
        data = orchestrator.store.read_as_base64(capture.path)
    except OSError as e:
        log_mcp_call(
            tool_name="capture_simulator_screenshot",
            input_params=params,
            result_summary="",
            duration_ms=(time.monotonic() - start_time) * 1000,
            success=False,
            error=str(e),
        )
        raise ToolError("Screenshot was captured but could not be read")

    lines = [
        "Screenshot captured successfully!",
        "",
        f"Timestamp: {capture.timestamp} ({_when(capture)})",
        f"Device: {_device_name(capture)}",
    ]
    if description:
        lines.append(f"Description: {description}")

    log_mcp_call(
        tool_name="capture_simulator_screenshot",
        input_params=params,
        result_summary=f"Captured {capture.timestamp} on {_device_name(capture)}",
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=True,
    )
    return [TextContent(type="text", text="\n".join(lines)), _image(data)]


@mcp.tool()
async def list_recent_screenshots(
    limit: Annotated[
        int,
        Field(
            ge=1,
            le=MAX_LIST_LIMIT,
            description="Maximum number of screenshots to return (default: 5, max: 20)",
        ),
    ] = 5,
) -> str:
    """List the most recent screenshots with what triggered each capture.

    Use this to browse history or find timestamps for compare_screenshots.
    """
    start_time = time.monotonic()
    captures = get_orchestrator().store.list_recent(min(limit, MAX_LIST_LIMIT))

    if not captures:
        result_text = (
            "No screenshots found. Capture a screenshot first using the "
            "capture_simulator_screenshot tool."
        )
    else:
        lines = [f"Recent Screenshots ({len(captures)}):", ""]
        for capture in captures:
            lines.append(f"- {_when(capture)}")
            lines.append(f"  Timestamp: {capture.timestamp}")
            lines.append(f"  Device: {_device_name(capture)}")
            lines.append(f"  Triggered by: {capture.triggered_by or 'Manual'}")
            if capture.file_changes:
                shown = ", ".join(c.path for c in capture.file_changes[:3])
                more = "..." if len(capture.file_changes) > 3 else ""
                lines.append(f"  Files changed: {shown}{more}")
            if capture.suggestions:
                lines.append(f"  Tip: {capture.suggestions[0]}")
            lines.append("")
        lines.append("Use compare_screenshots with timestamps to compare any two screenshots.")
        result_text = "\n".join(lines)

    log_mcp_call(
        tool_name="list_recent_screenshots",
        input_params={"limit": limit},
        result_summary=f"Listed {len(captures)} screenshots",
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=True,
    )
    return result_text


@mcp.tool(structured_output=False)
async def compare_screenshots(
    timestamp1: Annotated[int, Field(description="Timestamp of the first screenshot")],
    timestamp2: Annotated[int, Field(description="Timestamp of the second screenshot")],
) -> list[TextContent | ImageContent]:
    """Compare two screenshots by their metadata and show both images.

    Reports time between captures, device and trigger differences, and files
    changed before the second capture. Timestamps come from
    list_recent_screenshots.
    """
    start_time = time.monotonic()
    params = {"timestamp1": timestamp1, "timestamp2": timestamp2}
    store = get_orchestrator().store

    result = compare(store, timestamp1, timestamp2)
    if not result.found:
        missing = [
            str(ts)
            for ts, capture in ((timestamp1, result.capture1), (timestamp2, result.capture2))
            if capture is None
        ]
        log_mcp_call(
            tool_name="compare_screenshots",
            input_params=params,
            result_summary="",
            duration_ms=(time.monotonic() - start_time) * 1000,
            success=False,
            error=f"not found: {', '.join(missing)}",
        )
        raise ToolError(f"Screenshot(s) not found: {', '.join(missing)}")

    first, second = result.capture1, result.capture2
    lines = ["Screenshot Comparison:", ""]
    for label, capture in (("Screenshot 1", first), ("Screenshot 2", second)):
        lines.append(f"{label}: {_when(capture)}")
        lines.append(f"  Device: {_device_name(capture)}")
        lines.append(f"  Triggered by: {capture.triggered_by or 'Manual'}")
        lines.append("")
    lines.append(f"Time difference: {result.time_difference_formatted}")
    lines.append("")
    lines.append("Changes detected:")
    lines.extend(f"  - {change}" for change in result.changes)

    try:
        data1 = store.read_as_base64(first.path)
        data2 = store.read_as_base64(second.path)
    except OSError as e:
        logger.exception("compare_read_failed")
        log_mcp_call(
            tool_name="compare_screenshots",
            input_params=params,
            result_summary="",
            duration_ms=(time.monotonic() - start_time) * 1000,
            success=False,
            error=str(e),
        )
        raise ToolError("Screenshot files could not be read")

    log_mcp_call(
        tool_name="compare_screenshots",
        input_params=params,
        result_summary=f"{len(result.changes)} change line(s)",
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=True,
    )
    return [TextContent(type="text", text="\n".join(lines)), _image(data1), _image(data2)]


@mcp.tool()
async def clear_screenshots() -> str:
    """Delete all captured screenshots and the file change history.

    All screenshot history is permanently removed. Use with caution.
    """
    start_time = time.monotonic()

    deleted = get_orchestrator().store.clear_all()
    get_watcher().clear_history()

    log_mcp_call(
        tool_name="clear_screenshots",
        input_params={},
        result_summary=f"Deleted {deleted} screenshots",
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=True,
    )
    return (
        "Screenshot Cleanup Complete\n\n"
        f"Deleted {deleted} screenshot(s)\n"
        "Cleared file change history\n\n"
        "You can start capturing fresh screenshots now."
    )
