"""Simulator control tools: status, boot, reload and setup diagnostics."""

from __future__ import annotations

import time
from typing import Annotated

from pydantic import Field

from simshot.audit import log_mcp_call
from simshot.models import SimulatorStatus
from simshot.server import mcp
from simshot.services import get_orchestrator

MAX_SHUTDOWN_LISTED = 5


def format_status(status: SimulatorStatus) -> str:
    """Render a simulator status as display text."""
    lines = ["iOS Simulator Status:", "", f"Running: {'Yes' if status.running else 'No'}", ""]

    if status.booted is not None:
        lines += [
            "Booted Device:",
            f"  Name: {status.booted.name}",
            f"  UDID: {status.booted.udid}",
            f"  Runtime: {status.booted.runtime}",
            "",
            "Ready to capture screenshots!",
            "",
        ]
    else:
        lines += [
            "No simulator is currently running.",
            "",
            "Suggested Actions:",
            "  1. Use the boot_simulator tool to start one automatically",
            "  2. Or run your app's iOS target (e.g. npm run ios)",
            "  3. Or open Simulator.app and select a device",
            "",
        ]

    booted = [d for d in status.devices if d.is_booted]
    shutdown = [d for d in status.devices if d.is_shutdown]
    other = [d for d in status.devices if not d.is_booted and not d.is_shutdown]

    lines.append(f"Available Devices ({len(status.devices)} total):")
    if booted:
        lines.append("  Booted:")
        lines.extend(f"    - {d.name}" for d in booted)
    if shutdown:
        lines.append("  Available to Boot:")
        lines.extend(f"    - {d.name}" for d in shutdown[:MAX_SHUTDOWN_LISTED])
        if len(shutdown) > MAX_SHUTDOWN_LISTED:
            lines.append(f"    ... and {len(shutdown) - MAX_SHUTDOWN_LISTED} more")
    if other:
        lines.append("  Other:")
        lines.extend(f"    - {d.name} ({d.state})" for d in other)

    return "\n".join(lines)


@mcp.tool()
async def get_simulator_status() -> str:
    """Check whether an iOS simulator is running and list all devices.

    Use this FIRST before capturing screenshots or when troubleshooting. If
    nothing is booted, boot_simulator can start a device.
    """
    start_time = time.monotonic()
    status = await get_orchestrator().probe.status()

    log_mcp_call(
        tool_name="get_simulator_status",
        input_params={},
        result_summary=(
            f"booted={status.booted.name if status.booted else None}, "
            f"devices={len(status.devices)}"
        ),
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=True,
    )
    return format_status(status)


@mcp.tool()
async def boot_simulator(
    device_name: Annotated[
        str | None,
        Field(
            max_length=200,
            description=(
                'Optional device name to boot (e.g., "iPhone 16 Pro"). If not '
                "specified, boots the first available iPhone."
            ),
        ),
    ] = None,
) -> str:
    """Start the iOS simulator if it's not currently running.

    Succeeds immediately when a device is already booted.
    """
    start_time = time.monotonic()
    result = await get_orchestrator().boot(device_name)

    log_mcp_call(
        tool_name="boot_simulator",
        input_params={"device_name": device_name},
        result_summary=result.message,
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=result.success,
        error=None if result.success else result.message,
    )

    if result.success:
        return (
            f"{result.message}\n\n"
            "The simulator should now be running. You can capture screenshots or wait "
            "for auto-capture when you save UI files."
        )
    return (
        f"{result.message}\n\n"
        "Troubleshooting:\n"
        "- Check that Xcode is installed\n"
        "- Try running: xcrun simctl list devices\n"
        "- Use verify_setup tool for detailed diagnostics"
    )


@mcp.tool()
async def reload_app() -> str:
    """Ask the app on the booted simulator to reload."""
    start_time = time.monotonic()
    result = await get_orchestrator().reload_app()

    log_mcp_call(
        tool_name="reload_app",
        input_params={},
        result_summary=result.message,
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=result.success,
        error=None if result.success else result.message,
    )
    return result.message


@mcp.tool()
async def verify_setup() -> str:
    """Verify that Xcode, the iOS Simulator and simctl are installed and usable.

    Returns detailed diagnostics with fix instructions.
    """
    start_time = time.monotonic()
    report = await get_orchestrator().verify_setup()

    lines = [
        "Setup Verification Results:",
        "",
        f"Overall Status: {'PASSED' if report.is_valid else 'ISSUES FOUND'}",
        report.summary,
        "",
        "Detailed Checks:",
        "",
    ]
    for check in report.checks:
        lines.append(f"[{'ok' if check.passed else 'FAIL'}] {check.name.upper()}:")
        lines.append(f"   {check.message}")
        if check.version:
            lines.append(f"   Version: {check.version}")
        if check.fix_command:
            lines.append(f"   Fix: {check.fix_command}")
        lines.append("")

    if report.fix_commands:
        lines.append("Recommended Actions:")
        lines.extend(f"{i}. {fix}" for i, fix in enumerate(report.fix_commands, start=1))

    log_mcp_call(
        tool_name="verify_setup",
        input_params={},
        result_summary=report.summary,
        duration_ms=(time.monotonic() - start_time) * 1000,
        success=True,
    )
    return "\n".join(lines)
