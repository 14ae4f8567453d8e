"""Audit logging for MCP tool invocations.

Every tool call is recorded through log_mcp_call() with timing,
parameters (truncated), a result summary and any error, which gives a
trail of what the assistant asked the simulator to do.
"""

from __future__ import annotations

from typing import Any

import structlog

logger = structlog.get_logger("simshot.audit")

# Truncation limits to prevent log bloat
MAX_STRING_LENGTH = 200
TRUNCATED_PREFIX_LENGTH = 100
MAX_RESULT_LENGTH = 200
MAX_ERROR_LENGTH = 500
TRUNCATE_SUFFIX = "...[truncated]"


def _truncate_string(value: str, max_length: int = MAX_STRING_LENGTH) -> str:
    """Truncate a string if it exceeds max length.

    Args:
        value: String to check, such as a capture description
        max_length: Longest string kept unchanged

    Returns:
        The string itself, or its first TRUNCATED_PREFIX_LENGTH characters
        followed by TRUNCATE_SUFFIX
    """
    if len(value) <= max_length:
        return value
    return value[:TRUNCATED_PREFIX_LENGTH] + TRUNCATE_SUFFIX


def _sanitize_for_log(params: dict[str, Any]) -> dict[str, Any]:
    """Prepare tool parameters for the audit log.

    Long strings are truncated so a verbose description or device name
    can't bloat the log. Nested dicts are handled recursively; list items
    are truncated one level deep.

    Args:
        params: Parameters the tool was called with

    Returns:
        A new dictionary; ``params`` is left untouched
    """
    sanitized: dict[str, Any] = {}

    for key, value in params.items():
        if isinstance(value, str):
            sanitized[key] = _truncate_string(value)
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_for_log(value)
        elif isinstance(value, list):
            sanitized[key] = [
                _truncate_string(item) if isinstance(item, str) else item
                for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def log_mcp_call(
    tool_name: str,
    input_params: dict[str, Any],
    result_summary: str,
    duration_ms: float,
    success: bool,
    error: str | None = None,
) -> None:
    """Log an MCP tool invocation with structured data.

    Call after every tool execution, successful or not.

    Args:
        tool_name: Name of the MCP tool that was invoked
        input_params: Dictionary of parameters passed to the tool
        result_summary: Brief description of the result
        duration_ms: Execution time in milliseconds
        success: Whether the tool completed successfully
        error: Error message if the tool failed (optional)

    Example:
        >>> log_mcp_call(
        ...     tool_name="capture_simulator_screenshot",
        ...     input_params={"description": "Login screen"},
        ...     result_summary="Captured 1700000000000 on iPhone 16",
        ...     duration_ms=812.4,
        ...     success=True,
        ... )
    """
    log_fields = {
        "tool": tool_name,
        "params": _sanitize_for_log(input_params),
        "result_summary": _truncate_string(result_summary, MAX_RESULT_LENGTH),
        "duration_ms": round(duration_ms, 2),
        "success": success,
    }

    if success:
        logger.info("mcp_tool_invoked", **log_fields)
    else:
        if error:
            log_fields["error"] = _truncate_string(error, MAX_ERROR_LENGTH)
        logger.error("mcp_tool_failed", **log_fields)
