"""Structured JSON logging for simshot.

stdout carries the MCP JSON-RPC stream, so every log line goes to stderr.
setup_logging() must run before any module that logs at import time.

Usage:
    from simshot.logging import setup_logging

    setup_logging("INFO")
    log = structlog.get_logger("simshot.capture")
    log.info("capture_taken", timestamp=1700000000000, triggered_by="Manual capture")
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(level: str = "INFO") -> None:
    """Configure structlog to render JSON lines on stderr.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries (watchdog, mcp) log through stdlib logging
    logging.basicConfig(
        level=level.upper(),
        stream=sys.stderr,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
