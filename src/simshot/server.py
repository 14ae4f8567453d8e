"""simshot MCP Server - iOS simulator screenshots for coding assistants.

CRITICAL: logging must be configured to write to stderr ONLY before any
other imports that might log. This is essential for stdio transport - any
stdout output breaks the JSON-RPC protocol.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from simshot.config import get_settings
from simshot.logging import setup_logging

setup_logging(get_settings().log_level)

# Now safe to import other modules
import structlog  # noqa: E402
from mcp.server.fastmcp import FastMCP  # noqa: E402

from simshot.services import get_orchestrator, get_watcher  # noqa: E402

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Prepare the screenshots directory and run the file watcher."""
    orchestrator = get_orchestrator()
    orchestrator.store.initialize()

    file_watcher = get_watcher()
    try:
        await file_watcher.start()
    except OSError as e:
        # Screenshots still work without auto-capture
        logger.error("watcher_start_failed", watch_path=str(file_watcher.root), error=str(e))

    try:
        yield
    finally:
        await file_watcher.stop()
        logger.info("mcp_server_stopped")


# Create the MCP server instance
mcp = FastMCP(name="ios-simulator-screenshots", lifespan=lifespan)

# Register tools and resources by importing (decorators register with mcp instance)
from simshot import resources  # noqa: F401 E402
from simshot.tools import screenshots  # noqa: F401 E402
from simshot.tools import simulator  # noqa: F401 E402
from simshot.tools import watcher  # noqa: F401 E402


def main() -> None:
    """Run the MCP server with stdio transport."""
    settings = get_settings()
    logger.info(
        "mcp_server_starting",
        name="ios-simulator-screenshots",
        transport="stdio",
        screenshots_dir=str(settings.screenshots_path),
        watch_path=str(settings.watch_root),
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
