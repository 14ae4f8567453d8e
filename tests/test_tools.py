"""Tests for MCP tool registration and tool behaviour.

Tools are called directly; FastMCP's decorator returns the function
unchanged. The shared services are swapped for instances backed by a fake
simctl and a temp directory.
"""

import json

import pytest
from conftest import RUNTIME, device_entry
from mcp.server.fastmcp.exceptions import ResourceError, ToolError
from mcp.types import ImageContent, TextContent

from simshot.capture import CaptureOrchestrator, ScreenshotStore
from simshot.services import configure_services
from simshot.simulator import DeviceProbe
from simshot.watch import ChangeWatcher


class IdleObserver:
    def schedule(self, handler, path, recursive=False):
        pass

    def start(self):
        pass

    def stop(self):
        pass

    def join(self, timeout=None):
        pass

    def is_alive(self):
        return True


@pytest.fixture
def mcp_server():
    """Get the MCP server instance."""
    from simshot.server import mcp

    return mcp


@pytest.fixture
def services(tmp_path, simctl):
    """Install an orchestrator and watcher backed by the fake simctl."""
    probe = DeviceProbe(simctl)
    store = ScreenshotStore(tmp_path / "shots", probe, simctl)
    store.initialize()
    orchestrator = CaptureOrchestrator(probe, store, simctl, boot_settle_seconds=0)
    watcher = ChangeWatcher(orchestrator, tmp_path, observer_factory=IdleObserver)
    configure_services(orchestrator, watcher)
    yield orchestrator, watcher
    configure_services()


class TestToolRegistration:
    """Tests for tool registration with MCP server."""

    @pytest.mark.parametrize(
        "name",
        [
            "capture_simulator_screenshot",
            "get_simulator_status",
            "boot_simulator",
            "reload_app",
            "toggle_auto_capture",
            "get_watcher_status",
            "list_recent_screenshots",
            "compare_screenshots",
            "verify_setup",
            "clear_screenshots",
        ],
    )
    def test_tool_registered(self, mcp_server, name):
        tools = mcp_server._tool_manager._tools
        assert name in tools
        assert len(tools[name].description) > 10

    def test_list_limit_bounds(self, mcp_server):
        """list_recent_screenshots limit is an integer in 1..20."""
        schema = mcp_server._tool_manager._tools["list_recent_screenshots"].parameters
        limit = schema["properties"]["limit"]
        assert limit["type"] == "integer"
        assert limit["minimum"] == 1
        assert limit["maximum"] == 20
        assert limit["default"] == 5

    def test_compare_requires_both_timestamps(self, mcp_server):
        schema = mcp_server._tool_manager._tools["compare_screenshots"].parameters
        assert set(schema["required"]) == {"timestamp1", "timestamp2"}

    def test_toggle_requires_enabled(self, mcp_server):
        schema = mcp_server._tool_manager._tools["toggle_auto_capture"].parameters
        assert schema["properties"]["enabled"]["type"] == "boolean"
        assert schema["required"] == ["enabled"]


class TestScreenshotTools:
    """Tests for the capture, list, compare and clear tools."""

    @pytest.mark.asyncio
    async def test_capture_returns_text_and_image(self, services):
        from simshot.tools.screenshots import capture_simulator_screenshot

        text, image = await capture_simulator_screenshot("Login screen")

        assert isinstance(text, TextContent)
        assert "Device: iPhone 15" in text.text
        assert "Description: Login screen" in text.text
        assert isinstance(image, ImageContent)
        assert image.mimeType == "image/png"

    @pytest.mark.asyncio
    async def test_capture_without_simulator(self, services, simctl):
        from simshot.tools.screenshots import capture_simulator_screenshot

        simctl.devices = {RUNTIME: [device_entry("A", "iPhone 15", "Shutdown")]}

        [text] = await capture_simulator_screenshot()

        assert text.text.startswith("Failed to capture screenshot")

    @pytest.mark.asyncio
    async def test_list_shows_provenance(self, services):
        from simshot.tools.screenshots import list_recent_screenshots

        orchestrator, _ = services
        await orchestrator.capture(triggered_by="components/Card.tsx")
        await orchestrator.capture()

        text = await list_recent_screenshots(limit=5)

        assert text.startswith("Recent Screenshots (2):")
        assert "Triggered by: components/Card.tsx" in text
        assert "Triggered by: Manual capture" in text

    @pytest.mark.asyncio
    async def test_list_empty(self, services):
        from simshot.tools.screenshots import list_recent_screenshots

        assert (await list_recent_screenshots()).startswith("No screenshots found")

    @pytest.mark.asyncio
    async def test_compare_two_captures(self, services):
        from simshot.tools.screenshots import compare_screenshots

        orchestrator, _ = services
        first = await orchestrator.capture()
        second = await orchestrator.capture(triggered_by="screens/Home.tsx")

        text, image1, image2 = await compare_screenshots(first.timestamp, second.timestamp)

        assert "Changes detected:" in text.text
        assert 'Trigger changed from "Manual capture" to "screens/Home.tsx"' in text.text
        assert isinstance(image1, ImageContent) and isinstance(image2, ImageContent)

    @pytest.mark.asyncio
    async def test_compare_unknown_timestamp(self, services):
        from simshot.tools.screenshots import compare_screenshots

        orchestrator, _ = services
        first = await orchestrator.capture()

        with pytest.raises(ToolError, match="not found: 42"):
            await compare_screenshots(first.timestamp, 42)

    @pytest.mark.asyncio
    async def test_clear(self, services):
        from simshot.models import ChangeKind
        from simshot.tools.screenshots import clear_screenshots

        orchestrator, watcher = services
        await orchestrator.capture()
        watcher.record_change("components/A.tsx", ChangeKind.MODIFIED)

        text = await clear_screenshots()

        assert "Deleted 1 screenshot(s)" in text
        assert orchestrator.store.list() == []
        assert watcher.recent_changes() == []


class TestSimulatorTools:
    """Tests for status, boot, reload and setup tools."""

    @pytest.mark.asyncio
    async def test_status_lists_devices(self, services):
        from simshot.tools.simulator import get_simulator_status

        text = await get_simulator_status()

        assert "Running: Yes" in text
        assert "Name: iPhone 15" in text
        assert "Available to Boot:" in text
        assert "iPad Air" in text

    @pytest.mark.asyncio
    async def test_status_without_simctl(self, services, simctl):
        from simshot.tools.simulator import get_simulator_status

        simctl.failures.add("list")

        text = await get_simulator_status()

        assert "Running: No" in text
        assert "Available Devices (0 total):" in text

    @pytest.mark.asyncio
    async def test_boot_when_running(self, services):
        from simshot.tools.simulator import boot_simulator

        text = await boot_simulator()

        assert text.startswith("Simulator already running: iPhone 15")

    @pytest.mark.asyncio
    async def test_boot_failure_has_troubleshooting(self, services, simctl):
        from simshot.tools.simulator import boot_simulator

        simctl.devices = {RUNTIME: [device_entry("A", "iPad Air", "Shutdown")]}

        text = await boot_simulator()

        assert "Troubleshooting:" in text

    @pytest.mark.asyncio
    async def test_reload(self, services):
        from simshot.tools.simulator import reload_app

        assert await reload_app() == "Reload command sent to the app"

    @pytest.mark.asyncio
    async def test_verify_setup_text(self, services):
        from simshot.tools.simulator import verify_setup

        text = await verify_setup()

        assert text.startswith("Setup Verification Results:")
        assert "XCODE" in text
        assert "PYTHON" in text


class TestWatcherTools:
    """Tests for toggle_auto_capture and get_watcher_status."""

    @pytest.mark.asyncio
    async def test_toggle(self, services):
        from simshot.tools.watcher import toggle_auto_capture

        _, watcher = services

        text = await toggle_auto_capture(False)

        assert text.startswith("Auto-capture disabled")
        assert watcher.enabled is False

    @pytest.mark.asyncio
    async def test_status_shows_recent_changes(self, services):
        from simshot.models import ChangeKind
        from simshot.tools.watcher import get_watcher_status

        _, watcher = services
        watcher.record_change("components/A.tsx", ChangeKind.ADDED)

        text = await get_watcher_status()

        assert "Auto-capture enabled: Yes" in text
        assert "Debounce delay: 2000ms" in text
        assert "[added] components/A.tsx" in text


class TestResources:
    """Tests for the simulator:// resources."""

    @pytest.mark.asyncio
    async def test_latest_screenshot(self, services):
        from simshot.resources import latest_screenshot

        orchestrator, _ = services
        capture = await orchestrator.capture()

        data = latest_screenshot()

        assert data.startswith(b"\x89PNG")
        assert orchestrator.store.latest().timestamp == capture.timestamp

    def test_latest_screenshot_empty(self, services):
        from simshot.resources import latest_screenshot

        with pytest.raises(ResourceError):
            latest_screenshot()

    @pytest.mark.asyncio
    async def test_history_is_json(self, services):
        from simshot.resources import screenshot_history

        orchestrator, _ = services
        await orchestrator.capture("Home")

        history = json.loads(screenshot_history())

        [entry] = history["screenshots"]
        assert entry["description"] == "Home"
        assert entry["device"]["name"] == "iPhone 15"
        assert history["recent_file_changes"] == []

    @pytest.mark.asyncio
    async def test_screenshot_by_timestamp(self, services):
        from simshot.resources import screenshot_by_timestamp

        orchestrator, _ = services
        capture = await orchestrator.capture()

        assert screenshot_by_timestamp(str(capture.timestamp)).startswith(b"\x89PNG")
        with pytest.raises(ResourceError):
            screenshot_by_timestamp("not-a-number")
        with pytest.raises(ResourceError):
            screenshot_by_timestamp("1")
