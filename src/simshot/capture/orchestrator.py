"""Capture orchestrator composing the device probe and screenshot store."""

from __future__ import annotations

import asyncio

import structlog

from simshot.capture.store import ScreenshotStore
from simshot.models import BootResult, Capture, Device
from simshot.simulator.probe import DeviceProbe
from simshot.simulator.runner import CommandRunner, SimctlError, make_runner
from simshot.simulator.setup_check import SetupReport, verify_setup

logger = structlog.get_logger(__name__)

MANUAL_TRIGGER = "Manual capture"
DEFAULT_DEVICE_HINT = "iPhone"
RELOAD_NOTIFICATION = "com.apple.mobile.simulator.service.reload"


class CaptureOrchestrator:
    """High-level entry point for captures and simulator control.

    Callers (MCP tools, the file watcher) go through here rather than the
    store so provenance is always recorded.

    Example:
        orchestrator = CaptureOrchestrator(probe, store, runner)
        capture = await orchestrator.capture("Login screen")
    """

    def __init__(
        self,
        probe: DeviceProbe,
        store: ScreenshotStore,
        runner: CommandRunner | None = None,
        boot_settle_seconds: float = 2.0,
    ) -> None:
        self.probe = probe
        self.store = store
        self._run = runner or make_runner()
        self._boot_settle_seconds = boot_settle_seconds

    async def capture(
        self,
        description: str | None = None,
        triggered_by: str = MANUAL_TRIGGER,
    ) -> Capture | None:
        """Capture a screenshot tagged with its provenance.

        Returns None when nothing is booted or the capture fails.
        """
        return await self.store.capture(description=description, triggered_by=triggered_by)

    async def boot(self, device_name: str | None = None) -> BootResult:
        """Boot a simulator unless one is already running.

        Args:
            device_name: Case-insensitive substring of the device name. When
                omitted, the first shut-down iPhone is used.
        """
        status = await self.probe.status()
        if status.running and status.booted is not None:
            return BootResult(
                success=True,
                message=f"Simulator already running: {status.booted.name}",
                device=status.booted,
            )

        target = self._pick_boot_target(status.devices, device_name)
        if target is None:
            return BootResult(
                success=False,
                message=(
                    "No available device found to boot. All devices may already be "
                    "running or no devices match the criteria."
                ),
            )

        try:
            await self._run(["xcrun", "simctl", "boot", target.udid])
            await asyncio.sleep(self._boot_settle_seconds)
            await self._run(["open", "-a", "Simulator"])
        except SimctlError as e:
            logger.error("simulator_boot_failed", device=target.name, error=str(e))
            return BootResult(success=False, message=f"Failed to boot simulator: {e}")

        logger.info("simulator_booted", device=target.name, udid=target.udid)
        return BootResult(success=True, message=f"Successfully booted {target.name}", device=target)

    @staticmethod
    def _pick_boot_target(devices: list[Device], device_name: str | None) -> Device | None:
        if device_name:
            wanted = device_name.lower()
            return next(
                (d for d in devices if d.is_shutdown and wanted in d.name.lower()),
                None,
            )
        return next(
            (d for d in devices if d.is_shutdown and DEFAULT_DEVICE_HINT in d.name),
            None,
        )

    async def reload_app(self) -> BootResult:
        """Ask the app running on the booted simulator to reload."""
        status = await self.probe.status()
        if not status.running or status.booted is None:
            return BootResult(
                success=False,
                message="No booted simulator found. Start the simulator first.",
            )

        try:
            await self._run(
                ["xcrun", "simctl", "notify_post", status.booted.udid, RELOAD_NOTIFICATION]
            )
        except SimctlError as e:
            logger.error("app_reload_failed", error=str(e))
            return BootResult(success=False, message=f"Failed to reload app: {e}")

        return BootResult(
            success=True,
            message="Reload command sent to the app",
            device=status.booted,
        )

    async def verify_setup(self) -> SetupReport:
        return await verify_setup(self._run)
