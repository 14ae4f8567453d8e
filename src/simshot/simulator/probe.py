"""Device status probe backed by ``xcrun simctl list devices --json``."""

from __future__ import annotations

import json

import structlog

from simshot.models import Device, SimulatorStatus
from simshot.simulator.runner import CommandRunner, SimctlError, make_runner

logger = structlog.get_logger(__name__)

LIST_DEVICES = ["xcrun", "simctl", "list", "devices", "--json"]


def parse_devices(payload: str) -> list[Device]:
    """Parse simctl's JSON device listing, grouped by runtime.

    Raises:
        ValueError: If the payload is not the expected JSON shape
    """
    data = json.loads(payload)
    groups = data.get("devices") if isinstance(data, dict) else None
    if not isinstance(groups, dict):
        raise ValueError("simctl output has no 'devices' mapping")

    devices: list[Device] = []
    for runtime, entries in groups.items():
        if not isinstance(entries, list):
            continue
        for entry in entries:
            devices.append(
                Device(
                    udid=entry.get("udid", ""),
                    name=entry.get("name", ""),
                    state=entry.get("state", ""),
                    runtime=runtime,
                )
            )
    return devices


class DeviceProbe:
    """Reports the simulator device list and the booted device.

    Every call queries simctl afresh: devices boot and shut down outside
    this process, so nothing is cached.
    """

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._run = runner or make_runner()

    async def status(self) -> SimulatorStatus:
        """Return the current simulator status.

        Never raises. A failed query yields a status with no devices.
        """
        try:
            devices = parse_devices(await self._run(LIST_DEVICES))
        except (SimctlError, ValueError, AttributeError) as e:
            logger.warning("simulator_status_failed", error=str(e))
            return SimulatorStatus(running=False, devices=[])

        # First booted device wins when several report Booted
        booted = next((d for d in devices if d.is_booted), None)
        return SimulatorStatus(running=booted is not None, devices=devices, booted=booted)
