"""Shared fixtures: a fake simctl, a store in a temp dir, and helpers."""

import itertools
import json
from pathlib import Path

import pytest
from PIL import Image

from simshot.capture import CaptureOrchestrator, ScreenshotStore
from simshot.models import Capture, Change, ChangeKind
from simshot.simulator import DeviceProbe, SimctlError

RUNTIME = "com.apple.CoreSimulator.SimRuntime.iOS-17-0"


def device_entry(udid: str, name: str, state: str) -> dict:
    return {"udid": udid, "name": name, "state": state, "isAvailable": True}


class FakeSimctl:
    """Stands in for the process runner.

    Answers ``simctl list devices --json`` from ``self.devices``, writes a
    small PNG for ``io booted screenshot``, and raises SimctlError for any
    subcommand listed in ``self.failures``.
    """

    def __init__(self, devices: dict | None = None) -> None:
        if devices is None:
            devices = {
                RUNTIME: [
                    device_entry("BOOTED-1", "iPhone 15", "Booted"),
                    device_entry("SHUT-1", "iPad Air", "Shutdown"),
                ]
            }
        self.devices = devices
        self.commands: list[list[str]] = []
        self.failures: set[str] = set()
        self.write_image = True
        self.list_output: str | None = None

    @staticmethod
    def subcommand(command: list[str]) -> str:
        if command[:2] == ["xcrun", "simctl"] and len(command) > 2:
            return command[2]
        return command[0]

    def ran(self, subcommand: str) -> list[list[str]]:
        return [c for c in self.commands if self.subcommand(c) == subcommand]

    async def __call__(self, command) -> str:
        command = list(command)
        self.commands.append(command)
        sub = self.subcommand(command)

        if sub in self.failures:
            raise SimctlError(command, "exit 1: simulated failure", returncode=1)

        if sub == "list" and "--json" in command:
            if self.list_output is not None:
                return self.list_output
            return json.dumps({"devices": self.devices})

        if sub == "io" and "screenshot" in command and self.write_image:
            Image.new("RGB", (39, 84), color="white").save(command[-1], format="PNG")

        if sub == "xcodebuild":
            return "Xcode 15.0\nBuild version 15A240d\n"

        return ""


def counting_clock(start: int = 1_700_000_000_000, step: int = 1000):
    counter = itertools.count(start, step)
    return lambda: next(counter)


@pytest.fixture
def simctl() -> FakeSimctl:
    return FakeSimctl()


@pytest.fixture
def store(tmp_path: Path, simctl: FakeSimctl) -> ScreenshotStore:
    screenshots = ScreenshotStore(
        tmp_path / "screenshots",
        DeviceProbe(simctl),
        simctl,
        max_screenshots=50,
        clock=counting_clock(),
    )
    screenshots.initialize()
    return screenshots


@pytest.fixture
def orchestrator(store: ScreenshotStore, simctl: FakeSimctl) -> CaptureOrchestrator:
    return CaptureOrchestrator(store._probe, store, simctl, boot_settle_seconds=0)


class RecordingOrchestrator:
    """Orchestrator double that records capture calls."""

    def __init__(self, succeed: bool = True) -> None:
        self.calls: list[tuple[str | None, str]] = []
        self.succeed = succeed

    async def capture(self, description=None, triggered_by="Manual capture"):
        self.calls.append((description, triggered_by))
        if not self.succeed:
            return None
        timestamp = 1_700_000_000_000 + len(self.calls)
        return Capture(
            timestamp=timestamp,
            filename=f"screenshot-{timestamp}.png",
            path=f"/tmp/screenshot-{timestamp}.png",
            triggered_by=triggered_by,
            description=description,
        )


def change(path: str, timestamp: int = 1_700_000_000_000) -> Change:
    return Change(path=path, timestamp=timestamp, kind=ChangeKind.MODIFIED)
