"""Tests for the simctl device probe."""

import json

import pytest
from conftest import RUNTIME, FakeSimctl, device_entry

from simshot.simulator import DeviceProbe, parse_devices


class TestParseDevices:
    """Tests for parse_devices()."""

    def test_flattens_runtime_groups(self):
        payload = json.dumps(
            {
                "devices": {
                    RUNTIME: [device_entry("A", "iPhone 15", "Shutdown")],
                    "com.apple.CoreSimulator.SimRuntime.iOS-16-4": [
                        device_entry("B", "iPhone 14", "Booted")
                    ],
                }
            }
        )

        devices = parse_devices(payload)

        assert [(d.udid, d.runtime) for d in devices] == [
            ("A", RUNTIME),
            ("B", "com.apple.CoreSimulator.SimRuntime.iOS-16-4"),
        ]
        assert devices[1].is_booted
        assert devices[0].is_shutdown

    def test_missing_devices_key_raises(self):
        with pytest.raises(ValueError):
            parse_devices(json.dumps({"runtimes": []}))

    def test_invalid_json_raises(self):
        """json.JSONDecodeError is a ValueError."""
        with pytest.raises(ValueError):
            parse_devices("not json")


class TestDeviceProbe:
    """Tests for DeviceProbe.status()."""

    @pytest.mark.asyncio
    async def test_reports_booted_device(self, simctl):
        status = await DeviceProbe(simctl).status()

        assert status.running is True
        assert status.booted.udid == "BOOTED-1"
        assert len(status.devices) == 2

    @pytest.mark.asyncio
    async def test_nothing_booted(self):
        simctl = FakeSimctl(devices={RUNTIME: [device_entry("A", "iPhone 15", "Shutdown")]})

        status = await DeviceProbe(simctl).status()

        assert status.running is False
        assert status.booted is None
        assert len(status.devices) == 1

    @pytest.mark.asyncio
    async def test_first_booted_device_wins(self):
        """Several booted devices: the first one listed is reported."""
        simctl = FakeSimctl(
            devices={
                RUNTIME: [
                    device_entry("A", "iPad Pro", "Booted"),
                    device_entry("B", "iPhone 15", "Booted"),
                ]
            }
        )

        status = await DeviceProbe(simctl).status()

        assert status.booted.udid == "A"

    @pytest.mark.asyncio
    async def test_command_failure_yields_empty_status(self, simctl):
        """A failing simctl never raises out of status()."""
        simctl.failures.add("list")

        status = await DeviceProbe(simctl).status()

        assert status.running is False
        assert status.devices == []
        assert status.booted is None

    @pytest.mark.asyncio
    async def test_malformed_output_yields_empty_status(self, simctl):
        simctl.list_output = "{truncated"

        status = await DeviceProbe(simctl).status()

        assert status.running is False
        assert status.devices == []

    @pytest.mark.asyncio
    async def test_queries_fresh_each_call(self, simctl):
        """Status is never cached between calls."""
        probe = DeviceProbe(simctl)
        await probe.status()

        simctl.devices = {RUNTIME: [device_entry("A", "iPhone 15", "Shutdown")]}
        status = await probe.status()

        assert status.running is False
        assert len(simctl.ran("list")) == 2
