"""Simulator module - simctl invocation, device probe and setup checks."""

from simshot.simulator.probe import DeviceProbe, parse_devices
from simshot.simulator.runner import CommandRunner, SimctlError, make_runner, run_command
from simshot.simulator.setup_check import SetupCheck, SetupReport, verify_setup

__all__ = [
    "CommandRunner",
    "DeviceProbe",
    "SetupCheck",
    "SetupReport",
    "SimctlError",
    "make_runner",
    "parse_devices",
    "run_command",
    "verify_setup",
]
