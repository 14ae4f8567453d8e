"""Environment diagnostics for the verify_setup tool."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

from simshot.simulator.runner import CommandRunner, SimctlError

SIMULATOR_APP = Path("/Applications/Xcode.app/Contents/Developer/Applications/Simulator.app")
MIN_PYTHON = (3, 10)


@dataclass
class SetupCheck:
    name: str
    passed: bool
    message: str
    version: str | None = None
    fix_command: str | None = None


@dataclass
class SetupReport:
    checks: list[SetupCheck] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    fix_commands: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def summary(self) -> str:
        if self.is_valid:
            return "All checks passed! Your setup is ready to use."
        return f"Found {len(self.issues)} issue(s) that need attention."

    def fail(self, check: SetupCheck, issue: str, fix: str) -> None:
        self.checks.append(check)
        self.issues.append(issue)
        self.fix_commands.append(fix)


async def verify_setup(run: CommandRunner, simulator_app: Path = SIMULATOR_APP) -> SetupReport:
    """Check Xcode, simctl, Simulator.app, Python and command permissions."""
    report = SetupReport()

    try:
        output = await run(["xcodebuild", "-version"])
        version = output.splitlines()[0] if output else "unknown"
        report.checks.append(
            SetupCheck("xcode", True, f"Xcode is installed: {version}", version=version)
        )
    except SimctlError:
        report.fail(
            SetupCheck(
                "xcode",
                False,
                "Xcode is not installed or not in PATH",
                fix_command="Install Xcode from the Mac App Store",
            ),
            "Xcode not found",
            "Install Xcode from Mac App Store and run: "
            "sudo xcode-select --switch /Applications/Xcode.app/Contents/Developer",
        )

    try:
        await run(["xcrun", "simctl", "help"])
        report.checks.append(SetupCheck("simctl", True, "xcrun simctl is available"))
    except SimctlError:
        report.fail(
            SetupCheck(
                "simctl",
                False,
                "xcrun simctl is not available",
                fix_command="Install Xcode Command Line Tools: xcode-select --install",
            ),
            "simctl not available",
            "xcode-select --install",
        )

    if simulator_app.exists():
        report.checks.append(SetupCheck("simulator", True, "iOS Simulator app found"))
    else:
        report.fail(
            SetupCheck(
                "simulator",
                False,
                "iOS Simulator app not found",
                fix_command="Ensure Xcode is properly installed",
            ),
            "Simulator.app not found",
            "Reinstall Xcode or repair installation",
        )

    python_version = ".".join(str(part) for part in sys.version_info[:3])
    if sys.version_info[:2] >= MIN_PYTHON:
        report.checks.append(
            SetupCheck(
                "python",
                True,
                f"Python version is compatible: {python_version}",
                version=python_version,
            )
        )
    else:
        report.fail(
            SetupCheck(
                "python",
                False,
                f"Python {python_version} is too old (need 3.10+)",
                fix_command="Install Python 3.10 or newer",
            ),
            "Python version too old",
            "Install Python 3.10 or newer",
        )

    try:
        await run(["xcrun", "simctl", "list", "devices"])
        report.checks.append(
            SetupCheck("permissions", True, "Command execution permissions are correct")
        )
    except SimctlError:
        report.fail(
            SetupCheck(
                "permissions",
                False,
                "Permission issues detected when running simctl commands",
                fix_command="Check terminal permissions in System Settings > Privacy & Security",
            ),
            "Permission issues",
            "Grant terminal permissions in System Settings",
        )

    return report
