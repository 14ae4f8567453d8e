"""Async subprocess runner for xcrun/simctl and friends."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable, Sequence

DEFAULT_TIMEOUT = 10.0  # seconds

# Signature shared by the real runner and test fakes
CommandRunner = Callable[[Sequence[str]], Awaitable[str]]


class SimctlError(RuntimeError):
    """A simulator command failed, timed out, or could not be started."""

    def __init__(self, command: Sequence[str], message: str, returncode: int | None = None):
        self.command = list(command)
        self.returncode = returncode
        super().__init__(f"{' '.join(self.command)}: {message}")


async def run_command(command: Sequence[str], timeout: float = DEFAULT_TIMEOUT) -> str:
    """Run a command and return its stdout as text.

    stdin is detached so child processes never touch the MCP stdio stream.

    Raises:
        SimctlError: If the command is missing, exits non-zero or times out
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=os.environ.copy(),
        )
    except OSError as e:
        raise SimctlError(command, f"could not start: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise SimctlError(command, f"timed out after {timeout:g} seconds") from None
    except asyncio.CancelledError:
        # The child must not outlive a cancelled caller
        proc.kill()
        await proc.wait()
        raise

    if proc.returncode != 0:
        detail = stderr.decode(errors="replace").strip() or "no error output"
        raise SimctlError(
            command, f"exit {proc.returncode}: {detail}", returncode=proc.returncode
        )

    return stdout.decode(errors="replace")


def make_runner(timeout: float = DEFAULT_TIMEOUT) -> CommandRunner:
    """Bind a timeout to run_command."""

    async def runner(command: Sequence[str]) -> str:
        return await run_command(command, timeout=timeout)

    return runner
