"""On-disk screenshot store with bounded retention."""

from __future__ import annotations

import base64
import re
import time
from collections.abc import Callable
from pathlib import Path

import structlog
from PIL import Image

from simshot.models import Capture, StepResult
from simshot.simulator.probe import DeviceProbe
from simshot.simulator.runner import CommandRunner, SimctlError, make_runner

logger = structlog.get_logger(__name__)

FILENAME_PATTERN = re.compile(r"^screenshot-(\d+)\.png$")
FILENAME_PREFIX = "screenshot-"
FILENAME_SUFFIX = ".png"
DEFAULT_MAX_SCREENSHOTS = 50


def _now_ms() -> int:
    return int(time.time() * 1000)


def _verify_image(path: Path) -> None:
    """Make sure the capture command actually produced an image.

    Raises:
        RuntimeError: If the file is missing, empty or not decodable
    """
    if not path.exists() or path.stat().st_size == 0:
        raise RuntimeError("Screenshot command succeeded but produced no output file")
    try:
        with Image.open(path) as img:
            img.verify()
    except (OSError, SyntaxError, ValueError) as e:
        raise RuntimeError(f"Screenshot file is not a valid image: {e}") from e


class ScreenshotStore:
    """Manages the directory of ``screenshot-<timestamp>.png`` files.

    The directory is the only persisted state. Metadata for captures taken
    during this process (device, provenance, watcher enrichment) lives in an
    in-memory registry keyed by timestamp and is merged into list() results.
    Files from earlier sessions come back with filename-derived fields only.
    """

    def __init__(
        self,
        directory: Path,
        probe: DeviceProbe,
        runner: CommandRunner | None = None,
        max_screenshots: int = DEFAULT_MAX_SCREENSHOTS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.directory = Path(directory)
        self.max_screenshots = max_screenshots
        self._probe = probe
        self._run = runner or make_runner()
        self._clock = clock
        self._last_timestamp = 0
        self._registry: dict[int, Capture] = {}

    def initialize(self) -> None:
        """Create the screenshots directory."""
        self.directory.mkdir(parents=True, exist_ok=True)

    def _next_timestamp(self) -> int:
        # Identity must stay unique even when the clock stalls or steps back
        timestamp = max(self._clock(), self._last_timestamp + 1)
        self._last_timestamp = timestamp
        return timestamp

    async def capture(
        self,
        description: str | None = None,
        triggered_by: str | None = None,
    ) -> Capture | None:
        """Capture a screenshot from the booted simulator.

        Returns None when no device is booted or the capture fails. Failures
        are logged, never raised.
        """
        status = await self._probe.status()
        if not status.running or status.booted is None:
            logger.info("capture_skipped", reason="no_booted_simulator", triggered_by=triggered_by)
            return None

        timestamp = self._next_timestamp()
        filename = f"{FILENAME_PREFIX}{timestamp}{FILENAME_SUFFIX}"
        path = self.directory / filename

        try:
            self.initialize()
            await self._run(["xcrun", "simctl", "io", "booted", "screenshot", str(path)])
            _verify_image(path)
        except (SimctlError, RuntimeError, OSError) as e:
            logger.error("capture_failed", error=str(e), triggered_by=triggered_by)
            path.unlink(missing_ok=True)
            return None

        capture = Capture(
            timestamp=timestamp,
            filename=filename,
            path=str(path),
            device=status.booted,
            triggered_by=triggered_by,
            description=description,
        )
        self._registry[timestamp] = capture
        logger.info(
            "capture_taken",
            timestamp=timestamp,
            device=status.booted.name,
            triggered_by=triggered_by,
        )

        self.evict_excess()
        return capture

    def list(self) -> list[Capture]:
        """Return all stored captures, newest first."""
        try:
            entries = list(self.directory.iterdir())
        except OSError as e:
            logger.warning("screenshot_list_failed", directory=str(self.directory), error=str(e))
            return []

        captures: list[Capture] = []
        for entry in entries:
            name = entry.name
            if not (name.startswith(FILENAME_PREFIX) and name.endswith(FILENAME_SUFFIX)):
                continue

            match = FILENAME_PATTERN.match(name)
            if match:
                timestamp = int(match.group(1))
            else:
                try:
                    timestamp = int(entry.stat().st_mtime * 1000)
                except OSError:
                    # Removed between listing and stat
                    continue

            known = self._registry.get(timestamp)
            if known is not None and known.filename == name:
                captures.append(known)
            else:
                captures.append(Capture(timestamp=timestamp, filename=name, path=str(entry)))

        captures.sort(key=lambda c: c.timestamp, reverse=True)
        return captures

    def latest(self) -> Capture | None:
        captures = self.list()
        return captures[0] if captures else None

    def by_timestamp(self, timestamp: int) -> Capture | None:
        return next((c for c in self.list() if c.timestamp == timestamp), None)

    def list_recent(self, limit: int = 5) -> list[Capture]:
        return self.list()[:limit]

    def read_as_base64(self, path: str | Path) -> str:
        """Read an image file and return it base64-encoded.

        Raises:
            OSError: If the file cannot be read
        """
        return base64.b64encode(Path(path).read_bytes()).decode("ascii")

    def evict_excess(self) -> list[StepResult]:
        """Delete the oldest captures beyond ``max_screenshots``.

        Deletion failures are recorded and skipped so one stuck file cannot
        block the rest of the pass. Safe to run concurrently: a file that is
        already gone counts as deleted.
        """
        captures = self.list()
        if len(captures) <= self.max_screenshots:
            return []

        surplus = sorted(captures[self.max_screenshots :], key=lambda c: c.timestamp)
        results: list[StepResult] = []
        for capture in surplus:
            try:
                Path(capture.path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("eviction_failed", filename=capture.filename, error=str(e))
                results.append(StepResult.failed_continue(f"{capture.filename}: {e}"))
                continue
            self._registry.pop(capture.timestamp, None)
            results.append(StepResult.succeeded(capture.filename))

        logger.info(
            "screenshots_evicted",
            deleted=sum(1 for r in results if r.ok),
            failed=sum(1 for r in results if not r.ok),
        )
        return results

    def clear_all(self) -> int:
        """Delete every image in the screenshots directory.

        Returns:
            Number of files deleted
        """
        self._registry.clear()
        try:
            entries = list(self.directory.iterdir())
        except FileNotFoundError:
            return 0
        except OSError as e:
            logger.warning("screenshot_clear_failed", directory=str(self.directory), error=str(e))
            return 0

        deleted = 0
        for entry in entries:
            if entry.suffix != FILENAME_SUFFIX:
                continue
            try:
                entry.unlink()
                deleted += 1
            except OSError as e:
                logger.warning("screenshot_delete_failed", filename=entry.name, error=str(e))

        logger.info("screenshots_cleared", deleted=deleted)
        return deleted
