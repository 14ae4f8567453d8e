"""Data records shared by the probe, store, watcher and MCP tools."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

BOOTED = "Booted"
SHUTDOWN = "Shutdown"


@dataclass(frozen=True)
class Device:
    """A simulator device as reported by simctl."""

    udid: str
    name: str
    state: str
    runtime: str

    @property
    def is_booted(self) -> bool:
        return self.state == BOOTED

    @property
    def is_shutdown(self) -> bool:
        return self.state == SHUTDOWN


@dataclass
class SimulatorStatus:
    """Snapshot of the simulator device list."""

    running: bool
    devices: list[Device] = field(default_factory=list)
    booted: Device | None = None


class ChangeKind(Enum):
    """Kind of filesystem change observed by the watcher."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class Change:
    """One observed file change. ``timestamp`` is epoch milliseconds."""

    path: str
    timestamp: int
    kind: ChangeKind

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "timestamp": self.timestamp, "kind": self.kind.value}


@dataclass
class Capture:
    """A stored screenshot plus its metadata.

    The timestamp (epoch milliseconds) is the capture's identity and is
    encoded in the filename.
    """

    timestamp: int
    filename: str
    path: str
    device: Device | None = None
    triggered_by: str | None = None
    description: str | None = None
    file_changes: list[Change] | None = None
    suggestions: list[str] | None = None

    @property
    def captured_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the screenshot-history resource."""
        return {
            "timestamp": self.timestamp,
            "date": self.captured_at.isoformat(),
            "filename": self.filename,
            "triggered_by": self.triggered_by,
            "description": self.description,
            "device": asdict(self.device) if self.device else None,
            "file_changes": [c.to_dict() for c in self.file_changes or []],
            "suggestions": list(self.suggestions or []),
        }


@dataclass
class BootResult:
    """Result of a boot (or reload) request."""

    success: bool
    message: str
    device: Device | None = None


@dataclass
class ComparisonResult:
    """Metadata-only comparison of two captures."""

    found: bool
    timestamp1: int
    timestamp2: int
    capture1: Capture | None = None
    capture2: Capture | None = None
    time_difference_ms: int = 0
    changes: list[str] = field(default_factory=list)

    @property
    def time_difference_formatted(self) -> str:
        return f"{self.time_difference_ms // 1000} seconds"


class Outcome(Enum):
    """How a best-effort step ended."""

    SUCCEEDED = "succeeded"
    FAILED_CONTINUE = "failed_continue"
    FAILED_FATAL = "failed_fatal"


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step whose failure may be tolerated.

    Used where errors are swallowed on purpose (eviction deletes, reads
    during relevance classification) so the decision is visible to callers
    and tests instead of hidden in an except block.
    """

    outcome: Outcome
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED

    @classmethod
    def succeeded(cls, detail: str = "") -> StepResult:
        return cls(Outcome.SUCCEEDED, detail)

    @classmethod
    def failed_continue(cls, detail: str) -> StepResult:
        return cls(Outcome.FAILED_CONTINUE, detail)

    @classmethod
    def failed_fatal(cls, detail: str) -> StepResult:
        return cls(Outcome.FAILED_FATAL, detail)
