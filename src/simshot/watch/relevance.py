"""Heuristic classification of file changes as UI-relevant.

A change is relevant when it touches a JavaScript/TypeScript source file
that either sits under a conventional UI directory or mentions a UI
keyword. Misses are acceptable; an extra capture is harmless.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePath

from simshot.models import StepResult

SOURCE_EXTENSIONS = frozenset({".js", ".jsx", ".ts", ".tsx"})
UI_DIRECTORIES = frozenset({"components", "screens", "views", "pages", "app", "src"})

_SEPARATORS = re.compile(r"[\\/]")


@dataclass(frozen=True)
class Relevance:
    """Verdict for one file plus how the content read went."""

    relevant: bool
    reason: str
    read: StepResult | None = None


def in_ui_directory(path: str) -> bool:
    """True if any directory segment of ``path`` is a UI directory.

    Accepts both ``/`` and ``\\`` separators, case-insensitively. The
    filename itself is not a directory segment.
    """
    segments = [s for s in _SEPARATORS.split(path.lower()) if s]
    return any(segment in UI_DIRECTORIES for segment in segments[:-1])


class RelevanceFilter:
    """Classifies watcher events against extension, directory and keyword rules."""

    def __init__(self, root: Path, ui_keywords: Iterable[str]) -> None:
        self.root = Path(root)
        self.ui_keywords = tuple(ui_keywords)

    def _read(self, path: str) -> str:
        return (self.root / path).read_text(encoding="utf-8")

    async def classify(self, path: str) -> Relevance:
        """Classify a path relative to the watch root."""
        extension = PurePath(_SEPARATORS.sub("/", path)).suffix.lower()
        if extension not in SOURCE_EXTENSIONS:
            return Relevance(False, f"extension {extension or '(none)'} is not UI source")

        if in_ui_directory(path):
            return Relevance(True, "ui_directory")

        try:
            content = await asyncio.to_thread(self._read, path)
        except (OSError, UnicodeDecodeError) as e:
            # Directory verdict stands when the file can't be read
            return Relevance(False, "unreadable", StepResult.failed_continue(str(e)))

        keyword = next((k for k in self.ui_keywords if k in content), None)
        if keyword is not None:
            return Relevance(True, f"ui_keyword:{keyword}", StepResult.succeeded())
        return Relevance(False, "no_ui_keywords", StepResult.succeeded())
