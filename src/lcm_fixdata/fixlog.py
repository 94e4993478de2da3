"""Collector for the messages reported during a repair run."""

from __future__ import annotations

import logging
from pathlib import Path

from lcm_fixdata.models import FixLogEntry

logger = logging.getLogger(__name__)


class FixLog:
    """Callable error logger: ``log(description, fixed)``.

    Keeps every entry for the report file and mirrors each one to the
    ``logging`` module.
    """

    def __init__(self) -> None:
        self.entries: list[FixLogEntry] = []

    def __call__(self, description: str, fixed: bool) -> None:
        self.entries.append(FixLogEntry(description, fixed))
        if fixed:
            logger.info(description)
        else:
            logger.warning(description)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def fixed_count(self) -> int:
        return sum(1 for e in self.entries if e.fixed)

    @property
    def unfixed(self) -> list[FixLogEntry]:
        return [e for e in self.entries if not e.fixed]

    def clear(self) -> None:
        self.entries.clear()

    def write_report(self, path: str | Path, title: str | None = None) -> Path:
        """Write one line per entry; unfixed problems are marked as such."""
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            if title:
                f.write(f"{title}\n\n")
            for entry in self.entries:
                marker = "" if entry.fixed else "[NOT FIXED] "
                f.write(f"{marker}{entry.description}\n")
        return path
