"""Shared types for lcm-fixdata: pass context, log entries and results."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Signature of the error-log callback handed to every fixer:
# (description, was_auto_fixed) -> None
ErrorLogger = Callable[[str, bool], None]

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RefKind(str, Enum):
    """Kind of an <objsur> pointer (its ``t`` attribute)."""

    OWNERSHIP = "o"
    REFERENCE = "r"


class LexEntryRefType(int, Enum):
    """Values of LexEntryRef/RefType."""

    VARIANT = 0
    COMPLEX_FORM = 1


# ---------------------------------------------------------------------------
# Pass context
# ---------------------------------------------------------------------------

@dataclass
class PassContext:
    """Indices derived from one full read of the input file.

    One instance is built per pass and handed by reference to every fixer,
    so a deletion flagged by one fixer is visible to all the others.
    """

    guids: set[str] = field(default_factory=set)
    owners: dict[str, str] = field(default_factory=dict)
    owned_children: dict[str, set[str]] = field(default_factory=dict)
    to_delete: set[str] = field(default_factory=set)

    def owner_of(self, guid: str) -> str | None:
        return self.owners.get(guid)

    def mark_for_deletion(self, guid: str) -> None:
        """Flag ``guid`` and everything it owns, directly or indirectly."""
        pending = [guid]
        while pending:
            current = pending.pop()
            if current in self.to_delete:
                continue
            self.to_delete.add(current)
            pending.extend(self.owned_children.get(current, ()))


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FixLogEntry:
    """One message reported while checking or repairing a file."""

    description: str
    fixed: bool


@dataclass(frozen=True, slots=True)
class FixResult:
    """Outcome of a full repair run."""

    passes: int
    converged: bool
    fixed_count: int
    backup_path: Path


@dataclass(frozen=True, slots=True)
class CircularRefResult:
    """Outcome of a circular complex-form reference check."""

    count: int
    circular: int
    report: str
