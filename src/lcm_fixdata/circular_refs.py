"""Break cycles in complex form references.

A complex form entry points at its components through a LexEntryRef.  If
following those references from an entry leads back to the same entry,
the lexicon cannot be displayed or exported.  For each cycle found, the
entry with the longer headword is assumed to be the real complex form and
is removed as a component of the other one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from lcm_fixdata.lexmodel import CmObject, LexEntry, LexEntryRef, LexModel, LexSense
from lcm_fixdata.models import CircularRefResult

logger = logging.getLogger(__name__)


def _entry_of(item: CmObject) -> LexEntry | None:
    if isinstance(item, LexEntry):
        return item
    if isinstance(item, LexSense):
        return item.entry
    return None


class CircularRefBreakerService:
    """Find and fix circular complex form references in a lexicon model."""

    def reference_breaker(self, model: LexModel) -> CircularRefResult:
        refs = [
            ref for ref in model.instances("LexEntryRef")
            if isinstance(ref, LexEntryRef) and ref.is_complex_form
        ]
        count = len(refs)
        circular = 0
        lines: list[str] = []
        for ref in refs:
            # Earlier repairs may have deleted this reference.
            while ref.is_valid and ref.owning_entry is not None:
                cycle = self.find_cycle(ref)
                if cycle is None:
                    break
                fix = self._break_cycle(cycle)
                if not fix:
                    logger.warning(f"Could not break the cycle starting at {cycle[0]!r}")
                    break
                circular += 1
                lines.extend(fix)
        header = f"Found {circular} circular references out of {count} complex form references."
        logger.info(header)
        report = "\n".join([header, *lines]) if lines else header
        return CircularRefResult(count=count, circular=circular, report=report)

    def _successors(self, ref: LexEntryRef, seen: set[str]) -> Iterator[CmObject]:
        """Yield the refs to explore below ``ref``, or the entry closing a cycle."""
        for item in ref.primary_lexemes:
            entry = _entry_of(item)
            if entry is None:
                continue
            if entry.guid in seen:
                yield entry
                return
            yield from entry.complex_form_entry_refs

    def find_cycle(self, start: LexEntryRef) -> list[LexEntryRef] | None:
        """Depth-first search from ``start`` along primary lexemes.

        Returns the references forming the cycle, the first one owned by
        the entry that the last one points back to, or None.
        """
        owner = start.owning_entry
        if owner is None:
            return None
        path = [start]
        owners = [owner.guid]
        seen = {owner.guid}
        stack = [self._successors(start, seen)]
        while stack:
            step = next(stack[-1], None)
            if step is None:
                stack.pop()
                path.pop()
                seen.discard(owners.pop())
            elif isinstance(step, LexEntry):
                return path[owners.index(step.guid):]
            elif isinstance(step, LexEntryRef):
                child_owner = step.owning_entry
                if child_owner is None:
                    continue
                path.append(step)
                owners.append(child_owner.guid)
                seen.add(child_owner.guid)
                stack.append(self._successors(step, seen))
        return None

    def _break_cycle(self, cycle: list[LexEntryRef]) -> list[str]:
        first, last = cycle[0], cycle[-1]
        entry1 = first.owning_entry
        entry2 = last.owning_entry
        if len(entry1.headword) > len(entry2.headword):
            candidates = [(last, entry1), (first, entry2)]
        else:
            candidates = [(first, entry2), (last, entry1)]
        # In cycles longer than two only the closing reference points at
        # entry1, so the preferred removal can miss; fall back to that edge.
        for ref, entry in candidates:
            fix = self._remove_entry_from_ref(ref, entry)
            if fix:
                return fix
        return []

    def _remove_entry_from_ref(self, ref: LexEntryRef, entry: LexEntry) -> list[str]:
        owner = ref.owning_entry
        if ref.remove_entry(entry) == 0:
            return []
        owner_headword = owner.headword
        lines = [f"Removing {entry.headword} as a component of {owner_headword}."]
        if not ref.component_lexemes:
            ref.model.delete(ref)
            lines.append(
                f"Also removing the now-empty complex form information from {owner_headword}."
            )
        for line in lines:
            logger.info(line)
        return lines
