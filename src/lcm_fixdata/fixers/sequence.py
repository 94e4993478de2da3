"""Deletion of objects whose required sequence property is too short."""

from __future__ import annotations

import logging

from lxml import etree

from lcm_fixdata.fixers.base import RecordFixer
from lcm_fixdata.models import ErrorLogger, PassContext
from lcm_fixdata.records import (
    POINTER_TAG,
    detach_pointer,
    iter_pointers,
    normalize_guid,
    pointer_target,
    record_class,
    record_guid,
)

logger = logging.getLogger(__name__)

# class -> sequence property that must hold at least one pointer
REQUIRED_SEQUENCES: dict[str, str] = {
    "ConstChartRow": "Cells",
    "ConstChartClauseMarker": "DependentClauses",
    "PhSequenceContext": "Members",
}

LEX_REFERENCE_CLASS = "LexReference"
LEX_REFERENCE_TARGETS = "Targets"


class SequenceFixer(RecordFixer):
    """Delete owners of empty required sequences, with everything they own.

    A LexReference needs two live targets to relate anything, so one with
    fewer goes the same way.  The doomed objects go into the shared
    deletion set during ``finalize_indices``; their owners drop the pointer
    to them in the same pass.
    """

    name = "sequence"

    def __init__(self) -> None:
        super().__init__()
        self._empty: dict[str, str] = {}
        self._lex_reference_targets: dict[str, list[str]] = {}
        self._by_owner: dict[str, list[tuple[str, str]]] = {}

    def reset(self) -> None:
        self._empty.clear()
        self._lex_reference_targets.clear()
        self._by_owner.clear()
        super().reset()

    def inspect_record(self, rt: etree._Element) -> None:
        class_name = record_class(rt)
        if class_name == LEX_REFERENCE_CLASS:
            self._lex_reference_targets[record_guid(rt)] = [
                normalize_guid(objsur.get("guid"))
                for objsur in rt.findall(f"{LEX_REFERENCE_TARGETS}/{POINTER_TAG}")
                if objsur.get("guid") is not None
            ]
            return
        prop = REQUIRED_SEQUENCES.get(class_name)
        if prop is None:
            return
        if rt.find(f"{prop}/{POINTER_TAG}") is None:
            self._empty[record_guid(rt)] = class_name

    def finalize_indices(self, context: PassContext) -> None:
        super().finalize_indices(context)
        doomed = dict(self._empty)
        for guid, targets in self._lex_reference_targets.items():
            if sum(1 for t in targets if t in context.guids) < 2:
                doomed[guid] = LEX_REFERENCE_CLASS
        for guid, class_name in doomed.items():
            context.mark_for_deletion(guid)
            owner = context.owner_of(guid)
            if owner is not None:
                self._by_owner.setdefault(owner, []).append((guid, class_name))
        if doomed:
            logger.debug(f"{len(doomed)} owners of short sequences flagged")

    def fix_record(self, rt: etree._Element, log: ErrorLogger) -> bool:
        owner = record_guid(rt)
        doomed = self._by_owner.get(owner)
        if not doomed:
            return True
        targets = dict(doomed)
        for objsur in list(iter_pointers(rt)):
            guid = pointer_target(objsur)
            if guid not in targets:
                continue
            if targets[guid] == LEX_REFERENCE_CLASS:
                log(
                    f"Removing LexReference with too few references ({LEX_REFERENCE_TARGETS}) "
                    f"(guid='{guid}') from its owner (guid='{owner}').",
                    True,
                )
            else:
                log(
                    f"Removing owner of empty sequence (guid='{guid}' "
                    f"class='{targets[guid]}') from its owner (guid='{owner}').",
                    True,
                )
            detach_pointer(objsur)
            del targets[guid]
        return True
