"""Homograph number repair for lexical entries.

Entries created separately (for example on two machines later merged) can
share a form and morph type while both carrying homograph number 0, or
carry numbers that collide.  This fixer renumbers each colliding group to
1..N, keeping every existing number that is still valid and unclaimed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lxml import etree

from lcm_fixdata.fixers.base import RecordFixer
from lcm_fixdata.models import ErrorLogger, PassContext
from lcm_fixdata.records import (
    POINTER_TAG,
    normalize_guid,
    record_class,
    record_guid,
)

logger = logging.getLogger(__name__)

ALLOMORPH_CLASSES = frozenset({"MoStemAllomorph", "MoAffixAllomorph"})
NOT_A_HOMOGRAPH = "0"


@dataclass
class _Allomorph:
    forms: dict[str, str]
    morph_type: str | None


@dataclass
class _Entry:
    homograph_number: str = NOT_A_HOMOGRAPH
    lexeme_form: str | None = None
    citation_forms: dict[str, str] | None = None


def _alternatives(prop: etree._Element | None) -> dict[str, str]:
    """Map ws -> text for the <AUni> children of a multi-unicode property."""
    forms: dict[str, str] = {}
    if prop is None:
        return forms
    for alt in prop.findall("AUni"):
        ws = alt.get("ws")
        if ws is not None and ws not in forms:
            forms[ws] = alt.text or ""
    return forms


def _first_pointer(rt: etree._Element, prop_name: str) -> str | None:
    objsur = rt.find(f"{prop_name}/{POINTER_TAG}")
    if objsur is None or objsur.get("guid") is None:
        return None
    return normalize_guid(objsur.get("guid"))


def assign_homograph_numbers(
    groups: list[list[str]], current: dict[str, str]
) -> dict[str, str]:
    """Number each group of two or more entries 1..N.

    An entry keeps its current number when that number is in range and no
    earlier member of the group has claimed it; the rest fill the free
    slots in group order.
    """
    numbers: dict[str, str] = {}
    for members in groups:
        if len(members) < 2:
            continue
        slots: list[str | None] = [None] * len(members)
        must_change: list[str] = []
        for guid in members:
            try:
                index = int(current.get(guid, NOT_A_HOMOGRAPH))
            except ValueError:
                index = 0
            if 0 < index <= len(slots) and slots[index - 1] is None:
                slots[index - 1] = guid
            else:
                must_change.append(guid)
        free = (i for i, slot in enumerate(slots) if slot is None)
        for guid in must_change:
            slots[next(free)] = guid
        for i, guid in enumerate(slots, start=1):
            numbers[guid] = str(i)
    return numbers


class HomographFixer(RecordFixer):
    """Give colliding lexical entries dense, stable homograph numbers."""

    name = "homograph"

    def __init__(self) -> None:
        super().__init__()
        self._allomorphs: dict[str, _Allomorph] = {}
        self._entries: dict[str, _Entry] = {}
        self._secondary_order: dict[str, str] = {}
        self._homograph_ws: str | None = None
        self._numbers: dict[str, str] = {}

    def reset(self) -> None:
        self._allomorphs.clear()
        self._entries.clear()
        self._secondary_order.clear()
        self._homograph_ws = None
        self._numbers.clear()
        super().reset()

    def inspect_record(self, rt: etree._Element) -> None:
        class_name = record_class(rt)
        if class_name in ALLOMORPH_CLASSES:
            self._allomorphs[record_guid(rt)] = _Allomorph(
                forms=_alternatives(rt.find("Form")),
                morph_type=_first_pointer(rt, "MorphType"),
            )
        elif class_name == "MoMorphType":
            order = rt.find("SecondaryOrder")
            if order is not None and order.get("val") is not None:
                self._secondary_order[record_guid(rt)] = order.get("val")
        elif class_name == "LexEntry":
            entry = _Entry()
            number = rt.find("HomographNumber")
            if number is not None and number.get("val") is not None:
                entry.homograph_number = number.get("val")
            entry.lexeme_form = _first_pointer(rt, "LexemeForm")
            citation = rt.find("CitationForm")
            if citation is not None:
                entry.citation_forms = _alternatives(citation)
            self._entries[record_guid(rt)] = entry
        elif class_name == "LangProject":
            uni = rt.find("HomographWs/Uni")
            if uni is not None and uni.text:
                self._homograph_ws = uni.text.strip()

    def finalize_indices(self, context: PassContext) -> None:
        super().finalize_indices(context)
        if self._homograph_ws is None:
            logger.debug("No homograph writing system; homograph numbers left alone")
            return
        lexeme_forms = {
            entry.lexeme_form: guid
            for guid, entry in self._entries.items()
            if entry.lexeme_form is not None
        }
        groups: dict[str, list[str]] = {}
        for morph_guid, allomorph in self._allomorphs.items():
            entry_guid = lexeme_forms.get(morph_guid)
            if entry_guid is None:
                continue
            key = self._homograph_key(self._entries[entry_guid], allomorph, groups)
            if key is not None:
                groups.setdefault(key, []).append(entry_guid)
        current = {guid: e.homograph_number for guid, e in self._entries.items()}
        self._numbers = assign_homograph_numbers(list(groups.values()), current)
        logger.debug(
            f"{sum(1 for g in groups.values() if len(g) > 1)} homograph groups found"
        )

    def _homograph_key(
        self, entry: _Entry, allomorph: _Allomorph, groups: dict[str, list[str]]
    ) -> str | None:
        """Form text plus the morph type's sort order, or None if not a candidate.

        The citation form replaces the lexeme form text when it is non-blank.
        A bare text key already in ``groups`` (from a morph type without a
        sort order) absorbs later entries with the same text.
        """
        if allomorph.morph_type is None:
            return None
        ws = self._homograph_ws
        text = ""
        if entry.citation_forms is not None:
            text = entry.citation_forms.get(ws, "").strip()
        if not text:
            text = allomorph.forms.get(ws, "").strip()
        if not text:
            return None
        if text in groups:
            return text
        return text + self._secondary_order.get(allomorph.morph_type, "")

    def fix_record(self, rt: etree._Element, log: ErrorLogger) -> bool:
        if record_class(rt) != "LexEntry" or self._homograph_ws is None:
            return True
        guid = record_guid(rt)
        number = self._numbers.get(guid, NOT_A_HOMOGRAPH)
        old = self._entries[guid].homograph_number if guid in self._entries else NOT_A_HOMOGRAPH
        element = rt.find("HomographNumber")
        if element is None:
            if number == NOT_A_HOMOGRAPH:
                return True
            etree.SubElement(rt, "HomographNumber", val=number)
        elif element.get("val") != number:
            element.set("val", number)
        else:
            return True
        log(f"Adjusted homograph number of LexEntry '{guid}' from {old} to {number}.", True)
        return True
