"""In-memory lexicon model over a parsed .fwdata document.

Unlike the streaming fixers, this loads the whole file so that objects can
be followed through their owners and references.  Wrappers are thin views
over the ``<rt>`` elements; every change is made to the XML tree directly
and written back with :meth:`LexModel.save`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from lxml import etree

from lcm_fixdata.exceptions import ModelError, UnexpectedRootError
from lcm_fixdata.models import LexEntryRefType, RefKind
from lcm_fixdata.records import (
    RECORD_TAG,
    ROOT_TAG,
    detach_pointer,
    iter_pointers,
    normalize_guid,
    pointer_target,
    record_class,
    record_guid,
)

logger = logging.getLogger(__name__)

MISSING_HEADWORD = "???"


class CmObject:
    """View of one ``<rt>`` record.  Equal when the guids are equal."""

    def __init__(self, model: LexModel, element: etree._Element) -> None:
        self.model = model
        self.element = element
        self.guid = record_guid(element)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CmObject):
            return NotImplemented
        return self.guid == other.guid

    def __hash__(self) -> int:
        return hash(self.guid)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.guid!r})"

    @property
    def class_name(self) -> str:
        return record_class(self.element)

    @property
    def is_valid(self) -> bool:
        """False once the object has been deleted from the model."""
        return self.model.element_for(self.guid) is self.element

    @property
    def owner(self) -> CmObject | None:
        owner_guid = self.element.get("ownerguid")
        if owner_guid is None:
            return None
        return self.model.get(owner_guid)

    def owner_of_class(self, class_name: str) -> CmObject | None:
        """Nearest owner (walking up) whose class is ``class_name``."""
        current = self.owner
        visited = {self.guid}
        while current is not None and current.guid not in visited:
            if current.class_name == class_name:
                return current
            visited.add(current.guid)
            current = current.owner
        return None

    def _pointer_elements(self, prop_name: str) -> list[etree._Element]:
        prop = self.element.find(prop_name)
        if prop is None:
            return []
        return [p for p in iter_pointers(prop)]

    def _objects(self, prop_name: str) -> list[CmObject]:
        """Resolved targets of a property's pointers; dangling ones are skipped."""
        objects = []
        for objsur in self._pointer_elements(prop_name):
            target = self.model.get(objsur.get("guid", ""))
            if target is not None:
                objects.append(target)
        return objects

    def _int_property(self, prop_name: str, default: int = 0) -> int:
        prop = self.element.find(prop_name)
        if prop is None or prop.get("val") is None:
            return default
        try:
            return int(prop.get("val"))
        except ValueError:
            return default

    def alternatives(self, prop_name: str) -> dict[str, str]:
        """Non-blank ws -> text pairs of a multi-unicode property."""
        forms: dict[str, str] = {}
        prop = self.element.find(prop_name)
        if prop is None:
            return forms
        for alt in prop.findall("AUni"):
            ws = alt.get("ws")
            text = (alt.text or "").strip()
            if ws is not None and text and ws not in forms:
                forms[ws] = text
        return forms


class LexSense(CmObject):
    @property
    def entry(self) -> LexEntry | None:
        """The entry owning this sense, directly or through parent senses."""
        owner = self.owner_of_class("LexEntry")
        return owner if isinstance(owner, LexEntry) else None


class LexEntryRef(CmObject):
    @property
    def ref_type(self) -> int:
        return self._int_property("RefType", LexEntryRefType.VARIANT)

    @property
    def is_complex_form(self) -> bool:
        return self.ref_type == LexEntryRefType.COMPLEX_FORM

    @property
    def owning_entry(self) -> LexEntry | None:
        owner = self.owner_of_class("LexEntry")
        return owner if isinstance(owner, LexEntry) else None

    @property
    def component_lexemes(self) -> list[CmObject]:
        return self._objects("ComponentLexemes")

    @property
    def primary_lexemes(self) -> list[CmObject]:
        return self._objects("PrimaryLexemes")

    def remove_entry(self, entry: LexEntry) -> int:
        """Remove ``entry`` and its senses from the component and primary lists.

        Returns the number of pointers removed.
        """
        removed = 0
        for prop_name in ("PrimaryLexemes", "ComponentLexemes"):
            for objsur in self._pointer_elements(prop_name):
                target = self.model.get(objsur.get("guid", ""))
                if target == entry or (isinstance(target, LexSense) and target.entry == entry):
                    detach_pointer(objsur)
                    removed += 1
        return removed


class LexEntry(CmObject):
    @property
    def homograph_number(self) -> int:
        return self._int_property("HomographNumber")

    @property
    def lexeme_form(self) -> CmObject | None:
        forms = self._objects("LexemeForm")
        return forms[0] if forms else None

    @property
    def entry_refs(self) -> list[LexEntryRef]:
        return [r for r in self._objects("EntryRefs") if isinstance(r, LexEntryRef)]

    @property
    def complex_form_entry_refs(self) -> list[LexEntryRef]:
        return [r for r in self.entry_refs if r.is_complex_form]

    @property
    def headword(self) -> str:
        """Citation form (or else lexeme form) plus any homograph number."""
        text = self.model.pick_alternative(self.alternatives("CitationForm"))
        if text is None and self.lexeme_form is not None:
            text = self.model.pick_alternative(self.lexeme_form.alternatives("Form"))
        if text is None:
            text = MISSING_HEADWORD
        number = self.homograph_number
        return f"{text}{number}" if number else text


_WRAPPERS: dict[str, type[CmObject]] = {
    "LexEntry": LexEntry,
    "LexSense": LexSense,
    "LexEntryRef": LexEntryRef,
}


class LexModel:
    """All records of one project file, indexed by guid."""

    def __init__(self, tree: etree._ElementTree, path: str | Path | None = None) -> None:
        self.tree = tree
        self.path = Path(path) if path is not None else None
        root = tree.getroot()
        if root.tag != ROOT_TAG:
            raise UnexpectedRootError(str(root.tag))
        self._elements: dict[str, etree._Element] = {}
        for rt in root.iterchildren(RECORD_TAG):
            try:
                guid = record_guid(rt)
            except ValueError as e:
                raise ModelError(f"Malformed guid on line {rt.sourceline}: {rt.get('guid')}") from e
            if guid in self._elements:
                raise ModelError(f"Object with guid '{guid}' occurs more than once")
            self._elements[guid] = rt
        self.homograph_ws = self._find_homograph_ws()

    @classmethod
    def load(cls, path: str | Path) -> LexModel:
        parser = etree.XMLParser(huge_tree=True)
        tree = etree.parse(str(path), parser)
        model = cls(tree, path)
        logger.info(f"Loaded {len(model)} objects from {path}")
        return model

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, guid: str) -> bool:
        return self.element_for(guid) is not None

    def _find_homograph_ws(self) -> str | None:
        for element in self._elements.values():
            if record_class(element) == "LangProject":
                uni = element.find("HomographWs/Uni")
                if uni is not None and uni.text and uni.text.strip():
                    return uni.text.strip()
        return None

    def element_for(self, guid: str) -> etree._Element | None:
        try:
            return self._elements.get(normalize_guid(guid))
        except ValueError:
            return None

    def get(self, guid: str) -> CmObject | None:
        element = self.element_for(guid)
        if element is None:
            return None
        return _WRAPPERS.get(record_class(element), CmObject)(self, element)

    def instances(self, class_name: str) -> Iterator[CmObject]:
        """Objects of exactly ``class_name``, in document order."""
        for element in list(self._elements.values()):
            if record_class(element) == class_name:
                yield _WRAPPERS.get(class_name, CmObject)(self, element)

    def pick_alternative(self, forms: dict[str, str]) -> str | None:
        """Text in the homograph writing system, else the first one present."""
        if not forms:
            return None
        if self.homograph_ws is not None and self.homograph_ws in forms:
            return forms[self.homograph_ws]
        return next(iter(forms.values()))

    def delete(self, obj: CmObject) -> set[str]:
        """Delete ``obj`` with everything it owns, and every pointer to them.

        Returns the guids that were removed.
        """
        if not obj.is_valid:
            raise ModelError(f"{obj!r} has already been deleted")
        doomed: set[str] = set()
        pending = [obj.guid]
        while pending:
            guid = pending.pop()
            if guid in doomed or guid not in self._elements:
                continue
            doomed.add(guid)
            pending.extend(
                pointer_target(p)
                for p in iter_pointers(self._elements[guid], RefKind.OWNERSHIP)
            )

        root = self.tree.getroot()
        for guid in doomed:
            root.remove(self._elements.pop(guid))
        for element in self._elements.values():
            stale = [p for p in iter_pointers(element) if pointer_target(p) in doomed]
            for objsur in stale:
                detach_pointer(objsur)
        logger.debug(f"Deleted {obj!r} and {len(doomed) - 1} owned objects")
        return doomed

    def save(self, path: str | Path | None = None) -> Path:
        """Write the document, replacing the target file atomically."""
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ModelError("No path to save to")
        tmp = target.with_name(f"{target.name}.tmp")
        try:
            self.tree.write(str(tmp), xml_declaration=True, encoding="utf-8")
            os.replace(tmp, target)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        return target
