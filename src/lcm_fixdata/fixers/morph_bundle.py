"""Repair of dangling MSA and form links in wordform analyses.

OriginalFixer leaves the ``Msa`` and ``Morph`` pointers of a WfiMorphBundle
alone, because the bundle's sense and morph usually say what the link
should have been.  When they do not, the pointer is removed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lxml import etree

from lcm_fixdata.fixers.base import RecordFixer
from lcm_fixdata.models import ErrorLogger, PassContext
from lcm_fixdata.records import (
    POINTER_TAG,
    detach_pointer,
    normalize_guid,
    pointer_target,
    record_class,
    record_guid,
)

logger = logging.getLogger(__name__)

MORPH_BUNDLE_CLASS = "WfiMorphBundle"


@dataclass
class _EntryForms:
    lexeme_form: str | None = None
    has_alternate_forms: bool = False
    msas: list[str] = field(default_factory=list)


def _targets(rt: etree._Element, prop_name: str) -> list[str]:
    return [
        normalize_guid(objsur.get("guid"))
        for objsur in rt.findall(f"{prop_name}/{POINTER_TAG}")
        if objsur.get("guid") is not None
    ]


class MorphBundleFixer(RecordFixer):
    """Point broken bundle links at the obvious MSA or form, or drop them."""

    name = "morph_bundle"

    def __init__(self) -> None:
        super().__init__()
        self._sense_msas: dict[str, str] = {}
        self._entries: dict[str, _EntryForms] = {}

    def reset(self) -> None:
        self._sense_msas.clear()
        self._entries.clear()
        super().reset()

    def inspect_record(self, rt: etree._Element) -> None:
        class_name = record_class(rt)
        if class_name == "LexSense":
            msas = _targets(rt, "MorphoSyntaxAnalysis")
            if msas:
                self._sense_msas[record_guid(rt)] = msas[0]
        elif class_name == "LexEntry":
            forms = _targets(rt, "LexemeForm")
            self._entries[record_guid(rt)] = _EntryForms(
                lexeme_form=forms[0] if forms else None,
                has_alternate_forms=bool(_targets(rt, "AlternateForms")),
                msas=_targets(rt, "MorphoSyntaxAnalyses"),
            )

    def finalize_indices(self, context: PassContext) -> None:
        super().finalize_indices(context)
        logger.debug(
            f"{len(self._sense_msas)} sense MSAs and {len(self._entries)} entries noted"
        )

    def _exists(self, guid: str | None) -> bool:
        ctx = self.context
        return guid is not None and guid in ctx.guids and guid not in ctx.to_delete

    def _entry_of_sense(self, sense: str) -> str | None:
        """Walk up through subsenses to the owning entry."""
        seen: set[str] = set()
        owner = self.context.owner_of(sense)
        while owner is not None and owner not in seen:
            if owner in self._entries:
                return owner
            seen.add(owner)
            owner = self.context.owner_of(owner)
        return None

    def _msa_from_sense(self, sense: str | None) -> str | None:
        if sense is None:
            return None
        msa = self._sense_msas.get(sense)
        return msa if self._exists(msa) else None

    def _msa_from_morph(self, morph: str | None) -> str | None:
        if not self._exists(morph):
            return None
        entry = self._entries.get(self.context.owner_of(morph))
        if entry is None or len(entry.msas) != 1:
            return None
        msa = entry.msas[0]
        return msa if self._exists(msa) else None

    def _form_from_sense(self, sense: str | None) -> str | None:
        if sense is None:
            return None
        entry = self._entries.get(self._entry_of_sense(sense))
        if entry is None or entry.has_alternate_forms:
            return None
        return entry.lexeme_form if self._exists(entry.lexeme_form) else None

    def fix_record(self, rt: etree._Element, log: ErrorLogger) -> bool:
        if record_class(rt) != MORPH_BUNDLE_CLASS:
            return True
        guid = record_guid(rt)
        senses = _targets(rt, "Sense")
        sense = senses[0] if senses else None

        msa_pointer = rt.find(f"Msa/{POINTER_TAG}")
        if msa_pointer is not None:
            target = pointer_target(msa_pointer)
            if not self._exists(target):
                morphs = _targets(rt, "Morph")
                from_sense = self._msa_from_sense(sense)
                from_entry = self._msa_from_morph(morphs[0] if morphs else None)
                if from_sense is not None:
                    msa_pointer.set("guid", from_sense)
                    log(
                        f"Fixing link to MSA based on Sense MSA "
                        f"(class='{MORPH_BUNDLE_CLASS}', guid='{guid}').",
                        True,
                    )
                elif from_entry is not None:
                    msa_pointer.set("guid", from_entry)
                    log(f"Fixing link to MSA based on only MSA of entry for WfiMorphBundle '{guid}'.", True)
                else:
                    detach_pointer(msa_pointer)
                    log(f"Removing dangling link to MSA '{target}' for WfiMorphBundle '{guid}'.", True)

        morph_pointer = rt.find(f"Morph/{POINTER_TAG}")
        if morph_pointer is not None:
            target = pointer_target(morph_pointer)
            if not self._exists(target):
                form = self._form_from_sense(sense)
                if form is not None:
                    morph_pointer.set("guid", form)
                    log(f"Fixing link to Form based on only Form of entry for WfiMorphBundle '{guid}'.", True)
                else:
                    detach_pointer(morph_pointer)
                    log(f"Removing dangling link to Form '{target}' for WfiMorphBundle '{guid}'.", True)
        return True
