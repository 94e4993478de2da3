"""Reference, ownership and formatting repairs."""

from __future__ import annotations

from lxml import etree

from lcm_fixdata.fixers.base import RecordFixer
from lcm_fixdata.gendate import UNSET, is_valid_gendate
from lcm_fixdata.models import ErrorLogger, RefKind
from lcm_fixdata.records import (
    detach_pointer,
    iter_pointers,
    normalize_guid,
    pointer_target,
    record_class,
    record_guid,
)

# Pointers that MorphBundleFixer repairs with knowledge of the entry.
_MORPH_BUNDLE_CLASS = "WfiMorphBundle"
_MORPH_BUNDLE_SKIPPED = frozenset({"Msa", "Morph"})

MULTISTRING_TAGS = ("AUni", "AStr")

GENERIC_DATE_FIELDS: dict[str, tuple[str, ...]] = {
    "RnGenericRec": ("DateOfEvent",),
    "CmPerson": ("DateOfBirth", "DateOfDeath"),
}


class OriginalFixer(RecordFixer):
    """Repair dangling links, bad owners, duplicate alternatives and dates.

    Duplicate identities are reported by the index builder and left alone.
    """

    name = "original"

    def fix_record(self, rt: etree._Element, log: ErrorLogger) -> bool:
        guid = record_guid(rt)
        class_name = record_class(rt)
        if not self._fix_owner(rt, guid, class_name, log):
            return False
        self._remove_bad_pointers(rt, guid, class_name, log)

        for run in rt.iter("Run"):
            if run.get("editable") is not None:
                log(f"Removing editable attribute from <Run> in '{class_name}' object.", True)
                del run.attrib["editable"]

        for tag in MULTISTRING_TAGS:
            fix_duplicate_writing_systems(rt, guid, tag, log)
        for field_name in GENERIC_DATE_FIELDS.get(class_name, ()):
            fix_generic_date(field_name, rt, class_name, guid, log)
        return True

    def _fix_owner(
        self, rt: etree._Element, guid: str, class_name: str, log: ErrorLogger
    ) -> bool:
        ctx = self.context
        stored_owner = ctx.owner_of(guid)
        declared = rt.get("ownerguid")
        if declared is None:
            if stored_owner is not None:
                log(f"Adding link to owner '{stored_owner}' (class='{class_name}', guid='{guid}').", True)
                rt.set("ownerguid", stored_owner)
            return True

        declared_owner = normalize_guid(declared)
        if declared_owner == stored_owner:
            return True
        if stored_owner is not None and stored_owner in ctx.guids:
            log(
                f"Changing ownerguid value from '{declared_owner}' to '{stored_owner}' "
                f"(class='{class_name}', guid='{guid}').",
                True,
            )
            rt.set("ownerguid", stored_owner)
        elif declared_owner not in ctx.guids:
            log(
                f"Removing object with nonexistent owner (invalid ownerguid='{declared_owner}', "
                f"class='{class_name}', guid='{guid}').",
                True,
            )
            return False
        return True

    def _remove_bad_pointers(
        self, rt: etree._Element, guid: str, class_name: str, log: ErrorLogger
    ) -> None:
        ctx = self.context
        doomed: list[etree._Element] = []
        for objsur in iter_pointers(rt):
            target = pointer_target(objsur)
            prop = objsur.getparent().tag
            if target not in ctx.guids:
                if class_name == _MORPH_BUNDLE_CLASS and prop in _MORPH_BUNDLE_SKIPPED:
                    continue
                log(
                    f"Removing dangling link to '{target}' (class='{class_name}', "
                    f"guid='{guid}', property='{prop}').",
                    True,
                )
                doomed.append(objsur)
                continue
            if objsur.get("t") == RefKind.OWNERSHIP.value:
                owner = ctx.owner_of(target)
                if owner is not None and owner != guid:
                    log(
                        f"Removing multiple ownership link: '{target}' from '{prop}' "
                        f"of object (class='{class_name}', guid='{guid}').",
                        True,
                    )
                    doomed.append(objsur)
        for objsur in doomed:
            detach_pointer(objsur)


def fix_duplicate_writing_systems(
    rt: etree._Element, guid: str, tag: str, log: ErrorLogger
) -> None:
    """Drop alternatives repeating a writing system within one multistring.

    Alternatives are sorted by ws and each is compared with its sorted
    predecessor, which may itself already have been removed.
    """
    groups: dict[etree._Element, list[etree._Element]] = {}
    for alt in rt.iter(tag):
        groups.setdefault(alt.getparent(), []).append(alt)
    for parent, alternatives in groups.items():
        alternatives.sort(key=lambda alt: alt.get("ws", ""))
        for previous, current in zip(alternatives, alternatives[1:]):
            if previous.get("ws", "") != current.get("ws", ""):
                continue
            log(
                f"Removing duplicate alternative (ws='{current.get('ws', '')}') "
                f"from '{parent.tag}' of object guid='{guid}'.",
                True,
            )
            parent.remove(current)


def fix_generic_date(
    field_name: str, rt: etree._Element, class_name: str, guid: str, log: ErrorLogger
) -> None:
    """Reset unparseable generic dates in ``field_name`` to the unset value."""
    for element in list(rt.iter(field_name)):
        value = element.get("val")
        if value is None or is_valid_gendate(value):
            continue
        element.set("val", UNSET)
        log(
            f"Removing bad generic date '{value}' from {field_name} "
            f"of '{class_name}' object guid='{guid}'.",
            True,
        )
