"""Removal of custom property values whose field definition is gone."""

from __future__ import annotations

from lxml import etree

from lcm_fixdata.fixers.base import RecordFixer
from lcm_fixdata.models import ErrorLogger
from lcm_fixdata.records import record_class, record_guid

# Concrete classes whose custom fields are usually defined on a base class.
BASE_CLASSES: dict[str, str] = {
    "CmSemanticDomain": "CmPossibility",
    "CmAnthroItem": "CmPossibility",
    "CmLocation": "CmPossibility",
    "CmPerson": "CmPossibility",
    "CmCustomItem": "CmPossibility",
    "LexEntryType": "CmPossibility",
    "LexRefType": "CmPossibility",
    "MoMorphType": "CmPossibility",
    "PartOfSpeech": "CmPossibility",
    "MoStemAllomorph": "MoForm",
    "MoAffixAllomorph": "MoForm",
    "MoAffixProcess": "MoForm",
    "MoStemMsa": "MoMorphSynAnalysis",
    "MoInflAffMsa": "MoMorphSynAnalysis",
    "MoDerivAffMsa": "MoMorphSynAnalysis",
    "MoUnclassifiedAffixMsa": "MoMorphSynAnalysis",
}


def class_lineage(class_name: str) -> list[str]:
    lineage = [class_name]
    while lineage[-1] in BASE_CLASSES:
        lineage.append(BASE_CLASSES[lineage[-1]])
    return lineage


class CustomPropertyFixer(RecordFixer):
    """Drop <Custom name="..."> values that no CustomField defines."""

    name = "custom_property"

    def __init__(self) -> None:
        super().__init__()
        self._defined: dict[str, set[str]] = {}

    def reset(self) -> None:
        self._defined.clear()
        super().reset()

    def inspect_custom_fields(self, fields: etree._Element) -> None:
        for custom in fields.iter("CustomField"):
            class_name = custom.get("class")
            name = custom.get("name")
            if class_name and name:
                self._defined.setdefault(class_name, set()).add(name)

    def is_defined(self, class_name: str, name: str) -> bool:
        return any(name in self._defined.get(c, ()) for c in class_lineage(class_name))

    def fix_record(self, rt: etree._Element, log: ErrorLogger) -> bool:
        class_name = record_class(rt)
        for custom in rt.findall("Custom"):
            name = custom.get("name", "")
            if self.is_defined(class_name, name):
                continue
            log(
                f"Removing undefined custom property '{name}' from "
                f"class='{class_name}', guid='{record_guid(rt)}'.",
                True,
            )
            rt.remove(custom)
        return True
