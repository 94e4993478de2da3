"""
Record-level fixers, in the order the driver runs them.

Order matters: later fixers see the corrections made by earlier ones on
the same record (for example homograph numbering runs after dangling
allomorph links are gone).
"""

from .base import RecordFixer as RecordFixer
from .original import OriginalFixer as OriginalFixer
from .custom_property import CustomPropertyFixer as CustomPropertyFixer
from .morph_bundle import MorphBundleFixer as MorphBundleFixer
from .sequence import SequenceFixer as SequenceFixer
from .homograph import HomographFixer as HomographFixer

FIXER_CLASSES: tuple[type[RecordFixer], ...] = (
    OriginalFixer,
    CustomPropertyFixer,
    MorphBundleFixer,
    SequenceFixer,
    HomographFixer,
)

FIXER_NAMES: tuple[str, ...] = tuple(cls.name for cls in FIXER_CLASSES)


def create_fixers(names=None) -> list[RecordFixer]:
    """Instantiate the named fixers (all by default) in canonical order."""
    wanted = set(FIXER_NAMES if names is None else names)
    return [cls() for cls in FIXER_CLASSES if cls.name in wanted]


__all__ = [
    "RecordFixer",
    "OriginalFixer",
    "CustomPropertyFixer",
    "MorphBundleFixer",
    "SequenceFixer",
    "HomographFixer",
    "FIXER_CLASSES",
    "FIXER_NAMES",
    "create_fixers",
]
