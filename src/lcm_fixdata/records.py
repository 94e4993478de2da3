"""Streaming access to the records of a .fwdata project file."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any

from lxml import etree

from lcm_fixdata.exceptions import FixDataError, UnexpectedRootError
from lcm_fixdata.models import RefKind

logger = logging.getLogger(__name__)

ROOT_TAG = "languageproject"
FIELDS_TAG = "AdditionalFields"
RECORD_TAG = "rt"
POINTER_TAG = "objsur"
UNKNOWN_CLASS = "<unknown>"


# ------------------------------------------------------------------
# Record helpers
# ------------------------------------------------------------------

def normalize_guid(value: str) -> str:
    """Canonical lower-case form of a GUID string."""
    return str(uuid.UUID(value))


def record_guid(rt: etree._Element) -> str:
    value = rt.get("guid")
    if value is None:
        raise FixDataError(
            f"<{rt.tag}> element without a guid attribute (line {rt.sourceline})"
        )
    return normalize_guid(value)


def record_class(rt: etree._Element) -> str:
    return rt.get("class", UNKNOWN_CLASS)


def iter_pointers(
    rt: etree._Element, kind: RefKind | None = None
) -> Iterator[etree._Element]:
    """Yield typed <objsur> pointers anywhere below ``rt``."""
    for objsur in rt.iter(POINTER_TAG):
        t = objsur.get("t")
        if t is None:
            continue
        if kind is not None and t != kind.value:
            continue
        yield objsur


def pointer_target(objsur: etree._Element) -> str:
    return normalize_guid(objsur.get("guid", ""))


def detach_pointer(objsur: etree._Element) -> None:
    """Remove a pointer, and its property element if that is left empty."""
    parent = objsur.getparent()
    if parent is None:
        return
    parent.remove(objsur)
    if len(parent) == 0 and parent.tag != RECORD_TAG:
        owner = parent.getparent()
        if owner is not None:
            owner.remove(parent)


# ------------------------------------------------------------------
# Reader
# ------------------------------------------------------------------

class ProjectReader:
    """Stream the top-level children of a <languageproject> document.

    The root element is checked on entry, before anything is yielded.
    Each yielded element is cleared once the consumer moves on, so only
    one record is held in memory at a time.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.root_attrib: dict[str, str] = {}
        self._file: IO[bytes] | None = None
        self._events: Any = None
        self._root: etree._Element | None = None

    def __enter__(self) -> ProjectReader:
        self._file = open(self.path, "rb")
        try:
            self._events = etree.iterparse(
                self._file, events=("start", "end"), huge_tree=True
            )
            _, root = next(self._events)
            if root.tag != ROOT_TAG:
                raise UnexpectedRootError(str(root.tag))
        except BaseException:
            self.close()
            raise
        self._root = root
        self.root_attrib = dict(root.attrib)
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def elements(self) -> Iterator[etree._Element]:
        """Yield each direct child of the root once it is fully parsed."""
        if self._events is None or self._root is None:
            raise FixDataError("ProjectReader used outside of a with block")
        root = self._root
        depth = 0
        for event, elem in self._events:
            if event == "start":
                depth += 1
                continue
            depth -= 1
            if depth != 0:
                continue
            yield elem
            elem.clear()
            while elem.getprevious() is not None:
                del root[0]


# ------------------------------------------------------------------
# Writer
# ------------------------------------------------------------------

class ProjectWriter:
    """Write top-level elements into an open <languageproject> element."""

    def __init__(self, xf: Any) -> None:
        self._xf = xf

    def write(self, element: etree._Element) -> None:
        self._xf.write(element, with_tail=False)
        self._xf.write("\n")


@contextmanager
def project_writer(
    path: str | Path, root_attrib: dict[str, str]
) -> Generator[ProjectWriter, None, None]:
    """Open ``path`` for writing a project document with the given root."""
    with etree.xmlfile(str(path), encoding="utf-8") as xf:
        xf.write_declaration()
        with xf.element(ROOT_TAG, root_attrib):
            xf.write("\n")
            yield ProjectWriter(xf)
