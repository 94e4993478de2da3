"""Base class for record-level fixers."""

from __future__ import annotations

from lxml import etree

from lcm_fixdata.exceptions import FixDataError
from lcm_fixdata.models import ErrorLogger, PassContext


class RecordFixer:
    """A unit of repair logic applied to every <rt> record.

    The driver calls, for every pass: :meth:`reset`, then
    :meth:`inspect_custom_fields` and :meth:`inspect_record` while reading
    the input, then :meth:`finalize_indices` once, then :meth:`fix_record`
    for each record while writing the output.

    Every change a fixer makes must be logged with ``fixed=True``; the
    driver uses that count to decide whether another pass is needed.
    """

    name = "base"

    def __init__(self) -> None:
        self._context: PassContext | None = None

    @property
    def context(self) -> PassContext:
        if self._context is None:
            raise FixDataError(f"{type(self).__name__} used before finalize_indices()")
        return self._context

    def reset(self) -> None:
        """Forget everything gathered in a previous pass.  Overrides call super()."""
        self._context = None

    def inspect_custom_fields(self, fields: etree._Element) -> None:
        """Look at the <AdditionalFields> element (CustomField children)."""

    def inspect_record(self, rt: etree._Element) -> None:
        """First-pass hook for fixers that need information from other records."""

    def finalize_indices(self, context: PassContext) -> None:
        """Receive the shared indices for this pass.  Overrides call super()."""
        self._context = context

    def fix_record(self, rt: etree._Element, log: ErrorLogger) -> bool:
        """Repair ``rt`` in place.  Return False to drop the record."""
        raise NotImplementedError
