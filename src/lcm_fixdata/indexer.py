"""Global index builder: identities, owners and owned children."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from lxml import etree

from lcm_fixdata.models import ErrorLogger, PassContext, RefKind
from lcm_fixdata.records import iter_pointers, pointer_target, record_guid

logger = logging.getLogger(__name__)


class IndexBuilder:
    """Accumulate a :class:`PassContext` one record at a time.

    Duplicate identities and second ownership claims are reported but not
    repaired; the first owner seen wins.
    """

    def __init__(self, log: ErrorLogger) -> None:
        self._log = log
        self.context = PassContext()

    def add(self, rt: etree._Element) -> None:
        guid = record_guid(rt)
        ctx = self.context
        if guid in ctx.guids:
            self._log(f"Object with guid '{guid}' already exists! (not fixed)", False)
        else:
            ctx.guids.add(guid)

        children: set[str] = set()
        for objsur in iter_pointers(rt, RefKind.OWNERSHIP):
            target = pointer_target(objsur)
            if target in ctx.owners:
                self._log(
                    f"Object with guid '{target}' is already owned by "
                    f"'{ctx.owners[target]}'; also claimed by '{guid}'! (not fixed)",
                    False,
                )
            else:
                ctx.owners[target] = guid
            children.add(target)
        if children:
            ctx.owned_children.setdefault(guid, set()).update(children)


def build_indices(records: Iterable[etree._Element], log: ErrorLogger) -> PassContext:
    """Build the pass indices from an iterable of <rt> elements."""
    builder = IndexBuilder(log)
    for rt in records:
        builder.add(rt)
    logger.debug(
        f"Indexed {len(builder.context.guids)} objects, "
        f"{len(builder.context.owners)} owned"
    )
    return builder.context
