"""
Cross-cycle merge.

    per-cycle tables  --merge_harmonized()-->  merged table

Rows are stacked (a union, never a join) over the union of all target
columns. A cell is left unset when its row's cycle produced no such column;
retag_not_collected() then marks exactly those cells NA(e). Cells already
holding a value or one of the other tags are never touched, so merging an
already-merged table changes nothing.
"""

import logging

from cchs_harmonizer.table import HarmonizedTable
from cchs_harmonizer.tagged import Reason

logger = logging.getLogger(__name__)


def retag_not_collected(table: HarmonizedTable) -> HarmonizedTable:
    """Tag every unset cell NOT_COLLECTED_THIS_CYCLE (NA(e))."""
    unset = table.unset_mask()
    count = int(unset.to_numpy().sum()) if unset.size else 0
    if count == 0:
        return table
    logger.debug("Retagging %d unset cells as %s", count, Reason.NOT_COLLECTED_THIS_CYCLE.label)
    tags = table.tags.mask(unset, Reason.NOT_COLLECTED_THIS_CYCLE.value)
    return table.with_tags(tags)


def merge_harmonized(*tables: HarmonizedTable) -> HarmonizedTable:
    """
    Stack per-cycle tables and retag cells their cycle never collected.

    Example:
        cycle A produces X, cycle B has no rule for X
        -> B's rows read NA(e) in X; A's rows are unchanged
    """
    merged = retag_not_collected(HarmonizedTable.concat(list(tables)))
    logger.info("Merged %d tables: %s", len(tables), merged.summary())
    return merged
