"""
End-to-end harmonization.

    raw extracts (one per cycle) + rule set
        -> recode_cycle() per cycle
        -> merge_harmonized()
        -> HarmonizedTable

The rule set is loaded and validated once; extracts are processed in the
order given and never modified.
"""

import logging
from typing import Mapping, Optional, Sequence

import pandas as pd

from cchs_harmonizer.config import HarmonizerConfig, load_rule_set
from cchs_harmonizer.dependencies import validate_rule_set
from cchs_harmonizer.errors import RuleConfigError
from cchs_harmonizer.merge import merge_harmonized
from cchs_harmonizer.model import RuleSet
from cchs_harmonizer.recode import recode_cycle
from cchs_harmonizer.table import ORIGIN_COLUMN, HarmonizedTable

logger = logging.getLogger(__name__)


def harmonize(
    extracts: Mapping[str, pd.DataFrame],
    rule_set: RuleSet,
    targets: Optional[Sequence[str]] = None,
) -> HarmonizedTable:
    """
    Recode every cycle extract and merge the results.

    Args:
        extracts: cycle identifier -> raw extract
        rule_set: rule set; validated before any cycle is recoded
        targets: targets to produce (default: every target)

    Returns:
        merged HarmonizedTable with one row per input row across all
        extracts, in extract order

    Raises:
        RuleConfigError: if the rule set is broken
    """
    validate_rule_set(rule_set)
    known = set(rule_set.cycles)
    tables = []
    for cycle, extract in extracts.items():
        if cycle not in known:
            logger.warning("No rules mention cycle %s; its rows will be all NA(e)", cycle)
        tables.append(recode_cycle(extract, rule_set, cycle, targets))
    return merge_harmonized(*tables)


def harmonize_from_config(
    config: HarmonizerConfig,
    extracts: Mapping[str, pd.DataFrame],
) -> HarmonizedTable:
    """
    Run a configured harmonization.

    Raises:
        RuleConfigError: if the rule document is broken, or a configured
            cycle has no extract
    """
    rule_set = load_rule_set(config.rules_path)
    cycles = config.cycles if config.cycles is not None else [c for c in extracts if c in rule_set.cycles]
    absent = [c for c in cycles if c not in extracts]
    if absent:
        raise RuleConfigError(f"No extract supplied for cycles: {', '.join(absent)}")
    return harmonize({c: extracts[c] for c in cycles}, rule_set, config.targets)


def to_output(table: HarmonizedTable, config: HarmonizerConfig) -> pd.DataFrame:
    """
    Output frame for a configured run.

    With render_tags the missing cells read NA(x); without it the frame
    holds native values only (None where missing) and the tags stay on
    the table.
    """
    if config.render_tags:
        return table.render(include_origin=True)
    frame = table.values.copy()
    frame.insert(0, ORIGIN_COLUMN, table.origin.values)
    return frame
