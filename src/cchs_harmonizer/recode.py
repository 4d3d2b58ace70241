"""
Per-cycle recode engine.

recode_cycle() turns one raw cycle extract into a HarmonizedTable, one
output row per input row. Rules run in dependency order:

    raw rules       first source column present in the extract ->
                    preprocess sentinels -> (map categories) -> domain check
    derived rules   registered function over already-produced targets ->
                    plausibility check against the rule's domain
    not_asked       NA(c) for every row

A raw rule none of whose source columns is in the extract produces NA(d).
"""

import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd

from cchs_harmonizer.bounds import check_domain_all
from cchs_harmonizer.combinators import recode_categories
from cchs_harmonizer.dependencies import evaluation_order, validate_rule_set
from cchs_harmonizer.model import CategorySet, RecodeRule, RuleSet, TransformKind
from cchs_harmonizer.preprocess import preprocess_series
from cchs_harmonizer.registry import get_derivation
from cchs_harmonizer.table import HarmonizedTable
from cchs_harmonizer.tagged import NA_C, NA_D, TaggedValue

logger = logging.getLogger(__name__)


def _reads_text(rule: RecodeRule) -> bool:
    """Text category codes are kept as text instead of failing numeric parsing."""
    keys = [raw for raw, _ in rule.value_map]
    if isinstance(rule.domain, CategorySet):
        keys.extend(rule.domain.values)
    return any(isinstance(k, str) for k in keys)


def _source_column(rule: RecodeRule, extract: pd.DataFrame) -> Optional[str]:
    for source in rule.sources:
        if source in extract.columns:
            return source
    return None


def _recode_raw(rule: RecodeRule, extract: pd.DataFrame, cycle: str) -> List[TaggedValue]:
    source = _source_column(rule, extract)
    if source is None:
        logger.debug("%s/%s: none of %s in extract", cycle, rule.target, ", ".join(rule.sources))
        return [NA_D] * len(extract)

    column = preprocess_series(extract[source], rule.pattern, numeric=not _reads_text(rule)).tolist()
    column = check_domain_all(column, rule.domain)
    if rule.kind is TransformKind.MAP:
        mapping = rule.mapping
        column = [recode_categories(v, mapping) for v in column]
    logger.debug("%s/%s: %s from %s", cycle, rule.target, rule.kind.value, source)
    return column


def _recode_derived(
    rule: RecodeRule,
    produced: Dict[str, List[TaggedValue]],
    length: int,
    cycle: str,
) -> List[TaggedValue]:
    entry = get_derivation(rule.function)
    columns = {
        param: produced[source]
        for param, source in zip(entry.inputs, rule.sources)
        if source in produced
    }
    results = entry.apply(columns, length=length)
    logger.debug("%s/%s: %s(%s)", cycle, rule.target, rule.function, ", ".join(rule.sources))
    return check_domain_all(results, rule.domain)


def recode_cycle(
    extract: pd.DataFrame,
    rule_set: RuleSet,
    cycle: str,
    targets: Optional[Sequence[str]] = None,
) -> HarmonizedTable:
    """
    Harmonize one cycle's raw extract.

    Args:
        extract: respondent rows x raw survey columns
        rule_set: rule set; validated before any row is read
        cycle: cycle identifier the extract belongs to
        targets: targets to output (default: every target of the cycle).
            Their dependencies are computed but not output.

    Returns:
        HarmonizedTable with len(extract) rows, in extract order. Requested
        targets the cycle has no rule for are left out; the merge tags
        them NA(e). The extract's index is not kept: to join results back
        to respondents, declare the ID column as an identity rule with
        pattern "none".

    Raises:
        RuleConfigError: if the rule set is broken
    """
    validate_rule_set(rule_set)
    extract = extract.reset_index(drop=True)
    length = len(extract)
    produced: Dict[str, List[TaggedValue]] = {}

    for rule in evaluation_order(rule_set, cycle, targets):
        if rule.kind is TransformKind.NOT_ASKED:
            produced[rule.target] = [NA_C] * length
        elif rule.kind is TransformKind.DERIVED:
            produced[rule.target] = _recode_derived(rule, produced, length, cycle)
        else:
            produced[rule.target] = _recode_raw(rule, extract, cycle)

    wanted = list(targets) if targets is not None else list(produced)
    columns = {t: produced[t] for t in wanted if t in produced}
    logger.info("%s: recoded %d rows into %d targets", cycle, length, len(columns))
    return HarmonizedTable.from_columns(columns, cycle=cycle, length=length)
