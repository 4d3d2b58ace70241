"""
Missing-Code Preprocessor (raw cycle codes -> TaggedValue).

CCHS cycles encode missing responses as reserved numeric sentinels. Which
sentinels a variable uses is declared once on its RecodeRule as a
MissingCodePattern; nothing here guesses a pattern from the data.

Sentinel table (CCHS convention, reproduced exactly):

    pattern               NA(a) not applicable   NA(b) don't know/refused/not stated
    standard_response     6                      7, 8, 9
    categorical_age       96                     97, 98, 99
    continuous_standard   996                    997, 998, 999

String labels "NA(a)" ... "NA(e)" decode to the matching reason under
every pattern. Already-tagged values pass through untouched, which makes
preprocessing idempotent.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

import pandas as pd

from cchs_harmonizer.tagged import (
    Missing,
    Present,
    Reason,
    TaggedValue,
    is_null,
    NA_A,
    NA_B,
)


class MissingCodePattern(Enum):
    """Sentinel conventions used by CCHS raw variables."""

    STANDARD_RESPONSE = "standard_response"
    CATEGORICAL_AGE = "categorical_age"
    CONTINUOUS_STANDARD = "continuous_standard"
    NONE = "none"


SENTINELS: Dict[MissingCodePattern, Tuple[FrozenSet[int], FrozenSet[int]]] = {
    MissingCodePattern.STANDARD_RESPONSE: (frozenset({6}), frozenset({7, 8, 9})),
    MissingCodePattern.CATEGORICAL_AGE: (frozenset({96}), frozenset({97, 98, 99})),
    MissingCodePattern.CONTINUOUS_STANDARD: (frozenset({996}), frozenset({997, 998, 999})),
    MissingCodePattern.NONE: (frozenset(), frozenset()),
}


def _to_number(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return raw
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _normalize(number: float) -> Any:
    """Keep integral codes as int so category lookups match."""
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _classify(number: float, pattern: MissingCodePattern) -> TaggedValue:
    not_applicable, unknown = SENTINELS[pattern]
    if number in not_applicable:
        return NA_A
    if number in unknown:
        return NA_B
    return Present(_normalize(number))


def preprocess_value(
    raw: Any,
    pattern: MissingCodePattern = MissingCodePattern.STANDARD_RESPONSE,
    numeric: bool = True,
) -> TaggedValue:
    """
    Convert one raw cell into a TaggedValue.

    Args:
        raw: raw cell (number, numeric string, "NA(x)" label, null, or an
            already-tagged value)
        pattern: sentinel convention for the variable
        numeric: when False, a non-numeric string is kept as a Present
            category instead of being demoted to Missing(b)

    Returns:
        TaggedValue; never raises for bad data
    """
    if isinstance(raw, TaggedValue):
        return raw
    if is_null(raw):
        return NA_B

    if isinstance(raw, str):
        text = raw.strip()
        label = Missing.from_label(text)
        if label is not None:
            return label
        if text == "":
            return NA_B
        number = _to_number(text)
        if number is None:
            return Present(text) if not numeric else NA_B
        if not math.isfinite(number):
            return NA_B
        return _classify(number, pattern)

    number = _to_number(raw)
    if number is None:
        return NA_B if numeric else Present(raw)
    if not math.isfinite(number):
        return NA_B
    return _classify(number, pattern)


def preprocess_values(
    values: Iterable[Any],
    pattern: MissingCodePattern = MissingCodePattern.STANDARD_RESPONSE,
    numeric: bool = True,
) -> List[TaggedValue]:
    """Preprocess every element of a vector of raw values."""
    return [preprocess_value(v, pattern, numeric) for v in values]


def preprocess_series(
    series: pd.Series,
    pattern: MissingCodePattern = MissingCodePattern.STANDARD_RESPONSE,
    numeric: bool = True,
) -> pd.Series:
    """Preprocess a raw extract column into an object Series of TaggedValues."""
    return pd.Series(
        preprocess_values(series.tolist(), pattern, numeric),
        index=series.index,
        name=series.name,
        dtype=object,
    )


def has_missing_codes(values: Iterable[Any], pattern: Optional[MissingCodePattern] = None) -> bool:
    """
    Report whether any raw value is a sentinel code.

    With pattern=None every known sentinel (6-9, 96-99, 996-999) counts.
    Callers use this to skip preprocessing of clean columns.
    """
    if pattern is None:
        codes = set()
        for na_codes, unknown_codes in SENTINELS.values():
            codes |= na_codes | unknown_codes
    else:
        na_codes, unknown_codes = SENTINELS[pattern]
        codes = na_codes | unknown_codes

    for v in values:
        if isinstance(v, TaggedValue) or is_null(v):
            continue
        number = _to_number(v.strip() if isinstance(v, str) else v)
        if number is not None and number in codes:
            return True
    return False


@dataclass
class PreprocessingReport:
    """Quality check of one preprocessed column against its raw input."""

    is_valid: bool
    original_codes_present: bool
    codes_remaining: bool
    length_preserved: bool
    reason_counts: Dict[Reason, int] = field(default_factory=dict)

    @property
    def total_missing(self) -> int:
        return sum(self.reason_counts.values())


def validate_preprocessing(
    original: Iterable[Any],
    processed: Iterable[Any],
    pattern: MissingCodePattern,
) -> PreprocessingReport:
    """
    Check that preprocessing converted every sentinel and kept the length.

    Valid means no sentinel survived as a Present value and the output is
    as long as the input.
    """
    original = list(original)
    processed = list(processed)
    na_codes, unknown_codes = SENTINELS[pattern]
    codes = na_codes | unknown_codes

    remaining = any(
        isinstance(p, Present) and _to_number(p.value) in codes for p in processed
    ) or has_missing_codes([p for p in processed if not isinstance(p, TaggedValue)], pattern)

    counts: Dict[Reason, int] = {}
    for p in processed:
        if isinstance(p, Missing):
            counts[p.reason] = counts.get(p.reason, 0) + 1

    length_preserved = len(original) == len(processed)
    return PreprocessingReport(
        is_valid=length_preserved and not remaining,
        original_codes_present=has_missing_codes(original, pattern),
        codes_remaining=remaining,
        length_preserved=length_preserved,
        reason_counts=counts,
    )
