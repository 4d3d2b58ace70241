"""
Tagged-Missing Value Model

Every cell that moves through the harmonizer is a TaggedValue:

    Present(x)        an ordinary response
    Missing(reason)   an absent response, annotated with WHY it is absent

Reasons form a closed, ordered set. When several missing inputs meet in
one computation, the output carries the strongest reason among them.

ARCHITECTURAL RULE:
    There is exactly one internal representation of "missing".
    Sentinel codes (6/96/996...) and "NA(x)" strings exist only at the
    two boundaries: raw-input preprocessing and output rendering.
"""

import re
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd


class Reason(Enum):
    """
    Why a value is missing.

    The enum value is the stable one-letter tag used when a missing value
    is rendered as text, e.g. NA(b).

    Precedence (strongest first):
        NOT_COLLECTED_THIS_CYCLE > NOT_ASKED_THIS_CYCLE > VARIABLE_ABSENT
        > NOT_APPLICABLE > UNKNOWN_OR_REFUSED

    NOT_COLLECTED_THIS_CYCLE is produced only by the cross-cycle merge.
    """

    NOT_APPLICABLE = "a"
    UNKNOWN_OR_REFUSED = "b"
    NOT_ASKED_THIS_CYCLE = "c"
    VARIABLE_ABSENT = "d"
    NOT_COLLECTED_THIS_CYCLE = "e"

    @property
    def precedence(self) -> int:
        """Higher number wins when reasons are combined."""
        return _PRECEDENCE[self]

    @property
    def label(self) -> str:
        return f"NA({self.value})"


_PRECEDENCE = {
    Reason.UNKNOWN_OR_REFUSED: 1,
    Reason.NOT_APPLICABLE: 2,
    Reason.VARIABLE_ABSENT: 3,
    Reason.NOT_ASKED_THIS_CYCLE: 4,
    Reason.NOT_COLLECTED_THIS_CYCLE: 5,
}

_LABEL_RE = re.compile(r"^\s*NA\(([a-e])\)\s*$")


class TaggedValue(ABC):
    """
    Base class for Present and Missing.

    Exists so that type hints and isinstance checks can name "a value that
    has already been through the tagging boundary".
    """

    @property
    def is_missing(self) -> bool:
        return isinstance(self, Missing)


@dataclass(frozen=True)
class Present(TaggedValue):
    """
    An ordinary value (number or category code).

    Properties:
        value: the native value
    """

    value: Any


@dataclass(frozen=True)
class Missing(TaggedValue):
    """
    A missing value and the reason it is missing.

    Properties:
        reason: Reason enum member
    """

    reason: Reason

    @property
    def label(self) -> str:
        return self.reason.label

    @classmethod
    def from_label(cls, text: str) -> Optional["Missing"]:
        """
        Decode "NA(a)" ... "NA(e)" into a Missing value.

        Returns None when text is not a missing-value label.
        """
        match = _LABEL_RE.match(text)
        if match is None:
            return None
        return cls(Reason(match.group(1)))


NA_A = Missing(Reason.NOT_APPLICABLE)
NA_B = Missing(Reason.UNKNOWN_OR_REFUSED)
NA_C = Missing(Reason.NOT_ASKED_THIS_CYCLE)
NA_D = Missing(Reason.VARIABLE_ABSENT)
NA_E = Missing(Reason.NOT_COLLECTED_THIS_CYCLE)


def is_null(x: Any) -> bool:
    """True for None, float NaN, pandas NA/NaT and numpy NaN scalars."""
    result = pd.isna(x)
    return isinstance(result, (bool, np.bool_)) and bool(result)


def as_tagged(x: Any) -> TaggedValue:
    """
    Lift any value into the tagged model.

    - TaggedValue  -> unchanged
    - null / NaN   -> Missing(UNKNOWN_OR_REFUSED)
    - anything else -> Present(x)
    """
    if isinstance(x, TaggedValue):
        return x
    if is_null(x):
        return NA_B
    return Present(x)


def strongest(reasons: Iterable[Reason]) -> Optional[Reason]:
    """Return the highest-precedence reason, or None for an empty input."""
    best = None
    for reason in reasons:
        if best is None or reason.precedence > best.precedence:
            best = reason
    return best


def strongest_missing(values: Iterable[Any]) -> Optional[Missing]:
    """
    Return Missing(strongest reason) among the missing values, or None if
    every value is present.
    """
    reason = strongest(
        v.reason for v in (as_tagged(x) for x in values) if isinstance(v, Missing)
    )
    if reason is None:
        return None
    return Missing(reason)
