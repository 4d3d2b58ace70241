"""
Bounds / Domain Validator.

Single values:
    check_domain() demotes a Present value outside its declared domain to
    Missing(b). A Missing value is returned untouched; bounds-checking
    never upgrades or downgrades an existing tag.

Joint inputs:
    validate_inputs() lines up the input vectors of a derivation before
    any row is computed. Structural problems resolve the WHOLE batch:

        required input never supplied      -> every row Missing(d)
        incompatible vector lengths        -> every row Missing(b)

    In both cases the batch has the length of the longest input, so a
    caller always gets one output per row it expected.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from cchs_harmonizer.model import Domain
from cchs_harmonizer.tagged import (
    Missing,
    Reason,
    TaggedValue,
    as_tagged,
)

logger = logging.getLogger(__name__)


def check_domain(value: Any, domain: Optional[Domain]) -> TaggedValue:
    """
    Confirm a value lies in its valid domain.

    Args:
        value: raw or tagged value
        domain: NumericRange, CategorySet, or None (no check)

    Returns:
        the tagged value, or Missing(UNKNOWN_OR_REFUSED) if it is Present
        but outside the domain
    """
    tagged = as_tagged(value)
    if domain is None or isinstance(tagged, Missing):
        return tagged
    if domain.contains(tagged.value):
        return tagged
    return Missing(Reason.UNKNOWN_OR_REFUSED)


def check_domain_all(values: Sequence[Any], domain: Optional[Domain]) -> List[TaggedValue]:
    return [check_domain(v, domain) for v in values]


def is_vector(x: Any) -> bool:
    """Lists, tuples, Series and arrays are vectors; everything else is a scalar."""
    return isinstance(x, (list, tuple, pd.Series, np.ndarray))


def _as_list(x: Any) -> List[Any]:
    if isinstance(x, pd.Series):
        return x.tolist()
    return list(x)


@dataclass
class InputBatch:
    """
    Input columns of one derivation call, aligned to a common length.

    Properties:
        length: number of output rows
        columns: name -> list of TaggedValues (only when failure is None)
        failure: the Missing value every row resolves to, if the batch
            could not be lined up
    """

    length: int
    columns: Dict[str, List[TaggedValue]] = field(default_factory=dict)
    failure: Optional[Missing] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def rows(self) -> Iterator[Dict[str, TaggedValue]]:
        for i in range(self.length):
            yield {name: col[i] for name, col in self.columns.items()}

    def filled(self) -> List[TaggedValue]:
        """One copy of the failure per row."""
        return [self.failure] * self.length


def validate_inputs(
    inputs: Mapping[str, Any],
    required: Sequence[str],
    domains: Optional[Mapping[str, Domain]] = None,
    length: Optional[int] = None,
) -> InputBatch:
    """
    Check and align the inputs of a derivation.

    Args:
        inputs: name -> scalar or vector; a name that is not a key was
            never supplied
        required: names the derivation needs
        domains: optional name -> Domain pre-check on the inputs
        length: number of rows expected when no input is a vector

    Returns:
        InputBatch with broadcast, domain-checked columns, or a failed batch
    """
    vector_lengths = [len(v) for v in inputs.values() if is_vector(v)]
    if vector_lengths:
        length = max(vector_lengths)
    elif length is None:
        length = 1

    absent = [name for name in required if name not in inputs]
    if absent:
        logger.debug("Inputs never supplied: %s", ", ".join(absent))
        return InputBatch(length=length, failure=Missing(Reason.VARIABLE_ABSENT))

    distinct = {n for n in vector_lengths if n != 1}
    if len(distinct) > 1:
        logger.debug("Incompatible input lengths: %s", sorted(distinct))
        return InputBatch(length=length, failure=Missing(Reason.UNKNOWN_OR_REFUSED))

    domains = domains or {}
    columns: Dict[str, List[TaggedValue]] = {}
    for name, value in inputs.items():
        if is_vector(value):
            values = _as_list(value)
            if len(values) == 1:
                values = values * length
        else:
            values = [value] * length
        columns[name] = check_domain_all(values, domains.get(name))

    return InputBatch(length=length, columns=columns)
