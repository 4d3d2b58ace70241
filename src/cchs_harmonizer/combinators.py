"""
Missing-propagating combinators.

Every derived-variable function is built from these primitives. They are
total: any combination of Present and Missing inputs yields a TaggedValue,
and none of them raises for an out-of-domain input.

Propagation policy:
    - a Missing input is never coerced into a Present default
    - when several inputs are Missing, the strongest reason wins
"""

import math
import numbers
from typing import Any, Callable, Hashable, Iterable, Mapping, Sequence

from cchs_harmonizer.tagged import (
    Missing,
    Present,
    Reason,
    TaggedValue,
    as_tagged,
    is_null,
    strongest_missing,
)


def _resolve(branch: Any) -> TaggedValue:
    if callable(branch) and not isinstance(branch, TaggedValue):
        branch = branch()
    return as_tagged(branch)


def _is_number(x: Any) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, bool)


def select_first_present(cond: Any, if_true: Any, if_false: Any) -> TaggedValue:
    """
    Three-valued conditional.

    - cond Missing          -> Missing; the strongest reason among cond and
                               any already-missing branch values
    - cond Present(truthy)  -> if_true
    - cond Present(falsy)   -> if_false (a null/NaN condition counts as false)

    Branches may be values or zero-argument callables. Callables are only
    evaluated when selected, so nested conditionals do not compute (or
    raise inside) branches that are never taken.
    """
    if isinstance(cond, Missing):
        candidates = [cond] + [b for b in (if_true, if_false) if isinstance(b, Missing)]
        return strongest_missing(candidates)

    raw = cond.value if isinstance(cond, Present) else cond
    if is_null(raw):
        return _resolve(if_false)
    try:
        chosen = if_true if bool(raw) else if_false
    except (TypeError, ValueError):
        return Missing(Reason.UNKNOWN_OR_REFUSED)
    return _resolve(chosen)


def where(value: Any, predicate: Callable[[Any], bool]) -> TaggedValue:
    """
    Apply a comparison to a tagged value.

    A Missing value short-circuits and is returned as-is, so a comparison
    against Missing can never be silently read as False. A predicate that
    cannot be applied to the present value folds into Missing(b).
    """
    tagged = as_tagged(value)
    if isinstance(tagged, Missing):
        return tagged
    try:
        return Present(bool(predicate(tagged.value)))
    except (TypeError, ValueError, ArithmeticError):
        return Missing(Reason.UNKNOWN_OR_REFUSED)


def combine_all(reducer: Callable[[Sequence[Any]], Any], *values: Any) -> TaggedValue:
    """
    Reduce values only if every one of them is Present.

    Examples:
        combine_all(sum, Present(1), Present(2))        -> Present(3)
        combine_all(sum, Present(1), NA_C, NA_B)         -> NA_C

    The reducer receives the list of unwrapped values. A reducer that raises
    an arithmetic/type error, or returns a non-finite number, yields Missing(b).
    """
    tagged = [as_tagged(v) for v in values]
    missing = strongest_missing(tagged)
    if missing is not None:
        return missing
    try:
        result = reducer([t.value for t in tagged])
    except (TypeError, ValueError, ArithmeticError):
        return Missing(Reason.UNKNOWN_OR_REFUSED)
    if _is_number(result) and not math.isfinite(result):
        return Missing(Reason.UNKNOWN_OR_REFUSED)
    return as_tagged(result)


def clamp_to_domain(
    value: Any,
    min_value: float,
    max_value: float,
    out_of_range_reason: Reason = Reason.UNKNOWN_OR_REFUSED,
) -> TaggedValue:
    """
    Demote a Present value outside [min_value, max_value] to Missing.

    Missing values pass through unchanged. A Present value that is not a
    number cannot be in a numeric range and is demoted as well.
    """
    tagged = as_tagged(value)
    if isinstance(tagged, Missing):
        return tagged
    if not _is_number(tagged.value) or not (min_value <= tagged.value <= max_value):
        return Missing(out_of_range_reason)
    return tagged


def any_all(items: Iterable[Any], affirmative: Any = 1, negative: Any = 2) -> TaggedValue:
    """
    "Any affirmative / all negative" aggregate over binary items.

    Priority order:
        1. any item Present(affirmative)   -> Present(affirmative), even if
                                              other items are Missing
        2. every item Present(negative)    -> Present(negative)
        3. otherwise                       -> Missing, strongest reason among
                                              the missing items (b if none)
    """
    tagged = [as_tagged(i) for i in items]
    if any(isinstance(t, Present) and t.value == affirmative for t in tagged):
        return Present(affirmative)
    if tagged and all(isinstance(t, Present) and t.value == negative for t in tagged):
        return Present(negative)
    return strongest_missing(tagged) or Missing(Reason.UNKNOWN_OR_REFUSED)


def count_matching(items: Iterable[Any], match: Any = 1) -> TaggedValue:
    """
    Count items equal to `match`.

    Unlike any_all, a count needs every item: a single Missing item makes
    the whole count Missing.
    """
    tagged = [as_tagged(i) for i in items]
    missing = strongest_missing(tagged)
    if missing is not None:
        return missing
    return Present(sum(1 for t in tagged if t.value == match))


def recode_categories(value: Any, mapping: Mapping[Hashable, Any]) -> TaggedValue:
    """
    Look a Present category up in `mapping`.

    Missing passes through; a Present value with no entry becomes Missing(b).
    Mapping values may be zero-argument callables, evaluated only for the
    matching key.
    """
    tagged = as_tagged(value)
    if isinstance(tagged, Missing):
        return tagged
    try:
        chosen = mapping[tagged.value]
    except (KeyError, TypeError):
        return Missing(Reason.UNKNOWN_OR_REFUSED)
    return _resolve(chosen)


def classify_intervals(value: Any, upper_bounds: Sequence[float], categories: Sequence[Any]) -> TaggedValue:
    """
    Bucket a continuous value into ordered half-open intervals.

    With upper_bounds = [18.5, 25, 30] and categories = [1, 2, 3, 4]:

        x < 18.5          -> 1
        18.5 <= x < 25    -> 2
        25 <= x < 30      -> 3
        x >= 30           -> 4

    The first matching interval wins, so every number lands in exactly one
    category. Missing short-circuits before any test; a non-numeric Present
    value becomes Missing(b).
    """
    if len(categories) != len(upper_bounds) + 1:
        raise ValueError("classify_intervals needs one more category than bounds")
    tagged = as_tagged(value)
    if isinstance(tagged, Missing):
        return tagged
    if not _is_number(tagged.value) or tagged.value != tagged.value:
        return Missing(Reason.UNKNOWN_OR_REFUSED)
    for bound, category in zip(upper_bounds, categories):
        if tagged.value < bound:
            return Present(category)
    return Present(categories[-1])
