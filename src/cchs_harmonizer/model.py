"""
Core Recoding Model Objects

Defines the declarative data structures that drive harmonization:
    - Domains (valid ranges / category sets)
    - RecodeRules (one target variable in one or more cycles)
    - RuleSets (root container, loaded once per run)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about pandas or raw extracts
        - Are immutable after loading
        - Are fully serializable
        - Describe WHAT to produce, not how rows are processed
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from cchs_harmonizer.preprocess import MissingCodePattern


@dataclass(frozen=True)
class NumericRange:
    """
    A numeric valid domain in interval notation.

    Examples:
        [10,100]   10 <= x <= 100
        (0,1]      0 < x <= 1

    Properties:
        min_value / max_value: bounds (None = unbounded)
        include_min / include_max: closed or open ends
    """

    min_value: Optional[float] = None
    max_value: Optional[float] = None
    include_min: bool = True
    include_max: bool = True

    def contains(self, x: Any) -> bool:
        if isinstance(x, bool):
            return False
        try:
            x = float(x)
        except (TypeError, ValueError):
            return False
        if x != x:
            return False
        if self.min_value is not None:
            if x < self.min_value or (x == self.min_value and not self.include_min):
                return False
        if self.max_value is not None:
            if x > self.max_value or (x == self.max_value and not self.include_max):
                return False
        return True

    def to_text(self) -> str:
        lo = "" if self.min_value is None else _format_number(self.min_value)
        hi = "" if self.max_value is None else _format_number(self.max_value)
        return f"{'[' if self.include_min else '('}{lo},{hi}{']' if self.include_max else ')'}"


@dataclass(frozen=True)
class CategorySet:
    """
    An enumerated valid domain, written {1,2,3}.

    Properties:
        values: the allowed category codes
    """

    values: FrozenSet[Any] = frozenset()

    def contains(self, x: Any) -> bool:
        try:
            return x in self.values
        except TypeError:
            return False

    def to_text(self) -> str:
        return "{" + ",".join(_format_number(v) for v in sorted(self.values, key=str)) + "}"


Domain = Union[NumericRange, CategorySet]

_RANGE_RE = re.compile(r"^\s*([\[\(])\s*([^,\s]*)\s*,\s*([^,\s]*)\s*([\]\)])\s*$")
_SET_RE = re.compile(r"^\s*\{(.*)\}\s*$")


def _format_number(v: Any) -> str:
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def parse_scalar(text: str) -> Any:
    """Read a category code: "1" -> 1, "2.5" -> 2.5, anything else stays text."""
    text = text.strip()
    try:
        number = float(text)
    except ValueError:
        return text
    return int(number) if number.is_integer() else number


def parse_domain(text: Optional[str]) -> Optional[Domain]:
    """
    Parse domain notation.

    Args:
        text: "[min,max]" style interval (either end may be empty for an
            unbounded side) or "{a,b,c}" category set; blank means no domain

    Returns:
        NumericRange, CategorySet, or None

    Raises:
        ValueError: if the text is neither form
    """
    if text is None or not str(text).strip():
        return None
    text = str(text)

    match = _RANGE_RE.match(text)
    if match:
        open_bracket, lo, hi, close_bracket = match.groups()
        try:
            min_value = float(lo) if lo else None
            max_value = float(hi) if hi else None
        except ValueError:
            raise ValueError(f"Invalid numeric bounds in domain: {text!r}")
        if min_value is not None and max_value is not None and min_value > max_value:
            raise ValueError(f"Domain minimum exceeds maximum: {text!r}")
        return NumericRange(
            min_value=min_value,
            max_value=max_value,
            include_min=open_bracket == "[",
            include_max=close_bracket == "]",
        )

    match = _SET_RE.match(text)
    if match:
        items = [i for i in match.group(1).split(",") if i.strip()]
        return CategorySet(frozenset(parse_scalar(i) for i in items))

    raise ValueError(f"Unrecognised domain notation: {text!r}")


class TransformKind(Enum):
    """
    How a rule produces its target.

    IDENTITY / RENAME: copy a raw source column (renamed to the target)
    MAP:               copy a raw column and recode its categories
    DERIVED:           call a registered derivation on other targets
    NOT_ASKED:         the cycle's questionnaire lacks the question
    """

    IDENTITY = "identity"
    RENAME = "rename"
    MAP = "map"
    DERIVED = "derived"
    NOT_ASKED = "not_asked"

    @property
    def reads_raw(self) -> bool:
        return self in (TransformKind.IDENTITY, TransformKind.RENAME, TransformKind.MAP)


@dataclass(frozen=True)
class RecodeRule:
    """
    One row of a declarative rule document.

    Properties:
        target:
            Harmonized variable name (e.g. "HWTGBMI_der")

        cycles:
            Cycles this rule applies to (e.g. ("cchs2001", "cchs2003"))

        sources:
            Raw rules: alternate raw column names, first one present wins
            Derived rules: input target variables in argument order

        kind:
            TransformKind

        pattern:
            MissingCodePattern of the raw column (required for raw rules)

        domain:
            Valid domain; values outside become Missing(b). For derived
            rules this is a post-hoc plausibility check on the output.

        function:
            Registered derivation name (derived rules only)

        value_map:
            (raw, harmonized) category pairs (map rules only)

        label:
            Human-readable description (optional)

    INVARIANTS:
        - (target, cycle) is unique across a RuleSet
        - derived dependencies form a DAG
    """

    target: str
    cycles: Tuple[str, ...]
    sources: Tuple[str, ...] = ()
    kind: TransformKind = TransformKind.IDENTITY
    pattern: Optional[MissingCodePattern] = None
    domain: Optional[Domain] = None
    function: Optional[str] = None
    value_map: Tuple[Tuple[Any, Any], ...] = ()
    label: Optional[str] = None

    def applies_to(self, cycle: str) -> bool:
        return cycle in self.cycles

    @property
    def mapping(self) -> Dict[Any, Any]:
        return dict(self.value_map)


@dataclass
class RuleSet:
    """
    Root container for a loaded rule document.

    Immutable by convention once validated; the recode engine only reads it.

    Properties:
        name: identifier of the rule document
        rules: all RecodeRules, in document order
        metadata: free-form key/value pairs (use sparingly)
    """

    name: str
    rules: List[RecodeRule] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def cycles(self) -> List[str]:
        """All cycles mentioned by any rule, in first-seen order."""
        seen: List[str] = []
        for rule in self.rules:
            for cycle in rule.cycles:
                if cycle not in seen:
                    seen.append(cycle)
        return seen

    @property
    def targets(self) -> List[str]:
        """All target variables, in first-seen order."""
        seen: List[str] = []
        for rule in self.rules:
            if rule.target not in seen:
                seen.append(rule.target)
        return seen

    def rules_for_cycle(self, cycle: str) -> List[RecodeRule]:
        return [r for r in self.rules if r.applies_to(cycle)]

    def rule_for(self, target: str, cycle: str) -> Optional[RecodeRule]:
        """
        Retrieve the rule producing `target` in `cycle`.

        Returns:
            RecodeRule or None if the cycle does not produce the target
        """
        for rule in self.rules:
            if rule.target == target and rule.applies_to(cycle):
                return rule
        return None

    def get_rules(self, target: str) -> List[RecodeRule]:
        return [r for r in self.rules if r.target == target]
