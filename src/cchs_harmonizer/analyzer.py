"""
Rule Set Analyzer: early diagnostics and inventory of recoding rules.

This module provides lightweight analysis of RuleSet objects:
    - Rule and target inventory
    - Per-target cycle coverage
    - Targets that the cross-cycle merge will retag as NA(e)
    - Derived inputs a cycle never produces
    - Dependency cycles
    - Registered derivations no rule uses

IMPORTANT: It does NOT modify or validate-and-raise on the rule set.
It only produces read-only reports; validate_rule_set() is the gate.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from cchs_harmonizer.dependencies import find_cycle
from cchs_harmonizer.model import RuleSet, TransformKind
from cchs_harmonizer.registry import registered_names


@dataclass
class RuleSetReport:
    """Analysis report for a rule set."""

    rule_set_name: str
    total_rules: int = 0
    total_targets: int = 0
    total_cycles: int = 0

    rules_by_kind: Dict[str, int] = field(default_factory=dict)

    # Coverage
    coverage: Dict[str, List[str]] = field(default_factory=dict)  # target -> cycles
    partial_targets: Set[str] = field(default_factory=set)  # retagged NA(e) at merge

    # Dependencies
    unresolved_inputs: Dict[Tuple[str, str], List[str]] = field(default_factory=dict)
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    # Catalogue
    functions_used: Set[str] = field(default_factory=set)
    unknown_functions: Set[str] = field(default_factory=set)
    unused_derivations: Set[str] = field(default_factory=set)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_rule_set(rule_set: RuleSet) -> RuleSetReport:
    """
    Perform analysis of a RuleSet.

    Checks for:
    - targets not produced in every cycle
    - derived rules whose inputs are not produced in their cycle
    - dependency cycles and unregistered functions
    - raw rules without a missing-code pattern

    Returns a RuleSetReport with metrics and warnings.
    """
    report = RuleSetReport(rule_set_name=rule_set.name)

    cycles = rule_set.cycles
    report.total_rules = len(rule_set.rules)
    report.total_targets = len(rule_set.targets)
    report.total_cycles = len(cycles)

    kinds: Dict[str, int] = defaultdict(int)
    for rule in rule_set.rules:
        kinds[rule.kind.value] += 1
    report.rules_by_kind = dict(kinds)

    # =========================================================================
    # 1. COVERAGE
    # =========================================================================

    for target in rule_set.targets:
        covered = [c for c in cycles if rule_set.rule_for(target, c) is not None]
        report.coverage[target] = covered
        if len(covered) < len(cycles):
            report.partial_targets.add(target)

    # =========================================================================
    # 2. DEPENDENCIES
    # =========================================================================

    for cycle in cycles:
        rules = rule_set.rules_for_cycle(cycle)
        produced = {r.target for r in rules}
        for rule in rules:
            if rule.kind is not TransformKind.DERIVED:
                continue
            missing = [s for s in rule.sources if s not in produced]
            if missing:
                report.unresolved_inputs[(rule.target, cycle)] = missing

    loop = find_cycle(rule_set)
    if loop:
        report.has_cycles = True
        report.cycle_example = loop

    # =========================================================================
    # 3. CATALOGUE
    # =========================================================================

    registered = set(registered_names())
    report.functions_used = {r.function for r in rule_set.rules if r.function}
    report.unknown_functions = report.functions_used - registered
    report.unused_derivations = registered - report.functions_used

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if report.partial_targets:
        report.add_warning(
            f"Targets missing from some cycles (NA(e) after merge): "
            f"{', '.join(sorted(report.partial_targets))}"
        )

    for (target, cycle), inputs in sorted(report.unresolved_inputs.items()):
        report.add_warning(
            f"{target} in {cycle} reads inputs the cycle does not produce "
            f"(NA(d)): {', '.join(inputs)}"
        )

    if report.has_cycles:
        report.add_warning(f"Cycle detected: {' -> '.join(report.cycle_example)}")

    if report.unknown_functions:
        report.add_warning(
            f"Unregistered functions: {', '.join(sorted(report.unknown_functions))}"
        )

    unpatterned = sorted({r.target for r in rule_set.rules if r.kind.reads_raw and r.pattern is None})
    if unpatterned:
        report.add_warning(f"Raw rules without a missing-code pattern: {', '.join(unpatterned)}")

    return report
