"""
Derived-variable dependency graph and load-time rule checks.

A derived rule reads other TARGET variables of the same cycle (listed in
its sources). Those edges must form a DAG; the recode engine evaluates
rules in the topological order computed here, so a rule never reads a
column that has not been produced yet.

Everything in this module runs before any respondent row is touched.
A broken rule document raises a RuleConfigError subclass.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Set

from cchs_harmonizer.errors import (
    DependencyCycleError,
    DuplicateRuleError,
    MissingPatternError,
    RuleConfigError,
    UnknownDerivationError,
)
from cchs_harmonizer.model import RecodeRule, RuleSet, TransformKind
from cchs_harmonizer.registry import get_derivation

logger = logging.getLogger(__name__)


def dependency_graph(rule_set: RuleSet, cycle: str) -> Dict[str, List[str]]:
    """
    Build target -> [targets it reads] for one cycle.

    Only derived rules have outgoing edges. An edge is kept only when the
    source is itself produced in the cycle; inputs the cycle never
    produces are reported by the analyzer, not treated as edges.
    """
    rules = rule_set.rules_for_cycle(cycle)
    produced = {r.target for r in rules}
    graph: Dict[str, List[str]] = defaultdict(list)
    for rule in rules:
        if rule.kind is TransformKind.DERIVED:
            graph[rule.target] = [s for s in rule.sources if s in produced]
    return graph


def _find_cycle_dfs(
    graph: Dict[str, List[str]],
    start: str,
    visited: Set[str],
    rec_stack: Set[str],
    path: List[str],
) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycle_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


def find_cycle(rule_set: RuleSet) -> Optional[List[str]]:
    """
    Return one dependency cycle (first node repeated at the end), or None.

    Every cycle of the rule set is checked; the first loop found wins.
    """
    for cycle in rule_set.cycles:
        graph = dependency_graph(rule_set, cycle)
        visited: Set[str] = set()
        for target in list(graph):
            if target not in visited:
                loop = _find_cycle_dfs(graph, target, visited, set(), [])
                if loop:
                    return loop
    return None


def evaluation_order(
    rule_set: RuleSet,
    cycle: str,
    targets: Optional[Sequence[str]] = None,
) -> List[RecodeRule]:
    """
    Order the rules of one cycle so every dependency comes first.

    Args:
        rule_set: validated rule set
        cycle: cycle identifier
        targets: targets to produce (default: every target of the cycle).
            Their transitive dependencies are included. Targets the cycle
            has no rule for are skipped.

    Returns:
        RecodeRules in evaluation order. The order is deterministic:
        requested targets are visited in document order and each rule's
        inputs in argument order.

    Raises:
        DependencyCycleError: if the requested targets depend on a loop
    """
    rules = {r.target: r for r in rule_set.rules_for_cycle(cycle)}
    requested = list(targets) if targets is not None else list(rules)
    graph = dependency_graph(rule_set, cycle)

    ordered: List[RecodeRule] = []
    done: Set[str] = set()

    def visit(target: str, trail: List[str]) -> None:
        if target in done or target not in rules:
            return
        if target in trail:
            loop = trail[trail.index(target):] + [target]
            raise DependencyCycleError(loop)
        for source in graph.get(target, []):
            visit(source, trail + [target])
        done.add(target)
        ordered.append(rules[target])

    for target in requested:
        visit(target, [])

    skipped = [t for t in requested if t not in rules]
    if skipped:
        logger.debug("%s: no rule for %s", cycle, ", ".join(skipped))
    return ordered


def validate_rule_set(rule_set: RuleSet) -> None:
    """
    Reject a broken rule document.

    Raises:
        DuplicateRuleError: two rules produce one target in one cycle
        MissingPatternError: a raw-column rule has no missing-code pattern
        UnknownDerivationError: a derived rule names no registered function
        RuleConfigError: a raw rule has no source column, a map rule has
            no value map, or a derived rule's source count does not match
            its function's inputs
        DependencyCycleError: derived variables depend on each other in a loop
    """
    seen: Set[tuple] = set()
    for rule in rule_set.rules:
        for cycle in rule.cycles:
            key = (rule.target, cycle)
            if key in seen:
                raise DuplicateRuleError(
                    f"More than one rule produces {rule.target!r} in cycle {cycle!r}"
                )
            seen.add(key)

        if rule.kind.reads_raw:
            if rule.pattern is None:
                raise MissingPatternError(
                    f"Rule for {rule.target!r} reads raw columns but declares no missing-code pattern"
                )
            if not rule.sources:
                raise RuleConfigError(f"Rule for {rule.target!r} names no source column")
            if rule.kind is TransformKind.MAP and not rule.value_map:
                raise RuleConfigError(f"Map rule for {rule.target!r} has no value map")

        if rule.kind is TransformKind.DERIVED:
            if not rule.function:
                raise UnknownDerivationError(f"Derived rule for {rule.target!r} names no function")
            entry = get_derivation(rule.function)
            if len(rule.sources) != len(entry.inputs):
                raise RuleConfigError(
                    f"{rule.function} takes {len(entry.inputs)} inputs "
                    f"({', '.join(entry.inputs)}) but the rule for {rule.target!r} "
                    f"lists {len(rule.sources)}"
                )

    loop = find_cycle(rule_set)
    if loop:
        raise DependencyCycleError(loop)

    logger.debug("Rule set %s validated: %d rules", rule_set.name, len(rule_set.rules))


__all__ = [
    "dependency_graph",
    "evaluation_order",
    "find_cycle",
    "validate_rule_set",
]
