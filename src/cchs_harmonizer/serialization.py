"""
Serialization helpers for rule sets (RuleSet, RecodeRule, domains).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
Domains are stored in their interval / set notation and tagged missing
values in value maps as their NA(x) label, so a YAML rule document reads
the same way as the CSV one.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from cchs_harmonizer.csv_parser import parse_map_value
from cchs_harmonizer.errors import RuleParseError
from cchs_harmonizer.model import RecodeRule, RuleSet, TransformKind, parse_domain
from cchs_harmonizer.preprocess import MissingCodePattern
from cchs_harmonizer.tagged import Missing


def _map_value_to_plain(v: Any) -> Any:
    if isinstance(v, Missing):
        return v.label
    return v


def _map_value_from_plain(v: Any) -> Any:
    if isinstance(v, str):
        return parse_map_value(v)
    return v


def value_map_to_list(pairs) -> List[List[Any]]:
    return [[raw, _map_value_to_plain(new)] for raw, new in pairs]


def value_map_from_list(items: Any) -> tuple:
    if not items:
        return ()
    if isinstance(items, dict):
        items = list(items.items())
    return tuple((raw, _map_value_from_plain(new)) for raw, new in items)


def rule_to_dict(r: RecodeRule) -> Dict[str, Any]:
    return {
        "target": r.target,
        "cycles": list(r.cycles),
        "sources": list(r.sources),
        "kind": r.kind.value,
        "pattern": r.pattern.value if r.pattern is not None else None,
        "domain": r.domain.to_text() if r.domain is not None else None,
        "function": r.function,
        "value_map": value_map_to_list(r.value_map),
        "label": r.label,
    }


def rule_from_dict(d: Dict[str, Any]) -> RecodeRule:
    try:
        pattern = d.get("pattern")
        return RecodeRule(
            target=d["target"],
            cycles=tuple(d.get("cycles", [])),
            sources=tuple(d.get("sources", [])),
            kind=TransformKind(d.get("kind", TransformKind.IDENTITY.value)),
            pattern=MissingCodePattern(pattern) if pattern else None,
            domain=parse_domain(d.get("domain")),
            function=d.get("function"),
            value_map=value_map_from_list(d.get("value_map")),
            label=d.get("label"),
        )
    except (KeyError, ValueError) as e:
        raise RuleParseError(f"Invalid rule {d.get('target', '?')!r}: {e}") from e


def rule_set_to_dict(rs: RuleSet) -> Dict[str, Any]:
    return {
        "name": rs.name,
        "rules": [rule_to_dict(r) for r in rs.rules],
        "metadata": rs.metadata,
    }


def rule_set_from_dict(d: Dict[str, Any]) -> RuleSet:
    if not isinstance(d, dict):
        raise RuleParseError("Rule document must be a mapping with a 'rules' list")
    return RuleSet(
        name=d.get("name", ""),
        rules=[rule_from_dict(r) for r in d.get("rules", [])],
        metadata=d.get("metadata", {}) or {},
    )


def rule_set_to_json(rs: RuleSet) -> str:
    return json.dumps(rule_set_to_dict(rs), sort_keys=True)


def rule_set_from_json(s: str) -> RuleSet:
    d = json.loads(s)
    return rule_set_from_dict(d)


def rule_set_to_yaml(rs: RuleSet) -> str:
    return yaml.safe_dump(rule_set_to_dict(rs), sort_keys=False)


def rule_set_from_yaml(s: str) -> RuleSet:
    d = yaml.safe_load(s)
    return rule_set_from_dict(d)
