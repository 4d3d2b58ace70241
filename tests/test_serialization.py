"""
Tests for serialization and deserialization of rule sets.

These tests ensure lossless JSON/YAML round-trip using the explicit
serialization functions in `cchs_harmonizer.serialization`.
"""

import json

import pytest
import yaml

from cchs_harmonizer.errors import RuleParseError
from cchs_harmonizer.model import RecodeRule, RuleSet, TransformKind
from cchs_harmonizer.serialization import (
    rule_from_dict,
    rule_set_from_dict,
    rule_set_from_json,
    rule_set_from_yaml,
    rule_set_to_dict,
    rule_set_to_json,
    rule_set_to_yaml,
    rule_to_dict,
)
from cchs_harmonizer.tagged import NA_A


def test_rule_dict_shape(example_rules):
    d = rule_to_dict(example_rules.rule_for("HWTGBMI_der", "cchs2001"))
    assert d["kind"] == "derived"
    assert d["function"] == "bmi_fun"
    assert d["domain"] == "[10,100]"
    assert d["pattern"] is None
    assert d["sources"] == ["HWTGHTM", "HWTGWTK"]


def test_dict_roundtrip(example_rules):
    restored = rule_set_from_dict(rule_set_to_dict(example_rules))
    assert restored.name == example_rules.name
    assert restored.rules == example_rules.rules
    assert restored.metadata == example_rules.metadata


def test_json_roundtrip(example_rules):
    j = rule_set_to_json(example_rules)
    assert json.loads(j)["name"] == "Example CCHS rules"
    assert rule_set_from_json(j).rules == example_rules.rules


def test_yaml_roundtrip(example_rules):
    y = rule_set_to_yaml(example_rules)
    assert yaml.safe_load(y)["rules"][0]["target"] == "DHHGAGE_cont"
    assert rule_set_from_yaml(y).rules == example_rules.rules


def test_missing_in_value_map_roundtrip():
    rule = RecodeRule("A", ("c1",), ("A",), kind=TransformKind.MAP, value_map=((1, 1), (3, NA_A)))
    d = rule_to_dict(rule)
    assert d["value_map"] == [[1, 1], [3, "NA(a)"]]
    assert rule_from_dict(d) == rule


def test_value_map_as_mapping():
    rule = rule_from_dict({"target": "A", "cycles": ["c1"], "kind": "map", "value_map": {1: 2, 3: "NA(a)"}})
    assert rule.mapping == {1: 2, 3: NA_A}


def test_hand_written_yaml():
    doc = """
name: handwritten
rules:
  - target: DHH_SEX
    cycles: [cchs2001]
    sources: [DHH_SEX]
    pattern: standard_response
    domain: "{1,2}"
  - target: ADL_01
    cycles: [cchs2001]
    kind: not_asked
"""
    rule_set = rule_set_from_yaml(doc)
    assert rule_set.rules[0].kind is TransformKind.IDENTITY
    assert rule_set.rules[0].domain.contains(2)
    assert rule_set.rules[1].kind is TransformKind.NOT_ASKED


def test_invalid_rule():
    with pytest.raises(RuleParseError):
        rule_from_dict({"target": "A", "cycles": ["c1"], "kind": "teleport"})
    with pytest.raises(RuleParseError):
        rule_from_dict({"cycles": ["c1"]})


def test_invalid_document():
    with pytest.raises(RuleParseError):
        rule_set_from_yaml("- just\n- a list\n")


def test_empty_rule_set():
    assert rule_set_from_json(rule_set_to_json(RuleSet(name="empty"))).rules == []
