"""
Tests for run configuration and rule-document loading.
"""

import os

import pytest

from cchs_harmonizer.config import (
    HarmonizerConfig,
    config_from_dict,
    load_config,
    load_rule_set,
    read_rule_set,
)
from cchs_harmonizer.errors import DependencyCycleError, RuleConfigError, RuleParseError
from cchs_harmonizer.serialization import rule_set_to_json, rule_set_to_yaml

CYCLIC_CSV = (
    "target,cycles,sources,kind,function\n"
    "x,c1,y,derived,bmi_fun_cat\n"
    "y,c1,x,derived,bmi_fun_cat\n"
)


class TestConfig:
    def test_load(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(
            "rules: variables.csv\ncycles: [cchs2001]\ntargets: [HWTGBMI_der]\nrender_tags: true\n",
            encoding="utf-8",
        )
        config = load_config(str(path))
        assert config.rules_path == os.path.join(str(tmp_path), "variables.csv")
        assert config.cycles == ["cchs2001"]
        assert config.targets == ["HWTGBMI_der"]
        assert config.render_tags is True

    def test_defaults(self):
        config = config_from_dict({"rules": "/abs/rules.yaml"})
        assert config == HarmonizerConfig(rules_path="/abs/rules.yaml")

    def test_single_cycle_string(self):
        assert config_from_dict({"rules": "r.csv", "cycles": "cchs2001"}).cycles == ["cchs2001"]

    def test_rules_required(self):
        with pytest.raises(RuleConfigError):
            config_from_dict({"cycles": ["cchs2001"]})
        with pytest.raises(RuleConfigError):
            config_from_dict(None)

    def test_bad_list(self):
        with pytest.raises(RuleConfigError):
            config_from_dict({"rules": "r.csv", "targets": 5})

    def test_unknown_keys_kept_aside(self):
        config = config_from_dict({"rules": "r.csv", "colour": "blue"})
        assert config.extra == {"colour": "blue"}


class TestLoadRuleSet:
    def test_yaml(self, tmp_path, example_rules):
        path = tmp_path / "rules.yaml"
        path.write_text(rule_set_to_yaml(example_rules), encoding="utf-8")
        assert load_rule_set(str(path)).rules == example_rules.rules

    def test_json(self, tmp_path, example_rules):
        path = tmp_path / "rules.json"
        path.write_text(rule_set_to_json(example_rules), encoding="utf-8")
        assert load_rule_set(str(path)).rules == example_rules.rules

    def test_csv_is_validated(self, tmp_path):
        path = tmp_path / "rules.csv"
        path.write_text(CYCLIC_CSV, encoding="utf-8")
        assert len(read_rule_set(str(path)).rules) == 2
        with pytest.raises(DependencyCycleError):
            load_rule_set(str(path))

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "rules.txt"
        path.write_text("", encoding="utf-8")
        with pytest.raises(RuleConfigError):
            load_rule_set(str(path))

    def test_unreadable_document(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RuleParseError):
            load_rule_set(str(path))

    def test_name_from_file(self, tmp_path):
        path = tmp_path / "cchs_rules.yaml"
        path.write_text("rules: []\n", encoding="utf-8")
        assert load_rule_set(str(path)).name == "cchs_rules"
