"""
Run configuration and rule-document loading.

A run is described by a small YAML file:

    rules: variables.csv          # .csv, .yaml, .yml or .json
    cycles: [cchs2001, cchs2003]  # optional, default: every cycle in the rules
    targets: [HWTGBMI_der]        # optional, default: every target
    render_tags: true             # output NA(x) text instead of native values

Relative rule paths are resolved against the configuration file.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import yaml

from cchs_harmonizer.csv_parser import parse_csv_file
from cchs_harmonizer.dependencies import validate_rule_set
from cchs_harmonizer.errors import RuleConfigError, RuleParseError
from cchs_harmonizer.model import RuleSet
from cchs_harmonizer.serialization import rule_set_from_json, rule_set_from_yaml

logger = logging.getLogger(__name__)


@dataclass
class HarmonizerConfig:
    """
    Settings for one harmonization run.

    Properties:
        rules_path: path of the rule document
        cycles: cycles to harmonize (None = every cycle the rules mention)
        targets: targets to produce (None = every target)
        render_tags: render missing cells as NA(x) text in the output
    """

    rules_path: str
    cycles: Optional[List[str]] = None
    targets: Optional[List[str]] = None
    render_tags: bool = False
    extra: dict = field(default_factory=dict)


def _optional_list(value, key: str) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise RuleConfigError(f"Configuration key {key!r} must be a list")
    return [str(v) for v in value]


def config_from_dict(d: dict, base_dir: str = "") -> HarmonizerConfig:
    if not isinstance(d, dict) or not d.get("rules"):
        raise RuleConfigError("Configuration must name a 'rules' document")
    rules_path = str(d["rules"])
    if base_dir and not os.path.isabs(rules_path):
        rules_path = os.path.join(base_dir, rules_path)
    known = {"rules", "cycles", "targets", "render_tags"}
    return HarmonizerConfig(
        rules_path=rules_path,
        cycles=_optional_list(d.get("cycles"), "cycles"),
        targets=_optional_list(d.get("targets"), "targets"),
        render_tags=bool(d.get("render_tags", False)),
        extra={k: v for k, v in d.items() if k not in known},
    )


def load_config(path: str) -> HarmonizerConfig:
    """
    Load a run configuration from YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist
        RuleConfigError: If the configuration is malformed
    """
    with open(path, "r", encoding="utf-8") as f:
        d = yaml.safe_load(f)
    config = config_from_dict(d, base_dir=os.path.dirname(os.path.abspath(path)))
    if config.extra:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(sorted(config.extra)))
    return config


def read_rule_set(path: str) -> RuleSet:
    """Parse a rule document by file suffix, without validating it."""
    suffix = os.path.splitext(path)[1].lower()
    name = os.path.splitext(os.path.basename(path))[0]
    if suffix == ".csv":
        return parse_csv_file(path, rule_set_name=name)
    if suffix in (".yaml", ".yml", ".json"):
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
        try:
            rule_set = rule_set_from_json(content) if suffix == ".json" else rule_set_from_yaml(content)
        except (ValueError, yaml.YAMLError) as e:
            raise RuleParseError(f"Cannot read rule document {path}: {e}") from e
        if not rule_set.name:
            rule_set.name = name
        return rule_set
    raise RuleConfigError(f"Unsupported rule document type: {path}")


def load_rule_set(path: str) -> RuleSet:
    """
    Load and validate a rule document.

    Raises:
        FileNotFoundError: If the file doesn't exist
        RuleConfigError: If the document is malformed or inconsistent
    """
    rule_set = read_rule_set(path)
    validate_rule_set(rule_set)
    logger.info(
        "Loaded rule set %s: %d rules, cycles %s",
        rule_set.name,
        len(rule_set.rules),
        ", ".join(rule_set.cycles),
    )
    return rule_set
