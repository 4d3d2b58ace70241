"""
CSV Parser for recoding rule documents.

Converts the tabular rule document (one row per target variable and group
of cycles) into a RuleSet.

CSV Format:
    target, cycles, sources, kind, pattern, domain, function, value_map, label

Syntax Notes:
    - cycles / sources: comma separated ("cchs2001, cchs2003")
    - kind: identity | rename | map | derived | not_asked
    - pattern: standard_response | categorical_age | continuous_standard | none
    - domain: interval "[10,100]" or category set "{1,2}"
    - value_map: "raw:new" pairs separated by ";"; new may be a tagged
      missing label, e.g. "1:1;2:1;3:NA(a)"

Loading does NOT validate the rule set as a whole (duplicates, cycles,
function references); see dependencies.validate_rule_set().
"""

import csv
import os
import warnings
from dataclasses import dataclass
from io import StringIO
from typing import Any, List, Optional, Tuple

from cchs_harmonizer.errors import RuleParseError
from cchs_harmonizer.model import RecodeRule, RuleSet, TransformKind, parse_domain, parse_scalar
from cchs_harmonizer.preprocess import MissingCodePattern
from cchs_harmonizer.tagged import Missing

REQUIRED_COLUMNS = ["target", "cycles", "sources", "kind"]


@dataclass
class CSVRow:
    """Raw text of one rule row."""
    target: str
    cycles: str
    sources: str
    kind: str
    pattern: str = ""
    domain: str = ""
    function: str = ""
    value_map: str = ""
    label: str = ""


def split_list(text: str) -> Tuple[str, ...]:
    """Split a comma separated cell, dropping blanks."""
    return tuple(item.strip() for item in text.split(",") if item.strip())


def parse_map_value(text: str) -> Any:
    """A value_map entry: a tagged missing label or a category code."""
    missing = Missing.from_label(text)
    if missing is not None:
        return missing
    return parse_scalar(text)


def parse_value_map(text: str) -> Tuple[Tuple[Any, Any], ...]:
    """
    Parse "raw:new;raw:new".

    Raises:
        ValueError: if a pair has no ":" or an empty side
    """
    pairs = []
    for item in text.split(";"):
        if not item.strip():
            continue
        raw, sep, new = item.partition(":")
        if not sep or not raw.strip() or not new.strip():
            raise ValueError(f"Invalid value_map entry {item.strip()!r}, expected raw:new")
        pairs.append((parse_scalar(raw), parse_map_value(new)))
    return tuple(pairs)


def _parse_csv_rows(csv_content: str) -> List[Tuple[int, CSVRow]]:
    """Parse CSV content into structured rows."""
    reader = csv.DictReader(StringIO(csv_content))

    if reader.fieldnames is None:
        raise RuleParseError("CSV is empty")

    fieldnames = [f.strip() for f in reader.fieldnames]
    missing = [col for col in REQUIRED_COLUMNS if col not in fieldnames]
    if missing:
        raise RuleParseError(f"Missing required columns: {missing}")

    rows = []
    for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is line 1)
        row = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}
        if not any(row.values()):
            warnings.warn(f"Skipping blank rule row {row_num}", UserWarning)
            continue
        rows.append((row_num, CSVRow(
            target=row.get("target", ""),
            cycles=row.get("cycles", ""),
            sources=row.get("sources", ""),
            kind=row.get("kind", ""),
            pattern=row.get("pattern", ""),
            domain=row.get("domain", ""),
            function=row.get("function", ""),
            value_map=row.get("value_map", ""),
            label=row.get("label", ""),
        )))

    return rows


def _build_rule(row_num: int, row: CSVRow) -> RecodeRule:
    if not row.target:
        raise RuleParseError(f"Row {row_num}: target is empty")
    cycles = split_list(row.cycles)
    if not cycles:
        raise RuleParseError(f"Row {row_num}: {row.target} lists no cycles")

    try:
        kind = TransformKind(row.kind.lower() or TransformKind.IDENTITY.value)
        pattern = MissingCodePattern(row.pattern.lower()) if row.pattern else None
        domain = parse_domain(row.domain)
        value_map = parse_value_map(row.value_map)
    except ValueError as e:
        raise RuleParseError(f"Error parsing row {row_num} ({row.target}): {str(e)}")

    return RecodeRule(
        target=row.target,
        cycles=cycles,
        sources=split_list(row.sources),
        kind=kind,
        pattern=pattern,
        domain=domain,
        function=row.function or None,
        value_map=value_map,
        label=row.label or None,
    )


def parse_csv_string(csv_content: str, rule_set_name: str = "CSVRules") -> RuleSet:
    """
    Parse CSV content into a RuleSet.

    Args:
        csv_content: CSV as string
        rule_set_name: Name for the rule set

    Returns:
        RuleSet with one RecodeRule per non-blank row, in document order

    Raises:
        RuleParseError: If parsing fails
    """
    rows = _parse_csv_rows(csv_content)
    rules = [_build_rule(row_num, row) for row_num, row in rows]
    return RuleSet(name=rule_set_name, rules=rules)


def parse_csv_file(filepath: str, rule_set_name: Optional[str] = None) -> RuleSet:
    """
    Parse CSV file into a RuleSet.

    Args:
        filepath: Path to CSV file
        rule_set_name: Optional name (defaults to the file name)

    Raises:
        FileNotFoundError: If file doesn't exist
        RuleParseError: If parsing fails
    """
    try:
        with open(filepath, "r", encoding="utf-8", newline="") as f:
            content = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Rule CSV not found: {filepath}")

    if rule_set_name is None:
        rule_set_name = os.path.splitext(os.path.basename(filepath))[0]

    return parse_csv_string(content, rule_set_name=rule_set_name)


__all__ = [
    "parse_csv_string",
    "parse_csv_file",
    "parse_value_map",
    "split_list",
]
