#!/usr/bin/env python3
"""
Complete Pipeline Demo: rules → analysis → recode → merge

Shows the full workflow:
1. Write the example rule set to YAML and load it back
2. Analyze the rule set
3. Harmonize two CCHS cycle extracts
4. Render the merged table with NA(x) tags
"""

import os
import tempfile

from cchs_harmonizer.analyzer import analyze_rule_set
from cchs_harmonizer.config import load_rule_set
from cchs_harmonizer.examples import build_example_extracts, build_example_rule_set
from cchs_harmonizer.pipeline import harmonize
from cchs_harmonizer.serialization import rule_set_to_yaml


def main():
    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: rules → analysis → recode → merge")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Load rules
    # =========================================================================
    print("\n1. LOADING RULES...")
    with tempfile.TemporaryDirectory() as tmp:
        rules_path = os.path.join(tmp, "example_rules.yaml")
        with open(rules_path, "w", encoding="utf-8") as f:
            f.write(rule_set_to_yaml(build_example_rule_set()))
        rule_set = load_rule_set(rules_path)
    print(f"   ✓ Loaded rule set: {rule_set.name}")
    print(f"   ✓ Rules: {len(rule_set.rules)}")
    print(f"   ✓ Targets: {len(rule_set.targets)}")
    print(f"   ✓ Cycles: {', '.join(rule_set.cycles)}")

    # =========================================================================
    # STEP 2: Analyze rule set
    # =========================================================================
    print("\n2. ANALYZING RULES...")
    report = analyze_rule_set(rule_set)
    print(f"   ✓ Rules by kind: {report.rules_by_kind}")
    print(f"   ✓ Partial targets: {sorted(report.partial_targets)}")
    print(f"   ✓ Functions used: {sorted(report.functions_used)}")
    print(f"   ✓ Cycles detected: {report.has_cycles}")

    if report.warnings:
        print(f"\n   Warnings ({len(report.warnings)}):")
        for warning in report.warnings[:5]:
            print(f"      - {warning}")
        if len(report.warnings) > 5:
            print(f"      ... and {len(report.warnings) - 5} more")

    # =========================================================================
    # STEP 3: Harmonize
    # =========================================================================
    print("\n3. HARMONIZING...")
    extracts = build_example_extracts()
    for cycle, extract in extracts.items():
        print(f"   ✓ {cycle}: {len(extract)} rows x {len(extract.columns)} raw columns")
    table = harmonize(extracts, rule_set)
    print(f"   ✓ Merged: {table.summary()}")

    # =========================================================================
    # STEP 4: Sample output
    # =========================================================================
    print("\n4. SAMPLE OUTPUT:")
    print("-" * 80)
    sample = ["DHHGAGE_cont", "HWTGBMI_der", "HWTGBMI_der_cat4", "smoke_simple", "ADL_der", "ADL_score_5"]
    print(table.render(include_origin=True)[["cycle"] + sample].to_string())

    # =========================================================================
    # STEP 5: Missing-value counts
    # =========================================================================
    print("\n5. MISSING VALUES:")
    print("-" * 80)
    for column, counts in table.tag_counts().items():
        if counts:
            print(f"   {column}: {counts}")

    print("\n" + "=" * 80)
    print("PIPELINE COMPLETE!")
    print("=" * 80)


if __name__ == "__main__":
    main()
