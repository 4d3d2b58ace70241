"""
Test the example rule set and extracts.

Validates that the example builder produces a loadable rule set covering
both cycles, and that its extracts exercise every sentinel the rules declare.
"""

from cchs_harmonizer.dependencies import validate_rule_set
from cchs_harmonizer.examples import ADL_ITEMS, build_example_extracts, build_example_rule_set
from cchs_harmonizer.model import TransformKind
from cchs_harmonizer.preprocess import has_missing_codes


def test_example_rule_set_structure():
    rule_set = build_example_rule_set()
    validate_rule_set(rule_set)

    assert rule_set.cycles == ["cchs2001", "cchs2003"]
    assert rule_set.targets[0] == "DHHGAGE_cont"

    # ADL items have one rule per cycle
    for item in ADL_ITEMS:
        kinds = {r.cycles: r.kind for r in rule_set.get_rules(item)}
        assert kinds[("cchs2001",)] is TransformKind.NOT_ASKED
        assert kinds[("cchs2003",)] is TransformKind.IDENTITY

    # ADL_score_5 exists in one cycle only
    assert rule_set.rule_for("ADL_score_5", "cchs2001") is None
    assert rule_set.rule_for("ADL_score_5", "cchs2003").function == "adl_score_5_fun"


def test_example_extracts_match_rules():
    rule_set = build_example_rule_set()
    extracts = build_example_extracts()
    assert set(extracts) == set(rule_set.cycles)

    for cycle, extract in extracts.items():
        for rule in rule_set.rules_for_cycle(cycle):
            if rule.kind.reads_raw:
                assert any(s in extract.columns for s in rule.sources), (cycle, rule.target)

    # Every cycle carries at least one sentinel to exercise preprocessing
    assert has_missing_codes(extracts["cchs2001"]["SMKDSTY"], rule_set.rule_for("SMKDSTY", "cchs2001").pattern)
    assert has_missing_codes(extracts["cchs2003"]["ADL_03"], rule_set.rule_for("ADL_03", "cchs2003").pattern)
