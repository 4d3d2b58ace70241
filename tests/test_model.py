"""
Tests for the recoding model objects.
"""

import pytest

from cchs_harmonizer.model import (
    CategorySet,
    NumericRange,
    RecodeRule,
    RuleSet,
    TransformKind,
    parse_domain,
    parse_scalar,
)
from cchs_harmonizer.preprocess import MissingCodePattern


class TestDomains:
    def test_closed_range(self):
        domain = parse_domain("[10,100]")
        assert domain == NumericRange(10.0, 100.0, True, True)
        assert domain.contains(10)
        assert domain.contains(100)
        assert not domain.contains(100.01)

    def test_open_ends(self):
        domain = parse_domain("(0,1]")
        assert not domain.contains(0)
        assert domain.contains(1)
        assert domain.contains("0.5")

    def test_unbounded_side(self):
        domain = parse_domain("[12,]")
        assert domain.max_value is None
        assert domain.contains(10_000)
        assert not domain.contains(11)

    def test_range_rejects_non_numbers(self):
        domain = NumericRange(0, 10)
        assert not domain.contains("abc")
        assert not domain.contains(True)
        assert not domain.contains(float("nan"))

    def test_category_set(self):
        domain = parse_domain("{1, 2, 3}")
        assert domain == CategorySet(frozenset({1, 2, 3}))
        assert domain.contains(2)
        assert domain.contains(2.0)
        assert not domain.contains(4)
        assert not domain.contains([1])

    def test_text_categories(self):
        domain = parse_domain("{A,B}")
        assert domain.contains("A")

    def test_blank(self):
        assert parse_domain("") is None
        assert parse_domain(None) is None

    @pytest.mark.parametrize("text", ["10-100", "[a,b]", "[100,10]", "[1,2,3]"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_domain(text)

    def test_to_text_round_trip(self):
        for text in ("[10,100]", "(0,1]", "[12,)", "{1,2}"):
            assert parse_domain(parse_domain(text).to_text()) == parse_domain(text)

    def test_parse_scalar(self):
        assert parse_scalar("3") == 3
        assert parse_scalar("2.5") == 2.5
        assert parse_scalar("x") == "x"


class TestTransformKind:
    def test_reads_raw(self):
        assert TransformKind.IDENTITY.reads_raw
        assert TransformKind.RENAME.reads_raw
        assert TransformKind.MAP.reads_raw
        assert not TransformKind.DERIVED.reads_raw
        assert not TransformKind.NOT_ASKED.reads_raw


class TestRuleSet:
    def _rules(self):
        return RuleSet(
            name="test",
            rules=[
                RecodeRule("A", ("c1", "c2"), ("A_RAW",), pattern=MissingCodePattern.STANDARD_RESPONSE),
                RecodeRule("B", ("c2",), ("B_RAW",), pattern=MissingCodePattern.STANDARD_RESPONSE),
                RecodeRule("B", ("c3",), kind=TransformKind.NOT_ASKED),
                RecodeRule("C", ("c1",), ("A", "B"), kind=TransformKind.DERIVED, function="f"),
            ],
        )

    def test_cycles_in_first_seen_order(self):
        assert self._rules().cycles == ["c1", "c2", "c3"]

    def test_targets_in_first_seen_order(self):
        assert self._rules().targets == ["A", "B", "C"]

    def test_rules_for_cycle(self):
        assert [r.target for r in self._rules().rules_for_cycle("c2")] == ["A", "B"]

    def test_rule_for(self):
        rule_set = self._rules()
        assert rule_set.rule_for("B", "c3").kind is TransformKind.NOT_ASKED
        assert rule_set.rule_for("C", "c2") is None

    def test_get_rules(self):
        assert len(self._rules().get_rules("B")) == 2

    def test_rule_is_immutable(self):
        rule = RecodeRule("A", ("c1",))
        with pytest.raises(Exception):
            rule.target = "B"

    def test_mapping(self):
        rule = RecodeRule("A", ("c1",), value_map=((1, 10), (2, 20)))
        assert rule.mapping == {1: 10, 2: 20}
        assert rule.applies_to("c1")
        assert not rule.applies_to("c2")
