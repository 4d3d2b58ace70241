"""
Tests for the tagged-missing value model.
"""

import math

import numpy as np
import pandas as pd
import pytest

from cchs_harmonizer.tagged import (
    NA_A,
    NA_B,
    NA_C,
    NA_D,
    NA_E,
    Missing,
    Present,
    Reason,
    TaggedValue,
    as_tagged,
    is_null,
    strongest,
    strongest_missing,
)


class TestReason:
    """Reason codes and precedence."""

    def test_codes_are_stable(self):
        assert [r.value for r in Reason] == ["a", "b", "c", "d", "e"]

    def test_labels(self):
        assert Reason.NOT_APPLICABLE.label == "NA(a)"
        assert Reason.NOT_COLLECTED_THIS_CYCLE.label == "NA(e)"

    def test_precedence_order(self):
        """e > c > d > a > b."""
        ranked = sorted(Reason, key=lambda r: r.precedence, reverse=True)
        assert ranked == [
            Reason.NOT_COLLECTED_THIS_CYCLE,
            Reason.NOT_ASKED_THIS_CYCLE,
            Reason.VARIABLE_ABSENT,
            Reason.NOT_APPLICABLE,
            Reason.UNKNOWN_OR_REFUSED,
        ]

    def test_strongest_of_empty_is_none(self):
        assert strongest([]) is None

    def test_strongest_pairs(self):
        """Every pair resolves to the higher-precedence reason, in either order."""
        for x in Reason:
            for y in Reason:
                expected = x if x.precedence >= y.precedence else y
                assert strongest([x, y]) == expected
                assert strongest([y, x]) == expected


class TestValues:
    """Present / Missing construction and lifting."""

    def test_present_and_missing_are_tagged(self):
        assert isinstance(Present(1), TaggedValue)
        assert isinstance(NA_B, TaggedValue)
        assert not Present(1).is_missing
        assert NA_B.is_missing

    def test_values_are_immutable(self):
        with pytest.raises(Exception):
            Present(1).value = 2

    def test_equality(self):
        assert Present(3) == Present(3)
        assert Missing(Reason.NOT_APPLICABLE) == NA_A
        assert NA_A != NA_B

    def test_from_label(self):
        assert Missing.from_label("NA(a)") == NA_A
        assert Missing.from_label(" NA(e) ") == NA_E
        assert Missing.from_label("NA(z)") is None
        assert Missing.from_label("7") is None

    def test_label_round_trip(self):
        for value in (NA_A, NA_B, NA_C, NA_D, NA_E):
            assert Missing.from_label(value.label) == value

    def test_as_tagged(self):
        assert as_tagged(5) == Present(5)
        assert as_tagged("x") == Present("x")
        assert as_tagged(NA_C) is NA_C
        assert as_tagged(None) == NA_B
        assert as_tagged(float("nan")) == NA_B
        assert as_tagged(np.nan) == NA_B
        assert as_tagged(pd.NA) == NA_B

    def test_is_null(self):
        assert is_null(None)
        assert is_null(math.nan)
        assert not is_null(0)
        assert not is_null("")
        assert not is_null([1, None])


class TestStrongestMissing:
    def test_all_present(self):
        assert strongest_missing([Present(1), 2]) is None

    def test_mixed(self):
        assert strongest_missing([Present(1), NA_B, NA_C, NA_A]) == NA_C

    def test_nulls_count_as_unknown(self):
        assert strongest_missing([1, None]) == NA_B
