"""
Tests for domain checks and joint input validation.
"""

import numpy as np
import pandas as pd

from cchs_harmonizer.bounds import check_domain, check_domain_all, is_vector, validate_inputs
from cchs_harmonizer.model import CategorySet, NumericRange
from cchs_harmonizer.tagged import NA_A, NA_B, NA_C, NA_D, NA_E, Present


class TestCheckDomain:
    def test_in_range(self):
        assert check_domain(Present(50), NumericRange(10, 100)) == Present(50)

    def test_out_of_range(self):
        assert check_domain(Present(161.6), NumericRange(10, 100)) == NA_B

    def test_category(self):
        assert check_domain(3, CategorySet(frozenset({1, 2}))) == NA_B
        assert check_domain(2, CategorySet(frozenset({1, 2}))) == Present(2)

    def test_missing_untouched(self):
        for m in (NA_A, NA_B, NA_C, NA_D, NA_E):
            assert check_domain(m, NumericRange(10, 100)) == m

    def test_no_domain(self):
        assert check_domain(1000, None) == Present(1000)

    def test_all(self):
        assert check_domain_all([5, 50, None], NumericRange(10, 100)) == [NA_B, Present(50), NA_B]


class TestIsVector:
    def test_kinds(self):
        assert is_vector([1])
        assert is_vector((1,))
        assert is_vector(pd.Series([1]))
        assert is_vector(np.array([1]))
        assert not is_vector(1)
        assert not is_vector("abc")


class TestValidateInputs:
    def test_length_mismatch(self):
        """Vectors of 5 and 7: seven rows, all NA(b)."""
        batch = validate_inputs({"x": [1] * 5, "y": [2] * 7}, ["x", "y"])
        assert not batch.ok
        assert batch.filled() == [NA_B] * 7

    def test_absent_input(self):
        batch = validate_inputs({"x": [1, 2, 3]}, ["x", "y"])
        assert batch.filled() == [NA_D] * 3

    def test_absent_wins_over_mismatch(self):
        batch = validate_inputs({"x": [1, 2], "y": [1, 2, 3]}, ["x", "y", "z"])
        assert batch.failure == NA_D

    def test_scalars_broadcast(self):
        batch = validate_inputs({"x": [1, 2, 3], "y": 10}, ["x", "y"])
        assert batch.ok
        rows = list(batch.rows())
        assert len(rows) == 3
        assert rows[2] == {"x": Present(3), "y": Present(10)}

    def test_length_one_vectors_recycle(self):
        batch = validate_inputs({"x": [1, 2, 3], "y": [5]}, ["x", "y"])
        assert batch.ok
        assert batch.columns["y"] == [Present(5)] * 3

    def test_explicit_length_for_scalars(self):
        batch = validate_inputs({}, ["x"], length=4)
        assert batch.filled() == [NA_D] * 4

    def test_domains_applied(self):
        batch = validate_inputs(
            {"h": [1.75, 5.0]},
            ["h"],
            domains={"h": NumericRange(0.914, 2.134)},
        )
        assert batch.columns["h"] == [Present(1.75), NA_B]

    def test_series_inputs(self):
        batch = validate_inputs({"x": pd.Series([1, None])}, ["x"])
        assert batch.columns["x"] == [Present(1.0), NA_B]
