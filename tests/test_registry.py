"""
Tests for the derivation registry.
"""

import pytest

from cchs_harmonizer import registry
from cchs_harmonizer.errors import UnknownDerivationError
from cchs_harmonizer.model import NumericRange
from cchs_harmonizer.registry import derivation, get_derivation, registered_names
from cchs_harmonizer.tagged import NA_B, NA_D, Present


@pytest.fixture
def scratch_registry(monkeypatch):
    """Register test derivations without touching the real catalogue."""
    get_derivation("bmi_fun")
    monkeypatch.setattr(registry, "DERIVATIONS", dict(registry.DERIVATIONS))
    return registry.DERIVATIONS


class TestRegistration:
    def test_catalogue(self):
        names = registered_names()
        for name in (
            "bmi_fun",
            "adjusted_bmi_fun",
            "bmi_fun_cat",
            "adl_fun",
            "adl_score_5_fun",
            "time_quit_smoking_fun",
            "smoke_simple_fun",
            "pack_years_fun",
            "pct_time_fun",
        ):
            assert name in names

    def test_inputs_are_parameters_without_defaults(self):
        assert get_derivation("bmi_fun").inputs == ("HWTGHTM", "HWTGWTK")
        assert len(get_derivation("pack_years_fun").inputs) == 11

    def test_unknown(self):
        with pytest.raises(UnknownDerivationError):
            get_derivation("no_such_fun")

    def test_duplicate_name(self, scratch_registry):
        @derivation("scratch_twice")
        def first(x):
            return x

        with pytest.raises(ValueError):
            @derivation("scratch_twice")
            def second(x):
                return x

    def test_decorator_registers(self, scratch_registry):
        @derivation("scratch_double")
        def double(x):
            return Present(x.value * 2)

        assert scratch_registry["scratch_double"] is double
        assert double(Present(4)) == Present(8)


class TestCalling:
    def test_missing_argument_is_variable_absent(self):
        bmi = get_derivation("bmi_fun")
        assert bmi(Present(1.75)) == NA_D
        assert bmi() == NA_D

    def test_too_many_arguments_is_variable_absent(self):
        assert get_derivation("bmi_fun_cat")(Present(1), Present(2)) == NA_D

    def test_raw_arguments_are_lifted(self):
        assert get_derivation("bmi_fun_cat")(22.0) == Present(2)
        assert get_derivation("bmi_fun_cat")(None) == NA_B

    def test_errors_fold_into_unknown(self, scratch_registry):
        @derivation("scratch_raises")
        def broken(x):
            raise ZeroDivisionError

        assert broken(Present(1)) == NA_B


class TestApply:
    def test_rows(self):
        bmi = get_derivation("bmi_fun")
        result = bmi.apply({"HWTGHTM": [1.75, 0.914], "HWTGWTK": [70, 135]})
        assert result[0].value == pytest.approx(22.857142857)
        assert result[1] == NA_B

    def test_length_mismatch(self):
        bmi = get_derivation("bmi_fun")
        result = bmi.apply({"HWTGHTM": [1.75] * 5, "HWTGWTK": [70] * 7})
        assert result == [NA_B] * 7

    def test_absent_column(self):
        bmi = get_derivation("bmi_fun")
        assert bmi.apply({"HWTGHTM": [1.75, 1.8]}) == [NA_D, NA_D]

    def test_options_pass_through(self):
        bmi = get_derivation("bmi_fun")
        assert bmi.apply({"HWTGHTM": [1.75], "HWTGWTK": [70]}, bmi_max=20) == [NA_B]

    def test_input_domains(self):
        bmi = get_derivation("bmi_fun")
        result = bmi.apply(
            {"HWTGHTM": [1.75], "HWTGWTK": [70]},
            domains={"HWTGWTK": NumericRange(80, 100)},
        )
        assert result == [NA_B]

    def test_unrelated_columns_ignored(self):
        bmi = get_derivation("bmi_fun")
        result = bmi.apply({"HWTGHTM": [1.75], "HWTGWTK": [70], "OTHER": [1, 2, 3]})
        assert result[0].value == pytest.approx(22.857142857)
