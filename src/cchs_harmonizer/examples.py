"""
Example rule set and raw extracts for two CCHS cycles.

Covers every kind of rule: renamed raw columns with alternate names,
a categorical value map, derived variables chained on other derived
variables, a question not asked in one cycle, and targets produced in one
cycle only (NA(e) for the other after merge).
"""
import pandas as pd

from cchs_harmonizer.model import (
    CategorySet,
    NumericRange,
    RecodeRule,
    RuleSet,
    TransformKind,
)
from cchs_harmonizer.preprocess import MissingCodePattern

BOTH = ("cchs2001", "cchs2003")
ADL_ITEMS = ("ADL_01", "ADL_02", "ADL_03", "ADL_04", "ADL_05")


def build_example_rule_set() -> RuleSet:
    rules = [
        RecodeRule(
            target="DHHGAGE_cont",
            cycles=BOTH,
            sources=("DHHA_AGE", "DHH_AGE"),
            kind=TransformKind.RENAME,
            pattern=MissingCodePattern.CONTINUOUS_STANDARD,
            domain=NumericRange(12, 120),
            label="Age",
        ),
        RecodeRule(
            target="DHH_SEX",
            cycles=BOTH,
            sources=("DHH_SEX",),
            pattern=MissingCodePattern.STANDARD_RESPONSE,
            domain=CategorySet(frozenset({1, 2})),
            label="Sex",
        ),
        RecodeRule(
            target="HWTGHTM",
            cycles=BOTH,
            sources=("HWTAGHTM", "HWTCGHTM"),
            kind=TransformKind.RENAME,
            pattern=MissingCodePattern.CONTINUOUS_STANDARD,
            label="Height (metres), self-reported",
        ),
        RecodeRule(
            target="HWTGWTK",
            cycles=BOTH,
            sources=("HWTAGWTK", "HWTCGWTK"),
            kind=TransformKind.RENAME,
            pattern=MissingCodePattern.CONTINUOUS_STANDARD,
            label="Weight (kilograms), self-reported",
        ),
        RecodeRule(
            target="HWTGBMI_der",
            cycles=BOTH,
            sources=("HWTGHTM", "HWTGWTK"),
            kind=TransformKind.DERIVED,
            function="bmi_fun",
            domain=NumericRange(10, 100),
            label="Body mass index",
        ),
        RecodeRule(
            target="HWTGBMI_der_cat4",
            cycles=BOTH,
            sources=("HWTGBMI_der",),
            kind=TransformKind.DERIVED,
            function="bmi_fun_cat",
            domain=CategorySet(frozenset({1, 2, 3, 4})),
            label="BMI category",
        ),
        RecodeRule(
            target="HWTGCOR_der",
            cycles=BOTH,
            sources=("DHH_SEX", "HWTGHTM", "HWTGWTK"),
            kind=TransformKind.DERIVED,
            function="adjusted_bmi_fun",
            label="Adjusted body mass index",
        ),
        RecodeRule(
            target="SMKDSTY",
            cycles=BOTH,
            sources=("SMKDSTY",),
            pattern=MissingCodePattern.CATEGORICAL_AGE,
            domain=CategorySet(frozenset({1, 2, 3, 4, 5, 6})),
            label="Type of smoker",
        ),
        RecodeRule(
            target="SMKDSTY_cat3",
            cycles=BOTH,
            sources=("SMKDSTY",),
            kind=TransformKind.MAP,
            pattern=MissingCodePattern.CATEGORICAL_AGE,
            value_map=((1, 1), (2, 1), (3, 1), (4, 2), (5, 2), (6, 3)),
            label="Smoking status: current, former, never",
        ),
        RecodeRule(
            target="SMK_09A_B",
            cycles=BOTH,
            sources=("SMK_09A_B",),
            pattern=MissingCodePattern.STANDARD_RESPONSE,
            label="Years since quitting daily smoking, grouped",
        ),
        RecodeRule(
            target="SMKG09C",
            cycles=BOTH,
            sources=("SMKG09C",),
            pattern=MissingCodePattern.STANDARD_RESPONSE,
            label="Years since quitting daily smoking, 3+ years",
        ),
        RecodeRule(
            target="time_quit_smoking",
            cycles=BOTH,
            sources=("SMK_09A_B", "SMKG09C"),
            kind=TransformKind.DERIVED,
            function="time_quit_smoking_fun",
            label="Years since quitting smoking",
        ),
        RecodeRule(
            target="smoke_simple",
            cycles=BOTH,
            sources=("SMKDSTY", "time_quit_smoking"),
            kind=TransformKind.DERIVED,
            function="smoke_simple_fun",
            label="Simple smoking status",
        ),
    ]

    for item in ADL_ITEMS:
        rules.append(RecodeRule(
            target=item,
            cycles=("cchs2001",),
            kind=TransformKind.NOT_ASKED,
        ))
        rules.append(RecodeRule(
            target=item,
            cycles=("cchs2003",),
            sources=(item,),
            pattern=MissingCodePattern.STANDARD_RESPONSE,
            domain=CategorySet(frozenset({1, 2})),
        ))

    rules.append(RecodeRule(
        target="ADL_der",
        cycles=BOTH,
        sources=ADL_ITEMS,
        kind=TransformKind.DERIVED,
        function="adl_fun",
        label="Needs help with any task",
    ))
    rules.append(RecodeRule(
        target="ADL_score_5",
        cycles=("cchs2003",),
        sources=ADL_ITEMS,
        kind=TransformKind.DERIVED,
        function="adl_score_5_fun",
        label="Number of tasks needing help",
    ))

    return RuleSet(name="Example CCHS rules", rules=rules, metadata={"source": "examples"})


def build_example_extracts() -> dict:
    """Raw extracts keyed by cycle, with CCHS sentinel codes left in."""
    cchs2001 = pd.DataFrame({
        "DHHA_AGE": [45, 30, 999, 70],
        "DHH_SEX": [1, 2, 2, 1],
        "HWTAGHTM": [1.75, 1.60, 999, 0.914],
        "HWTAGWTK": [70, 50, 60, 135],
        "SMKDSTY": [1, 4, 6, 99],
        "SMK_09A_B": [6, 2, 6, 6],
        "SMKG09C": [6, 6, 6, 6],
    })
    cchs2003 = pd.DataFrame({
        "DHH_AGE": [25, 60, 52],
        "DHH_SEX": [2, 1, 1],
        "HWTCGHTM": [1.80, 997, 1.70],
        "HWTCGWTK": [80, 90, 999],
        "SMKDSTY": [4, 6, 5],
        "SMK_09A_B": [4, 6, 6],
        "SMKG09C": [2, 6, 6],
        "ADL_01": [2, 1, 2],
        "ADL_02": [2, 2, 2],
        "ADL_03": [2, 8, 8],
        "ADL_04": [2, 2, 2],
        "ADL_05": [2, 2, 2],
    })
    return {"cchs2001": cchs2001, "cchs2003": cchs2003}
