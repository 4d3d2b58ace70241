"""
Smoking derivations.

SMKDSTY (type of smoker):
    1 daily
    2 occasional, former daily
    3 always occasional
    4 former daily
    5 former occasional
    6 never smoked

time_quit_smoking_fun feeds smoke_simple_fun and pack_years_fun, so rule
documents list its target among their sources.
"""

from cchs_harmonizer.combinators import (
    combine_all,
    recode_categories,
    select_first_present,
    where,
)
from cchs_harmonizer.registry import derivation
from cchs_harmonizer.tagged import NA_B, Missing, as_tagged, strongest_missing

# SMKG09C (years since quitting, 3+ years, grouped) -> midpoint.
QUIT_GROUP_YEARS = {1: 4, 2: 8, 3: 12}

# SMK_09A_B (years since quitting, grouped) -> midpoint; 4 defers to SMKG09C.
QUIT_YEARS = {1: 0.5, 2: 1.5, 3: 2.5}

MIN_PACK_YEARS = 0.0137
LIGHT_PACK_YEARS = 0.007


@derivation("time_quit_smoking_fun")
def time_quit_smoking(SMK_09A_B, SMKG09C):
    """Years since a former daily smoker quit."""
    return recode_categories(
        SMK_09A_B,
        {**QUIT_YEARS, 4: lambda: recode_categories(SMKG09C, QUIT_GROUP_YEARS)},
    )


@derivation("smoke_simple_fun")
def smoke_simple(SMKDSTY, time_quit):
    """
    Simplified smoking status.

        0 non-smoker
        1 current smoker
        2 former daily smoker quit 5 years ago or less, or former occasional
        3 former daily smoker quit more than 5 years ago
    """

    def former_daily():
        return select_first_present(where(time_quit, lambda t: t <= 5), 2, 3)

    return recode_categories(
        SMKDSTY,
        {1: 1, 2: 1, 3: 1, 4: former_daily, 5: 2, 6: 0},
    )


def _daily_years(age, started, per_day):
    return combine_all(
        lambda v: max((v[0] - v[1]) * (v[2] / 20), MIN_PACK_YEARS), age, started, per_day
    )


def _former_daily_years(age, started, time_quit, per_day):
    return combine_all(
        lambda v: max((v[0] - v[1] - v[2]) * (v[3] / 20), MIN_PACK_YEARS),
        age,
        started,
        time_quit,
        per_day,
    )


def _occasional_rate(days, per_day):
    return combine_all(lambda v: max(v[0] * v[1] / 30, 1), days, per_day)


@derivation("pack_years_fun")
def pack_years(
    SMKDSTY,
    DHHGAGE_cont,
    time_quit,
    SMKG203_cont,
    SMKG207_cont,
    SMK_204,
    SMK_05B,
    SMK_208,
    SMK_05C,
    SMKG01C_cont,
    SMK_01A,
):
    """
    Lifetime exposure in pack-years (20 cigarettes a day for one year).

    Each smoker type reads only the inputs its formula needs, so a question
    skipped as not applicable for that type does not affect the result.

    Args:
        SMKDSTY: type of smoker
        DHHGAGE_cont: age
        time_quit: years since quitting (time_quit_smoking_fun)
        SMKG203_cont: age started smoking daily (current daily smokers)
        SMKG207_cont: age started smoking daily (former daily smokers)
        SMK_204: cigarettes per day (current daily smokers)
        SMK_05B: cigarettes per day on days smoked (occasional smokers)
        SMK_208: cigarettes per day (former daily smokers)
        SMK_05C: days smoked in the past month (occasional smokers)
        SMKG01C_cont: age smoked first whole cigarette
        SMK_01A: smoked 100 or more cigarettes in lifetime (1 yes, 2 no)
    """

    def occasional_former_daily():
        daily = _former_daily_years(DHHGAGE_cont, SMKG207_cont, time_quit, SMK_208)
        occasional = _occasional_rate(SMK_05B, SMK_05C)
        return combine_all(lambda v: v[0] + v[1] * v[2], daily, occasional, time_quit)

    def always_occasional():
        occasional = _occasional_rate(SMK_05B, SMK_05C)
        return combine_all(
            lambda v: v[0] / 20 * (v[1] - v[2]), occasional, DHHGAGE_cont, SMKG01C_cont
        )

    def former_occasional():
        return recode_categories(SMK_01A, {1: MIN_PACK_YEARS, 2: LIGHT_PACK_YEARS})

    by_type = {
        1: lambda: _daily_years(DHHGAGE_cont, SMKG203_cont, SMK_204),
        2: occasional_former_daily,
        3: always_occasional,
        4: lambda: _former_daily_years(DHHGAGE_cont, SMKG207_cont, time_quit, SMK_208),
        5: former_occasional,
        6: 0,
    }
    age = as_tagged(DHHGAGE_cont)
    if isinstance(age, Missing):
        return strongest_missing([age, SMKDSTY])
    return select_first_present(
        where(age, lambda a: a >= 0),
        lambda: recode_categories(SMKDSTY, by_type),
        NA_B,
    )
