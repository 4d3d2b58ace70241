"""
Immigration derivations.
"""

from cchs_harmonizer.combinators import combine_all, recode_categories
from cchs_harmonizer.registry import derivation

BORN_IN_CANADA = 1
BORN_OUTSIDE_CANADA = 2

# SDCGRES (time in Canada, grouped) -> midpoint in years.
RESIDENCE_YEARS = {1: 4.5, 2: 15}


@derivation("pct_time_fun")
def pct_time_in_canada(DHHGAGE_cont, SDCGCBG, SDCGRES):
    """
    Percentage of the respondent's life spent in Canada.

    Canadian-born respondents are 100. For immigrants the grouped residence
    time is converted to its midpoint and divided by age.
    """

    def immigrant_share():
        years = recode_categories(SDCGRES, RESIDENCE_YEARS)
        return combine_all(lambda ya: ya[0] / ya[1] * 100, years, DHHGAGE_cont)

    return recode_categories(
        SDCGCBG,
        {BORN_IN_CANADA: 100, BORN_OUTSIDE_CANADA: immigrant_share},
    )
