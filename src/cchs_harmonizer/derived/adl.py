"""
Activities of daily living.

ADL_01 .. ADL_05 ask whether the respondent needs help preparing meals,
getting to appointments, doing housework, with personal care, and moving
about inside the house. Each item is 1 (needs help) or 2 (does not).
"""

from cchs_harmonizer.combinators import any_all, count_matching
from cchs_harmonizer.registry import derivation

NEEDS_HELP = 1
NO_HELP = 2


@derivation("adl_fun")
def adl(ADL_01, ADL_02, ADL_03, ADL_04, ADL_05):
    """
    Needs help with at least one task: 1 yes, 2 no.

    One affirmative item is enough for 1 even if the others are missing;
    2 requires all five items answered 2.
    """
    return any_all([ADL_01, ADL_02, ADL_03, ADL_04, ADL_05], NEEDS_HELP, NO_HELP)


@derivation("adl_score_5_fun")
def adl_score_5(ADL_01, ADL_02, ADL_03, ADL_04, ADL_05):
    """Number of tasks (0-5) the respondent needs help with."""
    return count_matching([ADL_01, ADL_02, ADL_03, ADL_04, ADL_05], NEEDS_HELP)
