"""
Body mass index derivations.

    bmi_fun            weight / height^2 from self-reported measures
    adjusted_bmi_fun   sex-specific correction for self-report bias
    bmi_fun_cat        WHO weight categories

Inputs are pre-checked against plausible height/weight ranges before any
arithmetic; the computed index is then checked again against its own
plausible range. Either check demotes to NA(b).
"""

from cchs_harmonizer.combinators import (
    classify_intervals,
    clamp_to_domain,
    combine_all,
    recode_categories,
    select_first_present,
    where,
)
from cchs_harmonizer.registry import derivation
from cchs_harmonizer.tagged import NA_B, Missing, as_tagged, strongest_missing

# Metres and kilograms.
MIN_HEIGHT = 0.914
MAX_HEIGHT = 2.134
MIN_WEIGHT = 27.0
MAX_WEIGHT = 135.0

MIN_BMI = 10
MAX_BMI = 100

# DHH_SEX -> (intercept, slope) applied to self-reported BMI.
SEX_CORRECTION = {
    1: (-1.07575, 1.07592),
    2: (-0.12374, 1.05129),
}

# Upper bounds of underweight, normal weight and overweight.
BMI_CUTPOINTS = (18.5, 25, 30)
BMI_CATEGORIES = (1, 2, 3, 4)


def _raw_bmi(height, weight, min_height, max_height, min_weight, max_weight):
    height = clamp_to_domain(height, min_height, max_height)
    weight = clamp_to_domain(weight, min_weight, max_weight)
    return combine_all(lambda hw: hw[1] / (hw[0] * hw[0]), height, weight)


@derivation("bmi_fun")
def bmi(
    HWTGHTM,
    HWTGWTK,
    min_height=MIN_HEIGHT,
    max_height=MAX_HEIGHT,
    min_weight=MIN_WEIGHT,
    max_weight=MAX_WEIGHT,
    bmi_min=MIN_BMI,
    bmi_max=MAX_BMI,
):
    """
    Body mass index, kg/m^2.

    Examples:
        bmi(Present(1.75), Present(70))   -> Present(22.857...)
        bmi(NA_B, Present(70))            -> NA_B
        bmi(Present(0.914), Present(135)) -> NA_B   (161.6 is implausible)
    """
    raw = _raw_bmi(HWTGHTM, HWTGWTK, min_height, max_height, min_weight, max_weight)
    return clamp_to_domain(raw, bmi_min, bmi_max)


@derivation("adjusted_bmi_fun")
def adjusted_bmi(
    DHH_SEX,
    HWTGHTM,
    HWTGWTK,
    min_height=MIN_HEIGHT,
    max_height=MAX_HEIGHT,
    min_weight=MIN_WEIGHT,
    max_weight=MAX_WEIGHT,
    bmi_min=MIN_BMI,
    bmi_max=MAX_BMI,
):
    """
    Self-reported BMI corrected towards measured BMI, by sex.

    A sex code other than 1 (male) or 2 (female) gives NA(b) whatever the
    height and weight are.
    """
    raw = _raw_bmi(HWTGHTM, HWTGWTK, min_height, max_height, min_weight, max_weight)
    sex = as_tagged(DHH_SEX)
    if isinstance(sex, Missing):
        return strongest_missing([sex, raw])

    def corrected():
        coefficients = recode_categories(sex, SEX_CORRECTION)
        adjusted = combine_all(lambda cv: cv[0][0] + cv[0][1] * cv[1], coefficients, raw)
        return clamp_to_domain(adjusted, bmi_min, bmi_max)

    return select_first_present(where(sex, lambda s: s in SEX_CORRECTION), corrected, NA_B)


@derivation("bmi_fun_cat")
def bmi_category(HWTGBMI_der):
    """
    1 underweight (< 18.5), 2 normal (< 25), 3 overweight (< 30), 4 obese.
    """
    return classify_intervals(HWTGBMI_der, BMI_CUTPOINTS, BMI_CATEGORIES)
