"""Nutrition calculator for deriving daily targets from user biometrics.

All functions are pure: same inputs, same outputs, no I/O.
"""
import math
from typing import Dict, Optional

from nutriplan.data_layer.exceptions import ValidationError
from nutriplan.data_layer.models import IdealWeight, Macros, NutritionTargets, UserNutritionProfile
from nutriplan.nutrition.goals import GoalAdjustments, get_goal_adjustments
from nutriplan.nutrition.paths import (
    DEFAULT_ACTIVITY_MULTIPLIER,
    DEFAULT_MACRO_SPLIT,
    DEFAULT_MET,
    MACRO_SPLITS,
    PATH_ADJUSTMENTS,
    PATH_WORKOUTS_GOAL,
    WORKOUT_FREQUENCY_MULTIPLIERS,
    WORKOUT_METS,
    normalize_path,
)


# Harris-Benedict coefficients: (constant, per kg, per cm, per year)
BMR_COEFFICIENTS: Dict[str, tuple] = {
    "male": (88.362, 13.397, 4.799, 5.677),
    "female": (447.593, 9.247, 3.098, 4.330),
}

# BMI window used for the ideal weight range
MIN_HEALTHY_BMI = 18.5
MAX_HEALTHY_BMI = 24.9
IDEAL_BMI = {"male": 22.5, "female": 21.5}

MIN_TARGET_CALORIES = 1200


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def _coefficients(gender: str) -> tuple:
    try:
        return BMR_COEFFICIENTS[gender.lower()]
    except (KeyError, AttributeError):
        raise ValidationError(f"Unsupported gender '{gender}'", field="gender")


def calculate_bmr(weight: float, height: float, age: int, gender: str) -> float:
    """Calculate basal metabolic rate (Harris-Benedict).

    Args:
        weight: Body weight in kg
        height: Height in cm
        age: Age in years
        gender: "male" or "female"

    Returns:
        BMR in kcal/day

    Raises:
        ValidationError: If gender has no coefficient entry
    """
    constant, per_kg, per_cm, per_year = _coefficients(gender)
    return constant + per_kg * weight + per_cm * height - per_year * age


def activity_multiplier(workout_frequency: Optional[int]) -> float:
    """Activity multiplier for a weekly workout count.

    Missing or zero frequency uses the moderate default; counts above the
    table are treated as the highest level.
    """
    if not workout_frequency or workout_frequency < 1:
        return DEFAULT_ACTIVITY_MULTIPLIER
    capped = min(int(workout_frequency), max(WORKOUT_FREQUENCY_MULTIPLIERS))
    return WORKOUT_FREQUENCY_MULTIPLIERS[capped]


def calculate_tdee(bmr: float, workout_frequency: Optional[int] = None) -> float:
    return bmr * activity_multiplier(workout_frequency)


def calculate_target_calories(tdee: float, path: str) -> int:
    """TDEE plus the fixed calorie adjustment of the path, rounded."""
    return round_half_up(tdee + PATH_ADJUSTMENTS[normalize_path(path)])


def calculate_macros(calories: float, path: str) -> Macros:
    """Split calories into protein/carbs/fat grams for a path.

    Protein and carbs use 4 kcal/g, fat 9 kcal/g; each is rounded to the
    nearest gram.
    """
    protein_pct, carbs_pct, fat_pct = MACRO_SPLITS.get(normalize_path(path), DEFAULT_MACRO_SPLIT)
    return Macros(
        protein=round_half_up(calories * protein_pct / 4),
        carbs=round_half_up(calories * carbs_pct / 4),
        fat=round_half_up(calories * fat_pct / 9),
    )


def calculate_ideal_weight(height: float, gender: str) -> IdealWeight:
    """Healthy weight window from the BMI range.

    Args:
        height: Height in cm
        gender: "male" or "female" (selects the ideal BMI)

    Returns:
        IdealWeight in kg
    """
    meters_sq = (height / 100) ** 2
    ideal_bmi = IDEAL_BMI.get((gender or "").lower(), IDEAL_BMI["female"])
    return IdealWeight(
        min=MIN_HEALTHY_BMI * meters_sq,
        max=MAX_HEALTHY_BMI * meters_sq,
        ideal=ideal_bmi * meters_sq,
    )


def calculate_workout_calories(category: str, duration_minutes: float, weight_kg: float) -> int:
    """Estimate calories burned: MET * 3.5 * kg * minutes / 200."""
    met = WORKOUT_METS.get((category or "").lower(), DEFAULT_MET)
    return round_half_up(met * 3.5 * weight_kg * duration_minutes / 200)


def effective_workout_frequency(
    user_frequency: Optional[int], goal_frequency: Optional[int]
) -> Optional[int]:
    """Goal and user frequency combined; the larger wins when both exist."""
    if user_frequency and goal_frequency:
        return max(user_frequency, goal_frequency)
    return goal_frequency or user_frequency


def compute_targets(
    profile: UserNutritionProfile,
    plan_template: Optional[str] = None,
) -> NutritionTargets:
    """Compute the nutrition targets used for one plan generation.

    Goal adjustments are skipped when a plan template is selected.

    Args:
        profile: User nutrition profile
        plan_template: Optional plan style name

    Returns:
        NutritionTargets

    Raises:
        ValidationError: If the profile biometrics are invalid
    """
    if profile.weight_kg <= 0 or profile.height_cm <= 0 or profile.age <= 0:
        raise ValidationError("Age, height and weight must be positive")

    path = normalize_path(profile.path)
    adjustments = GoalAdjustments() if plan_template else get_goal_adjustments(profile.goals)

    bmr = calculate_bmr(profile.weight_kg, profile.height_cm, profile.age, profile.gender)
    frequency = effective_workout_frequency(profile.workout_frequency, adjustments.workout_frequency)
    tdee = calculate_tdee(bmr, frequency)

    target_calories = max(
        MIN_TARGET_CALORIES,
        calculate_target_calories(tdee, path) + adjustments.calorie_adjustment,
    )

    macros = calculate_macros(target_calories, path)
    if adjustments.has_macro_adjustments():
        macros = Macros(
            protein=max(0, macros.protein + adjustments.protein_adjustment),
            carbs=max(0, macros.carbs + adjustments.carbs_adjustment),
            fat=max(0, macros.fat + adjustments.fat_adjustment),
        )

    return NutritionTargets(
        bmr=bmr,
        tdee=tdee,
        target_calories=target_calories,
        macros=macros,
        ideal_weight=calculate_ideal_weight(profile.height_cm, profile.gender),
        workout_frequency=frequency if frequency else PATH_WORKOUTS_GOAL[path],
        workout_types=tuple(adjustments.workout_types),
        goal_description=adjustments.description,
    )
