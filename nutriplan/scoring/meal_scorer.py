"""Meal scoring for inventory reuse."""

import logging
import re
from dataclasses import dataclass, replace
from typing import List, Optional

from nutriplan.data_layer.models import Macros, Meal, MealRecord
from nutriplan.nutrition.calculator import round_half_up
from nutriplan.nutrition.slots import SlotTarget


logger = logging.getLogger(__name__)


@dataclass
class ScoringWeights:
    """Points awarded or deducted per scoring criterion."""

    preference_bonus: float = 10.0  # per matched food preference
    dislike_penalty: float = 20.0   # per matched dislike
    popularity_cap: int = 5         # usage count counted up to this
    proximity_max: float = 10.0     # exact calorie match

    def __post_init__(self):
        values = [self.preference_bonus, self.dislike_penalty, self.popularity_cap, self.proximity_max]
        if any(v < 0 for v in values):
            raise ValueError("All scoring weights must be non-negative")


@dataclass
class MealContext:
    """What a candidate is scored against."""

    target_calories: int
    tolerance: int  # calorie distance at which proximity points reach 0
    preferences: List[str]
    dislikes: List[str]
    allergies: List[str]


class MealScorer:
    """Scores stored meals against a slot and the user's tastes."""

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()

    def score(self, record: MealRecord, context: MealContext) -> Optional[float]:
        """Score a stored meal for a slot.

        Args:
            record: Inventory record
            context: Target calories and user preferences

        Returns:
            Score (higher is better), or None if the meal contains an allergen
        """
        meal = record.meal
        if self.contains_allergens(meal, context.allergies):
            return None

        text = self._searchable_text(meal)
        score = 0.0
        score += self.weights.preference_bonus * sum(
            1 for p in context.preferences if p.strip() and p.strip().lower() in text
        )
        score -= self.weights.dislike_penalty * sum(
            1 for d in context.dislikes if d.strip() and d.strip().lower() in text
        )
        score += min(max(record.usage_count, 0), self.weights.popularity_cap)
        score += self._proximity(meal.calories, context)
        return score

    def _proximity(self, calories: int, context: MealContext) -> float:
        if context.tolerance <= 0:
            return self.weights.proximity_max if calories == context.target_calories else 0.0
        distance = abs(calories - context.target_calories)
        return self.weights.proximity_max * max(0.0, 1.0 - distance / context.tolerance)

    @staticmethod
    def _searchable_text(meal: Meal) -> str:
        names = [i.name.replace("_", " ") for i in meal.ingredients]
        return " ".join([meal.name] + names).lower()

    @staticmethod
    def contains_allergens(meal: Meal, allergies: List[str]) -> bool:
        """Check the meal name and ingredients against allergies.

        Matching is a case-insensitive regex search, so "nut" also excludes
        "peanut butter".

        Args:
            meal: Meal to check
            allergies: Allergen names to avoid

        Returns:
            True if the meal contains an allergen, False otherwise
        """
        if not allergies:
            return False

        texts = [meal.name] + [i.name.replace("_", " ") for i in meal.ingredients]
        for allergen in allergies:
            allergen = allergen.strip()
            if not allergen:
                continue
            pattern = re.compile(re.escape(allergen).replace(r"\ ", r"[\s_]"), re.IGNORECASE)
            if any(pattern.search(text) for text in texts):
                return True
        return False


# Macro-derived calories may differ from the stated calories by this much
MACRO_CALORIE_TOLERANCE = 0.2


def correct_macros(meal: Meal, target: SlotTarget) -> Meal:
    """Make a generated meal's macros consistent with its calories.

    Meals without macros get the slot's macro distribution scaled to their
    calories; meals without calories get them from their macros; macros whose
    4/4/9 energy strays too far from the stated calories are rescaled.

    Args:
        meal: Generated meal
        target: Slot target the meal was generated for

    Returns:
        The meal unchanged, or a corrected copy
    """
    macros = meal.macros
    calories = meal.calories

    if macros.is_empty() and calories <= 0:
        logger.debug("[reuse] %s has no nutrition, using slot target", meal.name)
        return replace(meal, calories=target.calories, macros=target.macros)

    if macros.is_empty():
        return replace(meal, macros=_scale(target.macros, calories))

    if calories <= 0:
        return replace(meal, calories=macros.calories)

    derived = macros.calories
    if derived and abs(derived - calories) / calories > MACRO_CALORIE_TOLERANCE:
        logger.debug(
            "[reuse] %s macros give %d kcal, stated %d kcal; rescaling",
            meal.name, derived, calories,
        )
        return replace(meal, macros=_scale(macros, calories))

    return meal


def _scale(macros: Macros, calories: int) -> Macros:
    """Scale macros so that their 4/4/9 energy equals ``calories``."""
    energy = macros.calories
    if energy <= 0:
        return macros
    factor = calories / energy
    return Macros(
        protein=round_half_up(macros.protein * factor),
        carbs=round_half_up(macros.carbs * factor),
        fat=round_half_up(macros.fat * factor),
    )
