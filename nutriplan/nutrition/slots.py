"""Per-slot calorie and macro targets derived from daily targets."""
from dataclasses import dataclass
from typing import Dict, Tuple

from nutriplan.data_layer.models import Macros, NutritionTargets
from nutriplan.nutrition.calculator import round_half_up


# Share of daily calories per slot (one snack)
SLOT_CALORIE_SHARES: Dict[str, float] = {
    "breakfast": 0.25,
    "lunch": 0.35,
    "dinner": 0.30,
    "snack": 0.10,
}

# Share of each daily macro a slot should carry: (protein, carbs, fat)
SLOT_MACRO_WEIGHTS: Dict[str, Tuple[float, float, float]] = {
    "breakfast": (0.20, 0.50, 0.30),
    "lunch": (0.30, 0.40, 0.30),
    "dinner": (0.35, 0.35, 0.30),
    "snack": (0.25, 0.50, 0.25),
}


@dataclass(frozen=True)
class SlotTarget:
    """Calorie and macro target for one meal slot."""

    category: str
    calories: int
    macros: Macros


def slot_target(targets: NutritionTargets, category: str) -> SlotTarget:
    """Target for one slot.

    Args:
        targets: Daily nutrition targets
        category: "breakfast", "lunch", "dinner" or "snack"

    Returns:
        SlotTarget

    Raises:
        KeyError: If category is not a meal slot
    """
    protein_w, carbs_w, fat_w = SLOT_MACRO_WEIGHTS[category]
    return SlotTarget(
        category=category,
        calories=round_half_up(targets.target_calories * SLOT_CALORIE_SHARES[category]),
        macros=Macros(
            protein=round_half_up(targets.macros.protein * protein_w),
            carbs=round_half_up(targets.macros.carbs * carbs_w),
            fat=round_half_up(targets.macros.fat * fat_w),
        ),
    )


def all_slot_targets(targets: NutritionTargets) -> Dict[str, SlotTarget]:
    return {category: slot_target(targets, category) for category in SLOT_CALORIE_SHARES}
