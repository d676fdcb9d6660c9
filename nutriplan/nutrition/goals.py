"""Goal-driven adjustments to calorie, macro and workout targets."""
from dataclasses import dataclass, field
from typing import List, Optional

from nutriplan.data_layer.models import Goal


@dataclass
class GoalAdjustments:
    """Combined effect of all user goals on the generated plan."""

    calorie_adjustment: int = 0
    protein_adjustment: int = 0
    carbs_adjustment: int = 0
    fat_adjustment: int = 0
    workout_frequency: Optional[int] = None
    workout_types: List[str] = field(default_factory=list)
    description: str = ""

    def has_macro_adjustments(self) -> bool:
        return any((self.protein_adjustment, self.carbs_adjustment, self.fat_adjustment))


def _raise_frequency(current: Optional[int], minimum: int) -> int:
    return max(current or 0, minimum)


def _describe(goal: Goal) -> str:
    text = f"{goal.title}: {goal.description}" if goal.description else goal.title
    if goal.target is not None:
        target = f"{goal.target} {goal.unit}".strip()
        text += f" (Target: {target})"
    return text


def get_goal_adjustments(goals: List[Goal]) -> GoalAdjustments:
    """Derive plan adjustments from a list of goals using keyword rules.

    A single goal may trigger several rules ("lose weight" matches both the
    strength rule via "weight" and the weight-loss rule).

    Args:
        goals: User goals (may be empty)

    Returns:
        GoalAdjustments (all zero when there are no goals)
    """
    adjustments = GoalAdjustments()
    if not goals:
        return adjustments

    descriptions = []
    workout_types: List[str] = []

    for goal in goals:
        text = f"{goal.title} {goal.description}".lower()
        unit = (goal.unit or "").lower()
        descriptions.append(_describe(goal))

        if "marathon" in text or "run" in text or "km" in unit or "mile" in unit:
            workout_types.extend(["running", "endurance", "cardio"])
            adjustments.calorie_adjustment += 400
            adjustments.carbs_adjustment += 15
            adjustments.protein_adjustment += 5
            adjustments.workout_frequency = _raise_frequency(adjustments.workout_frequency, 5)

        if any(word in text for word in ("muscle", "strength", "lift", "weight")):
            workout_types.extend(["strength", "weights", "bodyweight"])
            adjustments.calorie_adjustment += 500
            adjustments.protein_adjustment += 20
            adjustments.carbs_adjustment += 10
            adjustments.workout_frequency = _raise_frequency(adjustments.workout_frequency, 4)

        if any(word in text for word in ("lose", "weight", "fat")):
            workout_types.extend(["cardio", "hiit", "strength"])
            adjustments.calorie_adjustment -= 300
            adjustments.protein_adjustment += 15
            adjustments.workout_frequency = _raise_frequency(adjustments.workout_frequency, 5)

        if any(word in text for word in ("flexibility", "yoga", "stretch")):
            workout_types.extend(["yoga", "flexibility", "stretching"])
            adjustments.workout_frequency = _raise_frequency(adjustments.workout_frequency, 3)

    # dict.fromkeys keeps first-seen order
    adjustments.workout_types = list(dict.fromkeys(workout_types))
    adjustments.description = "; ".join(descriptions)
    return adjustments
