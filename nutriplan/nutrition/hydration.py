"""Daily water intake policy.

The base, cap and per-workout increment are product constants rather than a
medical rule, so they live in one configurable object.
"""
import math
from dataclasses import dataclass
from typing import List, Optional

from nutriplan.data_layer.models import Workout


# (hour before which the multiplier applies, multiplier)
TIME_OF_DAY_MULTIPLIERS = (
    (9, 1.5),
    (12, 1.25),
    (17, 1.0),
    (21, 0.75),
)
LATE_MULTIPLIER = 0.5


@dataclass(frozen=True)
class HydrationPolicy:
    """Glasses of water per day: base plus workout extras, capped."""

    base_glasses: int = 8
    max_glasses: int = 12
    calories_per_glass: int = 150

    def workout_glasses(self, workout: Workout) -> int:
        """Extra glasses for one workout, scaled by time of day (minimum 1)."""
        glasses = max(1, math.ceil(max(workout.calories_burned, 0) / self.calories_per_glass))
        multiplier = self._time_multiplier(workout.time)
        return max(1, math.ceil(glasses * multiplier))

    def daily_glasses(self, workouts: List[Workout]) -> int:
        extra = sum(self.workout_glasses(w) for w in workouts)
        return min(self.max_glasses, self.base_glasses + extra)

    @staticmethod
    def _time_multiplier(time: Optional[str]) -> float:
        if not time:
            return 1.0
        try:
            hour = int(str(time).split(":")[0])
        except ValueError:
            return 1.0
        for before_hour, multiplier in TIME_OF_DAY_MULTIPLIERS:
            if hour < before_hour:
                return multiplier
        return LATE_MULTIPLIER
