"""Tests for the water intake policy."""
from nutriplan.data_layer.models import Workout
from nutriplan.nutrition.hydration import HydrationPolicy


def workout(calories, time=None):
    return Workout(name="Session", category="cardio", duration=30, calories_burned=calories, time=time)


class TestHydrationPolicy:
    """Tests for HydrationPolicy."""

    def test_rest_day_is_base(self):
        assert HydrationPolicy().daily_glasses([]) == 8

    def test_morning_workout_counts_more(self):
        """300 kcal = 2 glasses, x1.5 before 09:00."""
        policy = HydrationPolicy()
        assert policy.workout_glasses(workout(300, "07:00")) == 3
        assert policy.daily_glasses([workout(300, "07:00")]) == 11

    def test_afternoon_and_evening_multipliers(self):
        policy = HydrationPolicy()
        assert policy.workout_glasses(workout(300, "14:00")) == 2
        assert policy.workout_glasses(workout(300, "19:30")) == 2  # ceil(2 * 0.75)
        assert policy.workout_glasses(workout(300, "22:00")) == 1

    def test_every_workout_adds_at_least_one_glass(self):
        assert HydrationPolicy().workout_glasses(workout(0)) == 1

    def test_daily_total_is_capped(self):
        policy = HydrationPolicy()
        assert policy.daily_glasses([workout(600, "18:00"), workout(600, "18:00")]) == 12

    def test_invalid_time_uses_neutral_multiplier(self):
        assert HydrationPolicy().workout_glasses(workout(450, "noon")) == 3

    def test_custom_policy(self):
        policy = HydrationPolicy(base_glasses=6, max_glasses=8, calories_per_glass=100)
        assert policy.daily_glasses([workout(250, "15:00")]) == 8
