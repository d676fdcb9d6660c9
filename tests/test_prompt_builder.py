"""Tests for the plan window and prompt construction."""
from datetime import date, timedelta

import pytest

from nutriplan.data_layer.models import Goal, MealCriteria, UserNutritionProfile, day_index
from nutriplan.nutrition.calculator import compute_targets
from nutriplan.planning.prompt_builder import (
    PLAN_TEMPLATE_STYLES,
    PromptBuilder,
    build_plan_window,
    resolve_start_date,
)


MONDAY = date(2025, 1, 6)


@pytest.fixture
def profile():
    return UserNutritionProfile(
        age=30,
        gender="male",
        height_cm=180,
        weight_kg=80,
        path="lose-weight",
        workout_frequency=3,
        allergies=["peanuts"],
        food_preferences=["mediterranean"],
        dislikes=["mushrooms"],
    )


@pytest.fixture
def builder():
    return PromptBuilder()


class TestPlanWindow:
    """Tests for the today-through-Sunday window."""

    @pytest.mark.parametrize("offset", range(7))
    def test_window_is_contiguous_and_ends_on_sunday(self, offset):
        today = MONDAY + timedelta(days=offset)
        window = build_plan_window(today, 3)

        assert 1 <= len(window.dates) <= 7
        assert window.dates[0] == today
        assert day_index(window.dates[-1]) == 0
        for earlier, later in zip(window.dates, window.dates[1:]):
            assert later - earlier == timedelta(days=1)

    def test_monday_covers_full_week(self):
        window = build_plan_window(MONDAY, 3)
        assert len(window.dates) == 7
        assert window.dates[-1] == date(2025, 1, 12)
        assert window.active_days == (1, 2, 3, 4, 5, 6, 0)

    def test_wednesday_has_five_days(self):
        window = build_plan_window(date(2025, 1, 8), 3)
        assert len(window.dates) == 5
        assert window.dates[-1] == date(2025, 1, 12)

    def test_sunday_is_a_single_day(self):
        sunday = date(2025, 1, 12)
        window = build_plan_window(sunday, 3)
        assert window.dates == (sunday,)

    def test_workouts_are_spread_out(self):
        """Three workouts over seven days land on Monday, Wednesday and Friday."""
        window = build_plan_window(MONDAY, 3)
        assert window.workout_days == (1, 3, 5)
        assert window.workout_dates == (date(2025, 1, 6), date(2025, 1, 8), date(2025, 1, 10))

    def test_workouts_limited_to_window_length(self):
        window = build_plan_window(date(2025, 1, 11), 5)
        assert window.workout_days == (6, 0)

    def test_no_workouts(self):
        assert build_plan_window(MONDAY, 0).workout_days == ()

    def test_date_for_day(self):
        window = build_plan_window(date(2025, 1, 8), 3)
        assert window.date_for_day(5) == date(2025, 1, 10)
        assert window.date_for_day(1) is None


class TestStartDate:
    """A requested start date never moves the plan away from today."""

    def test_requested_date_is_ignored(self):
        today = date(2025, 1, 8)
        assert resolve_start_date(date(2025, 3, 1), today) == today
        assert resolve_start_date(None, today) == today


class TestWeeklyPrompt:
    """Tests for the weekly prompt text."""

    def test_contains_targets_and_schedule(self, builder, profile):
        targets = compute_targets(profile)
        window = build_plan_window(MONDAY, targets.workout_frequency)
        prompt = builder.build_weekly_prompt(profile, targets, window, language="es")

        assert "30y male (180cm/80kg)" in prompt
        assert "Daily Calories: 2373 kcal" in prompt
        assert "P:208g, C:178g, F:92g" in prompt
        assert "- 2025-01-06 (monday): MUST INCLUDE WORKOUT" in prompt
        assert "- 2025-01-07 (tuesday): Rest Day (No Workout)" in prompt
        assert "- 2025-01-12 (sunday): Rest Day (No Workout)" in prompt
        assert "21 unique distinct meals" in prompt
        assert "this language: es" in prompt
        assert '"weeklyPlan"' in prompt

    def test_dietary_rules(self, builder, profile):
        targets = compute_targets(profile)
        prompt = builder.build_weekly_prompt(profile, targets, build_plan_window(MONDAY, 3))

        assert "Allergies: peanuts" in prompt
        assert "AVOID: mushrooms" in prompt
        assert "PREFERENCES: mediterranean" in prompt
        assert "At least 50% of meals" in prompt
        assert "Restrictions: None" in prompt

    def test_default_goal_context(self, builder, profile):
        targets = compute_targets(profile)
        prompt = builder.build_weekly_prompt(profile, targets, build_plan_window(MONDAY, 3))
        assert "GOAL: Maintain healthy lifestyle" in prompt

    def test_goal_context(self, builder, profile):
        profile.goals = [Goal(title="Run a half marathon", target=21, unit="km")]
        targets = compute_targets(profile)
        prompt = builder.build_weekly_prompt(profile, targets, build_plan_window(MONDAY, 5))
        assert "ACTIVE GOAL: Run a half marathon (Target: 21 km)" in prompt
        assert "FOCUS: running, endurance, cardio" in prompt

    def test_plan_template_replaces_goal(self, builder, profile):
        profile.goals = [Goal(title="Run a half marathon")]
        targets = compute_targets(profile, plan_template="plant-forward-glow")
        prompt = builder.build_weekly_prompt(
            profile, targets, build_plan_window(MONDAY, 3), plan_template="plant-forward-glow",
        )
        assert PLAN_TEMPLATE_STYLES["plant-forward-glow"] in prompt
        assert "ACTIVE GOAL" not in prompt

    def test_ingredient_format_rules(self, builder, profile):
        targets = compute_targets(profile)
        prompt = builder.build_weekly_prompt(profile, targets, build_plan_window(MONDAY, 3))
        assert '"ingredient|amount|unit|category"' in prompt
        assert '"julienned"' in prompt


class TestSuggestionPrompt:
    """Tests for meal suggestion prompts and variation mode."""

    @pytest.mark.parametrize("rules, expected", [
        ("variations of chicken curry", "chicken curry"),
        ("Variations of 'lasagna'", "lasagna"),
        ("Pad Thai", "Pad Thai"),
        ("Generate high-protein lunches", None),
        ("Make it spicy", None),
        ("Please keep every recipe under thirty minutes and avoid frying", None),
        (None, None),
        ("   ", None),
    ])
    def test_variation_target(self, rules, expected):
        assert PromptBuilder.variation_target(rules) == expected

    def test_standard_prompt(self, builder):
        criteria = MealCriteria(
            category="lunch",
            target_calories=600,
            allergies=["shellfish"],
            preferences=["thai"],
            ai_rules="Generate quick meals",
        )
        prompt = builder.build_suggestion_prompt(criteria, 3, language="fr")

        assert "Generate exactly 3 unique lunch meal suggestions" in prompt
        assert "approximately 600 calories" in prompt
        assert "Allergies (NEVER include): shellfish" in prompt
        assert "Food Preferences (MUST INCORPORATE): thai" in prompt
        assert "Additional rules: Generate quick meals" in prompt
        assert "this language: fr" in prompt

    def test_variation_prompt(self, builder):
        criteria = MealCriteria(category="dinner", ai_rules="variations of salmon")
        prompt = builder.build_suggestion_prompt(criteria, 2)

        assert 'Generate exactly 2 UNIQUE VARIATIONS of "salmon"' in prompt
        assert 'ALL 2 meals MUST be variations of "salmon"' in prompt
        assert "Additional rules" not in prompt
