"""Unit tests for output formatters."""

import json
from datetime import date

import pytest

from nutriplan.data_layer.models import (
    DayPlan,
    Ingredient,
    Macros,
    Meal,
    UserNutritionProfile,
    WeeklyPlan,
    WeeklyPlanResult,
    Workout,
)
from nutriplan.nutrition.aggregator import NutritionAggregator
from nutriplan.nutrition.calculator import compute_targets
from nutriplan.output.formatters import (
    format_ingredient_string,
    format_macros_line,
    format_meals_json,
    format_plan_dict,
    format_plan_json,
    format_plan_markdown,
)


class TestFormatIngredientString:
    """Test ingredient string formatting."""

    def test_amount_and_unit(self):
        ingredient = Ingredient(name="chicken_breast", amount="200", unit="g")
        assert format_ingredient_string(ingredient) == "200 g chicken breast"

    def test_amount_without_unit(self):
        assert format_ingredient_string(Ingredient(name="eggs", amount="3")) == "3 eggs"

    def test_name_only(self):
        assert format_ingredient_string(Ingredient(name="sea_salt", amount="")) == "sea salt"


def meal(meal_id, name, category, calories=500):
    return Meal(
        id=meal_id,
        name=name,
        category=category,
        calories=calories,
        macros=Macros(protein=30, carbs=50, fat=20),
        ingredients=[Ingredient(name="brown_rice", amount="80", unit="g", category="Grains")],
        prep_time=15,
    )


@pytest.fixture
def result():
    monday = DayPlan(
        date=date(2025, 1, 6),
        day_name="monday",
        breakfast=meal("b1", "Overnight Oats", "breakfast", 400),
        lunch=meal("l1", "Chicken Bowl", "lunch", 600),
        dinner=meal("d1", "Salmon Plate", "dinner", 550),
        snacks=[meal("s1", "Apple", "snack", 100)],
        workouts=[Workout(name="Morning Run", category="running", duration=30, calories_burned=300, time="07:00")],
        water_intake=11,
    )
    tuesday = DayPlan(
        date=date(2025, 1, 7),
        day_name="tuesday",
        breakfast=meal("b2", "Omelette", "breakfast", 350),
        lunch=meal("l2", "Lentil Soup", "lunch", 500),
        dinner=meal("d2", "Tofu Stir Fry", "dinner", 520),
    )
    plan = WeeklyPlan(days={"2025-01-07": tuesday, "2025-01-06": monday})
    plan.weekly_macros = NutritionAggregator.aggregate_week(plan)

    profile = UserNutritionProfile(age=30, gender="male", height_cm=180, weight_kg=80,
                                   path="lose-weight", workout_frequency=3)
    return WeeklyPlanResult(
        weekly_plan=plan,
        language="en",
        generated_at="2025-01-06T08:00:00",
        model="gemini-2.5-flash",
        targets=compute_targets(profile),
        reused_meal_ids=["l1"],
    )


class TestFormatPlanDict:
    """Test the stored document form of a plan."""

    def test_days_are_date_keyed_and_sorted(self, result):
        data = format_plan_dict(result)
        assert list(data["weeklyPlan"]) == ["2025-01-06", "2025-01-07"]
        monday = data["weeklyPlan"]["2025-01-06"]
        assert monday["day"] == "monday"
        assert monday["waterIntake"] == 11
        assert monday["meals"]["lunch"]["name"] == "Chicken Bowl"
        assert monday["workouts"][0]["caloriesBurned"] == 300
        assert monday["workouts"][0]["time"] == "07:00"

    def test_metadata(self, result):
        data = format_plan_dict(result)
        assert data["model"] == "gemini-2.5-flash"
        assert data["reusedMealIds"] == ["l1"]
        assert data["planType"] == "weekly"
        assert data["targets"]["targetCalories"] == 2373
        assert data["targets"]["macros"] == {"protein": 208, "carbs": 178, "fat": 92}

    def test_weekly_totals(self, result):
        totals = format_plan_dict(result)["weeklyMacros"]
        assert totals["calories"] == {"consumed": 0, "total": 3020}
        assert totals["protein"]["total"] == 7 * 30

    def test_without_targets(self, result):
        result.targets = None
        assert "targets" not in format_plan_dict(result)

    def test_json_string(self, result):
        assert json.loads(format_plan_json(result)) == format_plan_dict(result)


class TestFormatMeals:
    def test_meals_json(self):
        data = json.loads(format_meals_json([meal("x", "Tacos", "dinner")]))
        assert data["meals"][0]["id"] == "x"
        assert data["meals"][0]["prepTime"] == 15


class TestFormatPlanMarkdown:
    """Test the Markdown rendering."""

    def test_structure(self, result):
        markdown = format_plan_markdown(result)

        assert markdown.startswith("# Weekly Meal Plan")
        assert "## Daily Targets" in markdown
        assert "**Calories:** 2373 kcal" in markdown
        assert markdown.index("## Monday (2025-01-06)") < markdown.index("## Tuesday (2025-01-07)")
        assert "### Breakfast: Overnight Oats" in markdown
        assert "### Snack: Apple" in markdown
        assert "- 80 g brown rice" in markdown
        assert "- Morning Run (running, 30 min, 300 kcal) at 07:00" in markdown
        assert "**Water:** 11 glasses" in markdown

    def test_rest_day(self, result):
        tuesday = format_plan_markdown(result).split("## Tuesday")[1]
        assert "*Rest day*" in tuesday

    def test_weekly_totals(self, result):
        markdown = format_plan_markdown(result)
        assert "## Weekly Totals" in markdown
        assert format_macros_line(3020, 210, 350, 140) in markdown
