"""Nutrition aggregator for summing nutrition across a weekly plan."""
from typing import Iterable

from nutriplan.data_layer.models import MacroTotal, Meal, WeeklyMacros, WeeklyPlan


class NutritionAggregator:
    """Aggregator for combining nutrition from multiple meals."""

    @staticmethod
    def aggregate_meals(meals: Iterable[Meal]) -> WeeklyMacros:
        """Sum calories and macros of the given meals.

        Args:
            meals: Meals to sum

        Returns:
            WeeklyMacros with ``total`` filled and ``consumed`` left at 0
        """
        calories = protein = carbs = fat = 0
        for meal in meals:
            calories += meal.calories
            protein += meal.macros.protein
            carbs += meal.macros.carbs
            fat += meal.macros.fat

        return WeeklyMacros(
            calories=MacroTotal(total=calories),
            protein=MacroTotal(total=protein),
            carbs=MacroTotal(total=carbs),
            fat=MacroTotal(total=fat),
        )

    @staticmethod
    def aggregate_week(plan: WeeklyPlan) -> WeeklyMacros:
        """Weekly totals over every meal of every day in the plan."""
        return NutritionAggregator.aggregate_meals(plan.all_meals())
