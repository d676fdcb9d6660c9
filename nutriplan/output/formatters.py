"""Formatters for weekly plan output (JSON and Markdown)."""

import json
from typing import Any, Dict, List, Optional

from nutriplan.data_layer.models import Ingredient, Meal, NutritionTargets, WeeklyPlanResult
from nutriplan.data_layer.serialization import day_to_dict, meal_to_dict, weekly_macros_to_dict


def format_ingredient_string(ingredient: Ingredient) -> str:
    """Format an ingredient as a string (e.g., "200 g chicken breast").

    Args:
        ingredient: Ingredient object

    Returns:
        Formatted string; the name alone when no amount is known
    """
    name = ingredient.name.replace("_", " ")
    parts = [p for p in (ingredient.amount, ingredient.unit) if p]
    if not parts:
        return name
    return f"{' '.join(parts)} {name}"


def format_macros_line(calories: int, protein: int, carbs: int, fat: int) -> str:
    return f"{calories} kcal | P: {protein}g | C: {carbs}g | F: {fat}g"


def _targets_dict(targets: NutritionTargets) -> Dict[str, Any]:
    return {
        "bmr": round(targets.bmr, 1),
        "tdee": round(targets.tdee, 1),
        "targetCalories": targets.target_calories,
        "macros": {
            "protein": targets.macros.protein,
            "carbs": targets.macros.carbs,
            "fat": targets.macros.fat,
        },
        "idealWeight": {
            "min": targets.ideal_weight.min,
            "max": targets.ideal_weight.max,
            "ideal": targets.ideal_weight.ideal,
        },
        "workoutFrequency": targets.workout_frequency,
    }


def format_plan_dict(result: WeeklyPlanResult) -> Dict[str, Any]:
    """Format a WeeklyPlanResult as the date-keyed document the plan store keeps.

    Args:
        result: Result of weekly plan generation

    Returns:
        Dictionary ready for JSON serialization
    """
    plan = result.weekly_plan
    data: Dict[str, Any] = {
        "weeklyPlan": {day.date_key: day_to_dict(day) for day in plan.sorted_days()},
        "weeklyMacros": weekly_macros_to_dict(plan.weekly_macros),
        "planType": result.plan_type,
        "language": result.language,
        "generatedAt": result.generated_at,
        "model": result.model,
        "reusedMealIds": list(result.reused_meal_ids),
    }
    if result.targets is not None:
        data["targets"] = _targets_dict(result.targets)
    return data


def format_plan_json(result: WeeklyPlanResult, indent: Optional[int] = 2) -> str:
    return json.dumps(format_plan_dict(result), indent=indent)


def format_meals_json(meals: List[Meal], indent: Optional[int] = 2) -> str:
    """Format meal suggestions as a JSON string."""
    return json.dumps({"meals": [meal_to_dict(m) for m in meals]}, indent=indent)


def _meal_lines(label: str, meal: Meal) -> List[str]:
    lines = [f"### {label}: {meal.name}"]
    lines.append(
        f"**Nutrition:** {format_macros_line(meal.calories, meal.macros.protein, meal.macros.carbs, meal.macros.fat)}"
    )
    if meal.prep_time:
        lines.append(f"**Prep Time:** {meal.prep_time} minutes")
    if meal.ingredients:
        lines.append("")
        for ingredient in meal.ingredients:
            lines.append(f"- {format_ingredient_string(ingredient)}")
    lines.append("")
    return lines


def format_plan_markdown(result: WeeklyPlanResult) -> str:
    """Format a WeeklyPlanResult as a readable Markdown week.

    Args:
        result: Result of weekly plan generation

    Returns:
        Markdown string
    """
    plan = result.weekly_plan
    lines = ["# Weekly Meal Plan\n"]
    lines.append(f"*Generated {result.generated_at} ({result.model or 'unknown model'}, {result.language})*\n")

    if result.targets is not None:
        t = result.targets
        lines.append("## Daily Targets")
        lines.append(f"**Calories:** {t.target_calories} kcal")
        lines.append(f"**Protein:** {t.macros.protein}g")
        lines.append(f"**Carbs:** {t.macros.carbs}g")
        lines.append(f"**Fat:** {t.macros.fat}g")
        lines.append(f"**Workouts:** {t.workout_frequency} per week")
        lines.append("")

    for day in plan.sorted_days():
        lines.append(f"## {day.day_name.capitalize()} ({day.date_key})")
        lines.append("")
        for label, meal in (("Breakfast", day.breakfast), ("Lunch", day.lunch), ("Dinner", day.dinner)):
            if meal is not None:
                lines.extend(_meal_lines(label, meal))
        for snack in day.snacks:
            lines.extend(_meal_lines("Snack", snack))

        if day.workouts:
            lines.append("### Workouts")
            for workout in day.workouts:
                when = f" at {workout.time}" if workout.time else ""
                lines.append(
                    f"- {workout.name} ({workout.category}, {workout.duration} min, "
                    f"{workout.calories_burned} kcal){when}"
                )
        else:
            lines.append("*Rest day*")
        lines.append(f"**Water:** {day.water_intake} glasses")
        lines.append("")

    totals = plan.weekly_macros
    lines.append("## Weekly Totals")
    lines.append(format_macros_line(
        totals.calories.total, totals.protein.total, totals.carbs.total, totals.fat.total,
    ))
    lines.append("")
    return "\n".join(lines)
