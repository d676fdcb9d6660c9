"""Conversion between meal-plan dataclasses and camelCase documents.

The document layout is the one the persistence collaborator stores, so the
same helpers back both the JSON meal inventory and the plan formatters.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from nutriplan.data_layer.models import (
    DayPlan,
    Ingredient,
    Macros,
    Meal,
    MealRecord,
    WeeklyMacros,
    Workout,
)


def ingredient_to_dict(ingredient: Ingredient) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": ingredient.name, "amount": ingredient.amount}
    if ingredient.unit:
        data["unit"] = ingredient.unit
    if ingredient.category:
        data["category"] = ingredient.category
    return data


def meal_to_dict(meal: Meal) -> Dict[str, Any]:
    """Serialize a Meal to its stored document form."""
    return {
        "id": meal.id,
        "name": meal.name,
        "category": meal.category,
        "calories": meal.calories,
        "macros": {
            "protein": meal.macros.protein,
            "carbs": meal.macros.carbs,
            "fat": meal.macros.fat,
        },
        "ingredients": [ingredient_to_dict(i) for i in meal.ingredients],
        "prepTime": meal.prep_time,
    }


def meal_from_dict(data: Dict[str, Any]) -> Meal:
    """Rebuild a Meal from a stored document.

    Only documents written by ``meal_to_dict`` are expected here; raw model
    output goes through the plan transformer instead.
    """
    macros = data.get("macros") or {}
    return Meal(
        id=str(data["id"]),
        name=data["name"],
        category=data["category"],
        calories=int(data.get("calories", 0)),
        macros=Macros(
            protein=int(macros.get("protein", 0)),
            carbs=int(macros.get("carbs", 0)),
            fat=int(macros.get("fat", 0)),
        ),
        ingredients=[
            Ingredient(
                name=item["name"],
                amount=str(item.get("amount", "")),
                unit=item.get("unit"),
                category=item.get("category"),
            )
            for item in data.get("ingredients", [])
        ],
        prep_time=int(data.get("prepTime", 0)),
    )


def record_to_dict(record: MealRecord) -> Dict[str, Any]:
    data = meal_to_dict(record.meal)
    data.update({
        "usageCount": record.usage_count,
        "lastUsed": record.last_used.isoformat() if record.last_used else None,
        "language": record.language,
        "path": record.path,
        "dietaryTags": list(record.dietary_tags),
    })
    return data


def record_from_dict(data: Dict[str, Any]) -> MealRecord:
    last_used: Optional[datetime] = None
    if data.get("lastUsed"):
        last_used = datetime.fromisoformat(data["lastUsed"])
    return MealRecord(
        meal=meal_from_dict(data),
        usage_count=int(data.get("usageCount", 1)),
        last_used=last_used,
        language=data.get("language", "en"),
        path=data.get("path"),
        dietary_tags=list(data.get("dietaryTags", [])),
    )


def workout_to_dict(workout: Workout) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": workout.name,
        "category": workout.category,
        "duration": workout.duration,
        "caloriesBurned": workout.calories_burned,
    }
    if workout.time:
        data["time"] = workout.time
    return data


def day_to_dict(day: DayPlan) -> Dict[str, Any]:
    return {
        "date": day.date_key,
        "day": day.day_name,
        "meals": {
            "breakfast": meal_to_dict(day.breakfast) if day.breakfast else None,
            "lunch": meal_to_dict(day.lunch) if day.lunch else None,
            "dinner": meal_to_dict(day.dinner) if day.dinner else None,
            "snacks": [meal_to_dict(m) for m in day.snacks],
        },
        "workouts": [workout_to_dict(w) for w in day.workouts],
        "waterIntake": day.water_intake,
    }


def weekly_macros_to_dict(weekly: WeeklyMacros) -> Dict[str, Any]:
    return {
        name: {"consumed": total.consumed, "total": total.total}
        for name, total in (
            ("calories", weekly.calories),
            ("protein", weekly.protein),
            ("carbs", weekly.carbs),
            ("fat", weekly.fat),
        )
    }
