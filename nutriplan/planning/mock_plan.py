"""Canned weekly plan used instead of a model call (offline runs and demos)."""

from datetime import date, timedelta
from typing import Any, Dict, List

from nutriplan.data_layer.models import DAY_NAME_BY_INDEX, PlanWindow, day_index


def _meal(name: str, calories: int, protein: int, carbs: int, fat: int,
          ingredients: List[str], prep_time: int) -> Dict[str, Any]:
    return {
        "name": name,
        "calories": calories,
        "macros": {"protein": protein, "carbs": carbs, "fat": fat},
        "ingredients": ingredients,
        "prepTime": prep_time,
    }


# Monday first
MOCK_DAYS: List[Dict[str, Any]] = [
    {
        "breakfast": _meal("Greek Yogurt Parfait", 420, 28, 52, 11,
                           ["greek_yogurt|200|g|Dairy", "blueberries|80|g|Fruits", "granola|40|g|Grains"], 5),
        "lunch": _meal("Chicken Quinoa Bowl", 620, 48, 62, 18,
                       ["chicken_breast|150|g|Proteins", "quinoa|80|g|Grains", "spinach|50|g|Vegetables",
                        "olive_oil|10|ml|Pantry"], 20),
        "dinner": _meal("Baked Salmon With Asparagus", 560, 42, 28, 30,
                        ["salmon|160|g|Proteins", "asparagus|150|g|Vegetables", "lemon|1|piece|Fruits"], 25),
        "snacks": [_meal("Apple With Almond Butter", 210, 5, 25, 11,
                         ["apple|1|piece|Fruits", "almond_butter|15|g|Pantry"], 2)],
        "workouts": [{"name": "Morning Run", "category": "running", "duration": 30,
                      "caloriesBurned": 300, "time": "07:00"}],
    },
    {
        "breakfast": _meal("Spinach Mushroom Omelette", 390, 27, 12, 25,
                           ["eggs|3|piece|Proteins", "spinach|40|g|Vegetables", "mushrooms|60|g|Vegetables"], 10),
        "lunch": _meal("Turkey Avocado Wrap", 580, 38, 50, 24,
                       ["turkey_breast|120|g|Proteins", "whole_wheat_tortilla|1|piece|Grains",
                        "avocado|50|g|Fruits", "lettuce|30|g|Vegetables"], 10),
        "dinner": _meal("Beef And Broccoli Stir Fry", 610, 44, 55, 22,
                        ["beef_sirloin|150|g|Proteins", "broccoli|150|g|Vegetables", "brown_rice|70|g|Grains",
                         "soy_sauce|15|ml|Pantry"], 25),
        "snacks": [_meal("Cottage Cheese With Pineapple", 190, 18, 20, 4,
                         ["cottage_cheese|150|g|Dairy", "pineapple|80|g|Fruits"], 2)],
        "workouts": [],
    },
    {
        "breakfast": _meal("Overnight Oats", 430, 20, 60, 12,
                           ["oats|60|g|Grains", "milk|200|ml|Dairy", "chia_seeds|10|g|Pantry",
                            "banana|1|piece|Fruits"], 5),
        "lunch": _meal("Lentil Vegetable Soup", 520, 28, 70, 12,
                       ["lentils|90|g|Proteins", "carrot|80|g|Vegetables", "celery|50|g|Vegetables",
                        "cumin|1|tsp|Spices"], 35),
        "dinner": _meal("Shrimp Tacos", 590, 38, 60, 20,
                        ["shrimp|150|g|Proteins", "corn_tortilla|3|piece|Grains", "cabbage|60|g|Vegetables",
                         "lime|1|piece|Fruits"], 20),
        "snacks": [_meal("Hummus And Carrot Sticks", 200, 7, 22, 9,
                         ["hummus|60|g|Pantry", "carrot|100|g|Vegetables"], 3)],
        "workouts": [{"name": "Strength Training", "category": "strength", "duration": 45,
                      "caloriesBurned": 250, "time": "18:00"}],
    },
    {
        "breakfast": _meal("Peanut Butter Banana Toast", 410, 16, 52, 15,
                           ["whole_grain_bread|2|slice|Grains", "peanut_butter|20|g|Pantry",
                            "banana|1|piece|Fruits"], 5),
        "lunch": _meal("Tuna Nicoise Salad", 560, 40, 30, 30,
                       ["tuna|120|g|Proteins", "eggs|1|piece|Proteins", "green_beans|80|g|Vegetables",
                        "potato|100|g|Vegetables", "olive_oil|10|ml|Pantry"], 20),
        "dinner": _meal("Chicken Tikka With Basmati Rice", 630, 45, 65, 18,
                        ["chicken_thigh|150|g|Proteins", "basmati_rice|70|g|Grains", "yogurt|50|g|Dairy",
                         "garam_masala|1|tsp|Spices"], 35),
        "snacks": [_meal("Mixed Nuts", 180, 5, 7, 15, ["mixed_nuts|30|g|Pantry"], 0)],
        "workouts": [],
    },
    {
        "breakfast": _meal("Berry Protein Smoothie", 380, 30, 45, 8,
                           ["protein_powder|30|g|Pantry", "strawberries|100|g|Fruits", "milk|250|ml|Dairy"], 5),
        "lunch": _meal("Mediterranean Chickpea Salad", 540, 20, 60, 24,
                       ["chickpeas|150|g|Proteins", "cucumber|80|g|Vegetables", "tomato|100|g|Vegetables",
                        "feta_cheese|30|g|Dairy"], 15),
        "dinner": _meal("Pork Tenderloin With Sweet Potato", 600, 42, 55, 20,
                        ["pork_tenderloin|150|g|Proteins", "sweet_potato|200|g|Vegetables",
                         "rosemary|1|tsp|Spices"], 40),
        "snacks": [_meal("Rice Cakes With Ricotta", 190, 9, 24, 6,
                         ["rice_cakes|2|piece|Grains", "ricotta|50|g|Dairy"], 2)],
        "workouts": [{"name": "Evening Yoga", "category": "yoga", "duration": 40,
                      "caloriesBurned": 120, "time": "19:00"}],
    },
    {
        "breakfast": _meal("Huevos Rancheros", 450, 24, 42, 20,
                           ["eggs|2|piece|Proteins", "black_beans|80|g|Proteins", "corn_tortilla|2|piece|Grains",
                            "salsa|50|g|Pantry"], 15),
        "lunch": _meal("Teriyaki Tofu Bowl", 560, 28, 70, 18,
                       ["tofu|150|g|Proteins", "jasmine_rice|70|g|Grains", "edamame|60|g|Vegetables",
                        "teriyaki_sauce|20|ml|Pantry"], 25),
        "dinner": _meal("Turkey Meatballs With Zucchini Noodles", 540, 40, 25, 30,
                        ["ground_turkey|150|g|Proteins", "zucchini|200|g|Vegetables",
                         "marinara_sauce|100|g|Pantry", "parmesan|15|g|Dairy"], 30),
        "snacks": [_meal("Dark Chocolate And Strawberries", 180, 3, 22, 9,
                         ["dark_chocolate|20|g|Pantry", "strawberries|100|g|Fruits"], 0)],
        "workouts": [],
    },
    {
        "breakfast": _meal("Whole Wheat Pancakes", 460, 18, 68, 12,
                           ["whole_wheat_flour|60|g|Grains", "eggs|1|piece|Proteins", "milk|150|ml|Dairy",
                            "maple_syrup|15|ml|Pantry"], 20),
        "lunch": _meal("Grilled Chicken Caesar Salad", 550, 45, 20, 32,
                       ["chicken_breast|140|g|Proteins", "romaine|100|g|Vegetables", "parmesan|20|g|Dairy",
                        "caesar_dressing|20|ml|Pantry"], 20),
        "dinner": _meal("Cod With Roasted Vegetables", 520, 40, 45, 16,
                        ["cod|170|g|Proteins", "bell_pepper|100|g|Vegetables", "red_onion|50|g|Vegetables",
                         "couscous|60|g|Grains"], 30),
        "snacks": [_meal("Edamame", 190, 17, 14, 8, ["edamame|150|g|Vegetables"], 5)],
        "workouts": [{"name": "Cycling", "category": "cycling", "duration": 45,
                      "caloriesBurned": 350, "time": "10:00"}],
    },
]


def mock_week_start(today: date) -> date:
    """Monday of the week containing ``today``."""
    return today - timedelta(days=today.weekday())


def mock_window(today: date) -> PlanWindow:
    """Monday-Sunday window of the current week with the canned workout days."""
    start = mock_week_start(today)
    dates = tuple(start + timedelta(days=offset) for offset in range(len(MOCK_DAYS)))
    return PlanWindow(
        dates=dates,
        active_days=tuple(day_index(d) for d in dates),
        workout_days=tuple(day_index(d) for d, day in zip(dates, MOCK_DAYS) if day["workouts"]),
    )


def build_mock_response(today: date) -> Dict[str, Any]:
    """Canned plan in the same shape a model returns, dated for this week."""
    start = mock_week_start(today)
    week = []
    for offset, day in enumerate(MOCK_DAYS):
        day_date = start + timedelta(days=offset)
        week.append({
            "day": DAY_NAME_BY_INDEX[day_index(day_date)],
            "date": day_date.isoformat(),
            "meals": {
                "breakfast": dict(day["breakfast"]),
                "lunch": dict(day["lunch"]),
                "dinner": dict(day["dinner"]),
                "snacks": [dict(s) for s in day["snacks"]],
            },
            "workouts": [dict(w) for w in day["workouts"]],
        })
    return {"weeklyPlan": week}
