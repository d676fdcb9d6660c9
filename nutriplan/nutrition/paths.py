"""Lookup tables keyed by dietary path."""
from typing import Dict, Tuple


PATHS = ("healthy", "lose-weight", "gain-muscle", "keto", "fasting", "running", "custom")
DEFAULT_PATH = "healthy"

# Short forms still sent by older clients
PATH_ALIASES = {
    "lose": "lose-weight",
    "muscle": "gain-muscle",
}

# Activity multipliers for TDEE, keyed by workouts per week
WORKOUT_FREQUENCY_MULTIPLIERS = {
    1: 1.2,
    2: 1.375,
    3: 1.55,
    4: 1.725,
    5: 1.9,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55

# kcal added to TDEE per path
PATH_ADJUSTMENTS = {
    "healthy": 0,
    "running": 0,
    "lose-weight": -500,
    "gain-muscle": 300,
    "keto": -200,
    "fasting": -300,
    "custom": 0,
}

# (protein, carbs, fat) share of calories
MACRO_SPLITS: Dict[str, Tuple[float, float, float]] = {
    "gain-muscle": (0.30, 0.40, 0.30),
    "keto": (0.25, 0.05, 0.70),
    "lose-weight": (0.35, 0.30, 0.35),
    "fasting": (0.30, 0.35, 0.35),
}
DEFAULT_MACRO_SPLIT = (0.25, 0.45, 0.30)

# Workouts per week used when the profile gives no frequency
PATH_WORKOUTS_GOAL = {
    "healthy": 3,
    "running": 3,
    "lose-weight": 5,
    "gain-muscle": 5,
    "keto": 4,
    "fasting": 3,
    "custom": 1,
}

PATH_GUIDELINES = {
    "healthy": "Focus on balanced nutrition with whole foods, variety, and sustainable eating habits.",
    "running": (
        "Focus on balanced nutrition with whole foods, variety, and sustainable eating habits. "
        "Optimize for running performance."
    ),
    "lose-weight": (
        "Create a caloric deficit while maintaining adequate protein and nutrients. "
        "Emphasize filling, low-calorie foods."
    ),
    "gain-muscle": (
        "Prioritize high protein intake, include pre/post workout meals, and ensure adequate "
        "calories for muscle growth."
    ),
    "keto": (
        "Keep carbohydrates under 20-25g daily, focus on healthy fats, moderate protein, and "
        "ketogenic-friendly foods."
    ),
    "fasting": (
        "Design meals for intermittent fasting windows (16:8 or 14:10), with nutrient-dense, "
        "satisfying foods."
    ),
    "custom": "Create a flexible plan that can be customized based on user dietary restrictions.",
}

WORKOUT_CATEGORIES = (
    "cardio", "strength", "flexibility", "balance", "endurance", "yoga", "pilates", "hiit",
    "running", "cycling", "swimming", "walking", "bodyweight", "weights", "core", "stretching",
)

# Approximate MET values per workout category
WORKOUT_METS = {
    "cardio": 8.0,
    "calisthenics": 6.0,
    "climbing": 8.0,
    "skating": 7.0,
    "surfing": 5.0,
    "strength": 5.0,
    "flexibility": 2.5,
    "balance": 2.5,
    "endurance": 7.0,
    "yoga": 3.0,
    "pilates": 3.0,
    "hiit": 11.0,
    "running": 9.8,
    "cycling": 7.5,
    "swimming": 8.0,
    "walking": 3.8,
    "bodyweight": 5.0,
    "weights": 5.0,
    "core": 3.5,
    "stretching": 2.3,
    "basketball": 8.0,
    "football": 8.0,
    "soccer": 8.0,
    "tennis": 7.3,
    "volleyball": 4.0,
    "boxing": 12.0,
    "squash": 12.0,
    "kayaking": 5.0,
}
DEFAULT_MET = 5.0


def normalize_path(path: str) -> str:
    """Map a raw path value to a known path, falling back to "healthy".

    Args:
        path: Path as stored on the profile (may be an alias or unknown)

    Returns:
        One of PATHS
    """
    key = (path or "").strip().lower()
    key = PATH_ALIASES.get(key, key)
    return key if key in PATHS else DEFAULT_PATH
