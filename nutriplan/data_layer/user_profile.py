"""User profile loader for reading nutrition parameters from YAML."""
import yaml
from pathlib import Path
from typing import Any, Dict, List

from nutriplan.data_layer.exceptions import ValidationError
from nutriplan.data_layer.models import Goal, UserNutritionProfile


REQUIRED_FIELDS = ("age", "gender", "height", "weight")


class UserProfileLoader:
    """Loader for a user's nutrition profile from YAML."""

    def __init__(self, yaml_path: str):
        """Initialize user profile loader from YAML file.

        Args:
            yaml_path: Path to YAML file containing the profile
        """
        self.yaml_path = Path(yaml_path)

    def load(self) -> UserNutritionProfile:
        """Load user profile from YAML file.

        Returns:
            UserNutritionProfile object

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValidationError: If required fields are missing or invalid
        """
        with open(self.yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}

        return profile_from_dict(data)


def profile_from_dict(data: Dict[str, Any]) -> UserNutritionProfile:
    """Build a UserNutritionProfile from a plain dictionary.

    Accepts both the YAML layout (``height``/``weight``) and the
    document-store field names (``workoutFrequency``, ``foodPreferences``).

    Raises:
        ValidationError: If a required biometric field is missing or invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("User profile must be a mapping")

    for name in REQUIRED_FIELDS:
        if data.get(name) in (None, ""):
            raise ValidationError(f"User profile is missing '{name}'", field=name)

    gender = str(data["gender"]).strip().lower()
    if gender not in ("male", "female"):
        raise ValidationError(f"Unsupported gender '{data['gender']}'", field="gender")

    try:
        age = int(data["age"])
        height_cm = float(data["height"])
        weight_kg = float(data["weight"])
    except (TypeError, ValueError):
        raise ValidationError("Age, height and weight must be numbers")

    if age <= 0 or height_cm <= 0 or weight_kg <= 0:
        raise ValidationError("Age, height and weight must be positive")

    frequency = data.get("workout_frequency", data.get("workoutFrequency"))
    if frequency in ("", None):
        workout_frequency = None
    else:
        try:
            workout_frequency = int(frequency)
        except (TypeError, ValueError):
            raise ValidationError("Workout frequency must be an integer", field="workout_frequency")

    goals = [
        Goal(
            title=str(goal.get("title", "")),
            description=str(goal.get("description", "")),
            target=goal.get("target"),
            unit=str(goal.get("unit", "")),
        )
        for goal in data.get("goals", []) or []
        if isinstance(goal, dict) and goal.get("title")
    ]

    return UserNutritionProfile(
        age=age,
        gender=gender,
        height_cm=height_cm,
        weight_kg=weight_kg,
        path=str(data.get("path") or "healthy").strip().lower(),
        workout_frequency=workout_frequency,
        allergies=_string_list(data.get("allergies")),
        dietary_restrictions=_string_list(
            data.get("dietary_restrictions", data.get("dietaryRestrictions"))
        ),
        food_preferences=_string_list(
            data.get("food_preferences", data.get("foodPreferences"))
        ),
        dislikes=_string_list(data.get("dislikes")),
        goals=goals,
        user_id=str(data["user_id"]) if data.get("user_id") else None,
    )


def _string_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(item).strip() for item in value if str(item).strip()]
