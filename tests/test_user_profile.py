"""Tests for loading user profiles."""
from pathlib import Path

import pytest

from nutriplan.data_layer.exceptions import ValidationError
from nutriplan.data_layer.user_profile import UserProfileLoader, profile_from_dict


EXAMPLE_PROFILE = Path(__file__).resolve().parent.parent / "config" / "user_profile.yaml.example"


def base_data(**overrides):
    data = {"age": 30, "gender": "male", "height": 180, "weight": 80}
    data.update(overrides)
    return data


class TestProfileFromDict:
    """Tests for profile_from_dict."""

    def test_minimal_profile(self):
        profile = profile_from_dict(base_data())
        assert (profile.age, profile.height_cm, profile.weight_kg) == (30, 180.0, 80.0)
        assert profile.path == "healthy"
        assert profile.workout_frequency is None
        assert profile.allergies == []
        assert profile.goals == []

    def test_document_field_names(self):
        profile = profile_from_dict(base_data(
            workoutFrequency="4",
            foodPreferences=["thai"],
            dietaryRestrictions="vegetarian, low sodium",
            gender="Female",
        ))
        assert profile.workout_frequency == 4
        assert profile.food_preferences == ["thai"]
        assert profile.dietary_restrictions == ["vegetarian", "low sodium"]
        assert profile.gender == "female"

    def test_goals_without_title_dropped(self):
        profile = profile_from_dict(base_data(goals=[
            {"title": "Run 5k", "target": 5, "unit": "km"},
            {"description": "no title"},
            "not a goal",
        ]))
        assert [g.title for g in profile.goals] == ["Run 5k"]
        assert profile.goals[0].target == 5

    @pytest.mark.parametrize("field", ["age", "gender", "height", "weight"])
    def test_missing_required(self, field):
        data = base_data()
        del data[field]
        with pytest.raises(ValidationError) as exc:
            profile_from_dict(data)
        assert exc.value.field == field

    @pytest.mark.parametrize("overrides", [
        {"gender": "other"},
        {"age": "thirty"},
        {"weight": -5},
        {"workout_frequency": "often"},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            profile_from_dict(base_data(**overrides))

    def test_not_a_mapping(self):
        with pytest.raises(ValidationError):
            profile_from_dict(["age", 30])


class TestUserProfileLoader:
    """Tests for UserProfileLoader."""

    def test_example_file(self):
        profile = UserProfileLoader(str(EXAMPLE_PROFILE)).load()
        assert profile.path == "lose-weight"
        assert profile.workout_frequency == 3
        assert profile.allergies == ["peanuts"]
        assert profile.goals[0].title == "Run a 10k"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            UserProfileLoader(str(tmp_path / "missing.yaml")).load()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "profile.yaml"
        path.write_text("")
        with pytest.raises(ValidationError):
            UserProfileLoader(str(path)).load()
