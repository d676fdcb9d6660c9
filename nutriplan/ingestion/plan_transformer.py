"""Plan transformer: parsed model output to the canonical weekly plan.

Models return the week in several shapes. This module is the only place
that looks at the shape; everything downstream sees a WeeklyPlan.

ACCEPTED SHAPES:
    {"weeklyPlan": [ {day}, ... ]}                    array of day objects
    {"weeklyPlan": {"2025-01-06": {day}, ...}}        date-keyed object
    {"weeklyPlan": {"monday": {day}, ...}}            day-name-keyed object
    {"mealPlan": {"weeklyPlan": ...}}                 extra wrapper
    {"monday": {day}, ...} / [ {day}, ... ]           no weeklyPlan key
    {"meals": {...}, ...}                             a single day

POST-CONDITIONS:
    - at most 7 days, the earliest dates kept when the model sent more
    - at least one day has a breakfast, lunch or dinner
"""

import logging
import math
import re
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from nutriplan.data_layer.exceptions import ErrorCode, MalformedResponseError
from nutriplan.data_layer.models import (
    DAY_NAME_BY_INDEX,
    INDEX_BY_DAY_NAME,
    MAIN_MEAL_SLOTS,
    DayPlan,
    Macros,
    Meal,
    PlanWindow,
    WeeklyPlan,
    Workout,
    day_index,
)
from nutriplan.ingestion.ingredient_parser import IngredientParser
from nutriplan.nutrition.aggregator import NutritionAggregator
from nutriplan.nutrition.calculator import calculate_workout_calories, round_half_up
from nutriplan.nutrition.hydration import HydrationPolicy


logger = logging.getLogger(__name__)

MAX_PLAN_DAYS = 7

DATE_KEY_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})")
TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")
NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")

MAX_NUMERIC_VALUE = 100_000

DEFAULT_WORKOUT_DURATION = 30
DEFAULT_WORKOUT_CATEGORY = "cardio"

# Used round-robin when the model scheduled no workouts at all
DEFAULT_WORKOUTS = (
    Workout(name="Morning Cardio", category="cardio", duration=30, calories_burned=250),
    Workout(name="Strength Training", category="strength", duration=45, calories_burned=300),
    Workout(name="HIIT Session", category="hiit", duration=25, calories_burned=350),
    Workout(name="Yoga & Flexibility", category="yoga", duration=40, calories_burned=150),
    Workout(name="Core Workout", category="core", duration=20, calories_burned=150),
    Workout(name="Full Body Circuit", category="bodyweight", duration=35, calories_burned=280),
    Workout(name="Running Session", category="running", duration=30, calories_burned=300),
)


def parse_numeric(value: Any, default: int = 0) -> int:
    """Read an int out of a model-written value ("10 minutes", 9.6, "300").

    Missing, non-numeric, NaN or infinite values give ``default``; results
    are clamped to 0..MAX_NUMERIC_VALUE.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        match = NUMBER_PATTERN.search(value)
        if not match:
            return default
        value = float(match.group(0))
    if isinstance(value, int):
        return max(0, min(value, MAX_NUMERIC_VALUE))
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return default
        return round_half_up(max(0.0, min(value, MAX_NUMERIC_VALUE)))
    return default


def normalize_meal_name(name: Any) -> str:
    """Underscores to spaces, Title Case; empty names become "Unnamed Meal"."""
    text = re.sub(r"\s+", " ", str(name or "").replace("_", " ")).strip()
    if not text:
        return "Unnamed Meal"
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split(" "))


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        match = DATE_KEY_PATTERN.match(value.strip())
        if match:
            try:
                return date.fromisoformat(match.group(1))
            except ValueError:
                return None
    return None


class PlanTransformer:
    """Converts parsed model JSON into WeeklyPlan and Meal objects."""

    def __init__(
        self,
        parser: Optional[IngredientParser] = None,
        hydration: Optional[HydrationPolicy] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """Initialize transformer.

        Args:
            parser: Ingredient parser (default IngredientParser())
            hydration: Water intake policy (default HydrationPolicy())
            id_factory: Produces ids for new meals (default uuid4 hex)
        """
        self.parser = parser or IngredientParser()
        self.hydration = hydration or HydrationPolicy()
        self.id_factory = id_factory or (lambda: uuid.uuid4().hex)

    # ------------------------------------------------------------------
    # Weekly plan
    # ------------------------------------------------------------------

    def transform(
        self,
        data: Any,
        window: PlanWindow,
        weight_kg: Optional[float] = None,
    ) -> WeeklyPlan:
        """Build the canonical weekly plan from parsed model output.

        Args:
            data: Result of json.loads on the sanitized model output
            window: Dates and workout days chosen for this plan
            weight_kg: Body weight for workout calorie estimates

        Returns:
            WeeklyPlan with at most 7 days and weekly totals filled

        Raises:
            MalformedResponseError: If no day could be read or no day has a
                main meal
        """
        entries = self._extract_day_entries(data)

        days: Dict[date, DayPlan] = {}
        for position, (key, raw_day) in enumerate(entries):
            day_date = self._resolve_date(key, raw_day, position, window)
            if day_date is None:
                logger.warning("[transform] Could not resolve a date for entry %r, skipping", key)
                continue
            if day_date in days:
                logger.warning("[transform] Duplicate entry for %s, keeping the first", day_date)
                continue
            if day_date not in window.dates:
                logger.warning("[transform] Day %s is outside the requested window", day_date)

            days[day_date] = self._build_day(day_date, raw_day, weight_kg)

        if not days:
            raise MalformedResponseError("Response contained no usable days", code=ErrorCode.EMPTY_PLAN)

        ordered = [days[d] for d in sorted(days)]
        if len(ordered) > MAX_PLAN_DAYS:
            logger.warning(
                "[transform] Model returned %d days, keeping the first %d",
                len(ordered), MAX_PLAN_DAYS,
            )
            ordered = ordered[:MAX_PLAN_DAYS]

        self._distribute_workouts(ordered, window)

        for day in ordered:
            day.water_intake = self.hydration.daily_glasses(day.workouts)

        if not any(day.has_main_meal() for day in ordered):
            raise MalformedResponseError(
                "Plan has no breakfast, lunch or dinner on any day",
                code=ErrorCode.EMPTY_PLAN,
            )

        plan = WeeklyPlan(days={day.date_key: day for day in ordered})
        plan.weekly_macros = NutritionAggregator.aggregate_week(plan)
        return plan

    def _extract_day_entries(self, data: Any) -> List[Tuple[Optional[str], Dict[str, Any]]]:
        """Flatten every accepted shape into (key hint, raw day) pairs."""
        if isinstance(data, dict) and isinstance(data.get("mealPlan"), dict):
            data = data["mealPlan"]
        if isinstance(data, dict) and "weeklyPlan" in data:
            data = data["weeklyPlan"]

        if isinstance(data, list):
            return [(None, day) for day in data if isinstance(day, dict)]

        if not isinstance(data, dict):
            raise MalformedResponseError("Response is not a weekly plan object")

        keyed = [
            (str(key), value) for key, value in data.items()
            if isinstance(value, dict)
            and (_parse_date(key) is not None or str(key).lower() in INDEX_BY_DAY_NAME)
        ]
        if keyed:
            return keyed

        if "meals" in data or any(slot in data for slot in MAIN_MEAL_SLOTS):
            return [(None, data)]

        raise MalformedResponseError("Response contains no recognizable days")

    def _resolve_date(
        self,
        key: Optional[str],
        raw_day: Dict[str, Any],
        position: int,
        window: PlanWindow,
    ) -> Optional[date]:
        """Date for one raw day: its own date, its key, its day name, its position."""
        for candidate in (raw_day.get("date"), key):
            parsed = _parse_date(candidate)
            if parsed is not None:
                return parsed

        for candidate in (raw_day.get("day"), key):
            if isinstance(candidate, str) and candidate.strip().lower() in INDEX_BY_DAY_NAME:
                resolved = window.date_for_day(INDEX_BY_DAY_NAME[candidate.strip().lower()])
                if resolved is not None:
                    return resolved

        if position < len(window.dates):
            logger.debug("[transform] Using position %d to date an unlabeled day", position)
            return window.dates[position]
        return None

    def _build_day(self, day_date: date, raw_day: Dict[str, Any], weight_kg: Optional[float]) -> DayPlan:
        meals = raw_day.get("meals")
        if not isinstance(meals, dict):
            meals = raw_day

        snacks_raw = meals.get("snacks") or []
        if isinstance(snacks_raw, dict):
            snacks_raw = [snacks_raw]
        if not isinstance(snacks_raw, list):
            snacks_raw = []

        return DayPlan(
            date=day_date,
            day_name=DAY_NAME_BY_INDEX[day_index(day_date)],
            breakfast=self.clean_meal(meals.get("breakfast"), "breakfast"),
            lunch=self.clean_meal(meals.get("lunch"), "lunch"),
            dinner=self.clean_meal(meals.get("dinner"), "dinner"),
            snacks=[m for m in (self.clean_meal(s, "snack") for s in snacks_raw) if m is not None],
            workouts=[
                self._clean_workout(w, weight_kg) for w in self._raw_workouts(raw_day) if isinstance(w, dict)
            ],
            water_intake=self.hydration.base_glasses,
        )

    @staticmethod
    def _raw_workouts(raw_day: Dict[str, Any]) -> List[Any]:
        workouts = raw_day.get("workouts") or []
        if isinstance(workouts, dict):
            return [workouts]
        return workouts if isinstance(workouts, list) else []

    # ------------------------------------------------------------------
    # Meals
    # ------------------------------------------------------------------

    def clean_meal(self, raw: Any, category: str) -> Optional[Meal]:
        """Turn one model-written meal into a Meal with safe numeric fields.

        Returns:
            Meal, or None when the slot is empty
        """
        if not isinstance(raw, dict):
            return None
        if not raw.get("name") and raw.get("calories") in (None, "", 0):
            return None

        macros_raw = raw.get("macros") if isinstance(raw.get("macros"), dict) else raw
        macros = Macros(
            protein=parse_numeric(macros_raw.get("protein")),
            carbs=parse_numeric(macros_raw.get("carbs")),
            fat=parse_numeric(macros_raw.get("fat")),
        )

        calories = parse_numeric(raw.get("calories"), default=-1)
        if calories < 0:
            calories = macros.calories

        name = normalize_meal_name(raw.get("name"))
        return Meal(
            id=self.id_factory(),
            name=name,
            category=category,
            calories=calories,
            macros=macros,
            ingredients=self.parser.parse_all(raw.get("ingredients") or [], name),
            prep_time=parse_numeric(raw.get("prepTime", raw.get("prep_time"))),
        )

    def transform_meals(self, data: Any, category: str) -> List[Meal]:
        """Read a list of standalone meals (meal suggestions).

        Accepts ``{"meals": [...]}``, ``{"suggestions": [...]}``, a bare list
        or a single meal object.

        Raises:
            MalformedResponseError: If no meal could be read
        """
        items: Any = data
        if isinstance(data, dict):
            for key in ("meals", "suggestions", "mealSuggestions"):
                if isinstance(data.get(key), list):
                    items = data[key]
                    break
            else:
                items = [data]
        if not isinstance(items, list):
            raise MalformedResponseError("Response is not a list of meals")

        meals = [m for m in (self.clean_meal(item, category) for item in items) if m is not None]
        if not meals:
            raise MalformedResponseError("Response contained no meals", code=ErrorCode.EMPTY_PLAN)
        return meals

    # ------------------------------------------------------------------
    # Workouts
    # ------------------------------------------------------------------

    @staticmethod
    def _clean_workout(raw: Dict[str, Any], weight_kg: Optional[float]) -> Workout:
        category = str(raw.get("category") or DEFAULT_WORKOUT_CATEGORY).strip().lower()
        duration = parse_numeric(raw.get("duration"), DEFAULT_WORKOUT_DURATION) or DEFAULT_WORKOUT_DURATION
        calories = parse_numeric(raw.get("caloriesBurned", raw.get("calories_burned")))
        if not calories and weight_kg:
            calories = calculate_workout_calories(category, duration, weight_kg)

        time = raw.get("time")
        if not (isinstance(time, str) and TIME_PATTERN.match(time.strip())):
            time = None

        return Workout(
            name=str(raw.get("name") or category.title()).strip(),
            category=category,
            duration=duration,
            calories_burned=calories,
            time=time.strip() if time else None,
        )

    @staticmethod
    def _distribute_workouts(days: List[DayPlan], window: PlanWindow):
        """Spread the kept days' workouts evenly over the window's workout days.

        Models tend to pile every workout onto the first day. Collected
        workouts are re-dealt in order; without any, default templates are
        assigned round-robin. Days that are not workout days end up empty.
        A window without workout days leaves every day as the model wrote it.
        """
        if not window.workout_days:
            return

        workouts = [w for day in days for w in day.workouts]
        for day in days:
            day.workouts = []

        by_date = {day.date: day for day in days}
        targets = [by_date[d] for d in window.workout_dates if d in by_date]
        if not targets:
            return

        if workouts:
            for position, workout in enumerate(workouts):
                targets[position * len(targets) // len(workouts)].workouts.append(workout)
            logger.info(
                "[transform] Distributed %d workouts over %d days", len(workouts), len(targets)
            )
        else:
            for slot, day in enumerate(targets):
                template = DEFAULT_WORKOUTS[slot % len(DEFAULT_WORKOUTS)]
                day.workouts = [Workout(
                    name=template.name,
                    category=template.category,
                    duration=template.duration,
                    calories_burned=template.calories_burned,
                )]
            logger.info("[transform] No workouts returned, assigned defaults to %d days", len(targets))
