"""Data models for the meal-plan engine."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional, Tuple


MEAL_CATEGORIES = ("breakfast", "lunch", "dinner", "snack")
MAIN_MEAL_SLOTS = ("breakfast", "lunch", "dinner")


@dataclass(frozen=True)
class Macros:
    """Macronutrients in whole grams."""

    protein: int = 0
    carbs: int = 0
    fat: int = 0

    @property
    def calories(self) -> int:
        """Energy implied by the macros (4/4/9 kcal per gram)."""
        return self.protein * 4 + self.carbs * 4 + self.fat * 9

    def is_empty(self) -> bool:
        return self.protein == 0 and self.carbs == 0 and self.fat == 0


@dataclass(frozen=True)
class Ingredient:
    """Canonical ingredient tuple (name, amount, unit?, category?)."""

    name: str  # lowercase, underscore separated (e.g., "chicken_breast")
    amount: str  # numeric part as text (e.g., "200"), may be empty
    unit: Optional[str] = None  # e.g., "g", "ml", "piece"
    category: Optional[str] = None  # shopping category (e.g., "Proteins")


@dataclass
class Meal:
    """A single meal, either freshly generated or taken from the inventory."""

    id: str
    name: str
    category: str  # "breakfast", "lunch", "dinner", "snack"
    calories: int
    macros: Macros
    ingredients: List[Ingredient] = field(default_factory=list)
    prep_time: int = 0  # minutes


@dataclass
class MealRecord:
    """A meal as stored in the meal inventory, with reuse bookkeeping."""

    meal: Meal
    usage_count: int = 1
    last_used: Optional[datetime] = None
    language: str = "en"
    path: Optional[str] = None
    dietary_tags: List[str] = field(default_factory=list)


@dataclass
class Workout:
    """A workout scheduled on a plan day."""

    name: str
    category: str
    duration: int  # minutes
    calories_burned: int
    time: Optional[str] = None  # "HH:MM"


@dataclass
class DayPlan:
    """One calendar day of the weekly plan."""

    date: date  # local calendar date
    day_name: str  # "monday" .. "sunday"
    breakfast: Optional[Meal] = None
    lunch: Optional[Meal] = None
    dinner: Optional[Meal] = None
    snacks: List[Meal] = field(default_factory=list)
    workouts: List[Workout] = field(default_factory=list)
    water_intake: int = 8  # glasses

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    def meals(self) -> Iterator[Meal]:
        """Iterate over every meal of the day (main slots first, then snacks)."""
        for slot in MAIN_MEAL_SLOTS:
            meal = getattr(self, slot)
            if meal is not None:
                yield meal
        yield from self.snacks

    def has_main_meal(self) -> bool:
        return any(getattr(self, slot) is not None for slot in MAIN_MEAL_SLOTS)


@dataclass
class MacroTotal:
    """Consumed/total pair for one weekly aggregate."""

    consumed: int = 0
    total: int = 0


@dataclass
class WeeklyMacros:
    """Weekly aggregates; ``consumed`` is filled later by progress tracking."""

    calories: MacroTotal = field(default_factory=MacroTotal)
    protein: MacroTotal = field(default_factory=MacroTotal)
    carbs: MacroTotal = field(default_factory=MacroTotal)
    fat: MacroTotal = field(default_factory=MacroTotal)


DAY_NAME_BY_INDEX = {
    0: "sunday",
    1: "monday",
    2: "tuesday",
    3: "wednesday",
    4: "thursday",
    5: "friday",
    6: "saturday",
}
INDEX_BY_DAY_NAME = {name: index for index, name in DAY_NAME_BY_INDEX.items()}


def day_index(value: date) -> int:
    """Day-of-week index with 0 = Sunday .. 6 = Saturday."""
    return (value.weekday() + 1) % 7


@dataclass(frozen=True)
class PlanWindow:
    """Calendar dates a plan covers and which of them carry workouts.

    Day indices use 0 = Sunday .. 6 = Saturday.
    """

    dates: Tuple[date, ...]
    active_days: Tuple[int, ...]
    workout_days: Tuple[int, ...] = ()

    @property
    def day_name_by_index(self) -> Dict[int, str]:
        return DAY_NAME_BY_INDEX

    @property
    def index_by_day_name(self) -> Dict[str, int]:
        return INDEX_BY_DAY_NAME

    @property
    def workout_dates(self) -> Tuple[date, ...]:
        return tuple(d for d in self.dates if day_index(d) in self.workout_days)

    def date_for_day(self, index: int) -> Optional[date]:
        """Date in the window for a day index, if the window covers that day."""
        if index in self.active_days:
            position = self.active_days.index(index)
            if position < len(self.dates):
                return self.dates[position]
        for value in self.dates:
            if day_index(value) == index:
                return value
        return None


@dataclass
class WeeklyPlan:
    """Date-keyed weekly plan (never more than 7 days)."""

    days: Dict[str, DayPlan] = field(default_factory=dict)
    weekly_macros: WeeklyMacros = field(default_factory=WeeklyMacros)

    def sorted_days(self) -> List[DayPlan]:
        return [self.days[key] for key in sorted(self.days)]

    def all_meals(self) -> Iterator[Meal]:
        for day in self.sorted_days():
            yield from day.meals()


@dataclass
class Goal:
    """A user goal that nudges calorie, macro and workout targets."""

    title: str
    description: str = ""
    target: Optional[float] = None
    unit: str = ""


@dataclass
class UserNutritionProfile:
    """Read-only nutrition parameters of a user."""

    age: int
    gender: str  # "male" or "female"
    height_cm: float
    weight_kg: float
    path: str = "healthy"
    workout_frequency: Optional[int] = None  # workouts per week
    allergies: List[str] = field(default_factory=list)
    dietary_restrictions: List[str] = field(default_factory=list)
    food_preferences: List[str] = field(default_factory=list)
    dislikes: List[str] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    user_id: Optional[str] = None


@dataclass(frozen=True)
class IdealWeight:
    """Healthy weight window in kilograms."""

    min: float
    max: float
    ideal: float


@dataclass(frozen=True)
class NutritionTargets:
    """Targets derived once per generation; never mutated afterwards."""

    bmr: float
    tdee: float
    target_calories: int
    macros: Macros
    ideal_weight: IdealWeight
    workout_frequency: int
    workout_types: tuple = ()
    goal_description: str = ""


@dataclass
class MealCriteria:
    """Request for standalone meal suggestions."""

    category: str
    target_calories: int = 500
    dietary_restrictions: List[str] = field(default_factory=list)
    preferences: List[str] = field(default_factory=list)
    dislikes: List[str] = field(default_factory=list)
    allergies: List[str] = field(default_factory=list)
    number_of_suggestions: int = 3
    ai_rules: Optional[str] = None
    path: Optional[str] = None


@dataclass
class WeeklyPlanResult:
    """Finished plan payload handed to the persistence collaborator."""

    weekly_plan: WeeklyPlan
    language: str
    generated_at: str  # ISO timestamp
    plan_type: str = "weekly"
    model: Optional[str] = None  # model that produced the plan, or "mock"
    targets: Optional[NutritionTargets] = None
    reused_meal_ids: List[str] = field(default_factory=list)
