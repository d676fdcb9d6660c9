"""Plan assembly: the two public operations of the meal-plan engine.

Pipeline for a weekly plan:
    profile -> targets -> plan window + prompt -> model client
    (sanitize -> parse -> transform) -> reuse substitution / macro correction
    -> weekly totals -> WeeklyPlanResult

Every step runs in sequence; only the inventory prefetch fans out. Any
failure aborts the whole generation, and inventory writes happen only after
the plan is complete.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Awaitable, Callable, List, Optional

from nutriplan.data_layer.exceptions import ValidationError
from nutriplan.data_layer.meal_inventory import MealInventory
from nutriplan.data_layer.models import (
    MEAL_CATEGORIES,
    Meal,
    MealCriteria,
    UserNutritionProfile,
    WeeklyPlan,
    WeeklyPlanResult,
)
from nutriplan.ingestion.plan_transformer import PlanTransformer
from nutriplan.ingestion.response_sanitizer import sanitize
from nutriplan.nutrition.aggregator import NutritionAggregator
from nutriplan.nutrition.calculator import compute_targets, round_half_up
from nutriplan.nutrition.paths import normalize_path
from nutriplan.nutrition.slots import all_slot_targets
from nutriplan.planning.mock_plan import build_mock_response, mock_window
from nutriplan.planning.prompt_builder import PromptBuilder, build_plan_window, resolve_start_date
from nutriplan.providers.model_client import ModelClient, parse_json
from nutriplan.scoring.reuse_matcher import ReuseMatcher, TasteProfile


logger = logging.getLogger(__name__)

MOCK_MODEL_NAME = "mock"
DEFAULT_PREP_TIME = 30
SUGGESTION_CALORIE_WINDOW = 0.10  # +/- share of the target for stored suggestions


class WeeklyPlanGenerator:
    """Generates weekly plans and standalone meal suggestions.

    Usage:
        generator = WeeklyPlanGenerator(client, inventory)
        result = await generator.generate_weekly_plan(profile, language="en")
    """

    def __init__(
        self,
        client: ModelClient,
        inventory: MealInventory,
        matcher: Optional[ReuseMatcher] = None,
        transformer: Optional[PlanTransformer] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        mock_delay: float = 3.0,
        today: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize generator.

        Args:
            client: Model client with the backend fallback chain
            inventory: Meal inventory used for reuse and persistence
            matcher: Reuse matcher (default ReuseMatcher(inventory))
            transformer: Plan transformer (default PlanTransformer())
            prompt_builder: Prompt builder (default PromptBuilder())
            mock_delay: Seconds the mock path waits to simulate latency
            today: Returns the local calendar date; injectable for tests
            now: Returns the current time for ``generated_at``
            sleep: Async sleep used by the mock path
        """
        self.client = client
        self.inventory = inventory
        self.matcher = matcher or ReuseMatcher(inventory)
        self.transformer = transformer or PlanTransformer()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.mock_delay = mock_delay
        self._today = today or date.today
        self._now = now or datetime.now
        self._sleep = sleep

    async def generate_weekly_plan(
        self,
        profile: UserNutritionProfile,
        language: str = "en",
        use_mock: bool = False,
        plan_type: str = "weekly",
        start_date: Optional[date] = None,
        plan_template: Optional[str] = None,
    ) -> WeeklyPlanResult:
        """Generate a complete plan for today through the coming Sunday.

        Args:
            profile: User nutrition profile
            language: Language code for meal and ingredient names
            use_mock: Return the canned plan instead of calling a model
            plan_type: "weekly" or "daily" (prompt wording only)
            start_date: Ignored; plans always start today
            plan_template: Optional plan style name

        Returns:
            WeeklyPlanResult

        Raises:
            ValidationError: Missing or invalid profile
            GenerationError: Every backend failed to produce a valid plan
        """
        if profile is None:
            raise ValidationError("User profile is required", field="profile")

        targets = compute_targets(profile, plan_template)
        today = resolve_start_date(start_date, self._today())
        logger.info(
            "[planner] Targets: %d kcal, P:%dg C:%dg F:%dg, %d workouts/week",
            targets.target_calories, targets.macros.protein, targets.macros.carbs,
            targets.macros.fat, targets.workout_frequency,
        )

        if use_mock:
            logger.info("[planner] Using mock plan")
            await self._sleep(self.mock_delay)
            plan = self.transformer.transform(build_mock_response(today), mock_window(today), profile.weight_kg)
            return WeeklyPlanResult(
                weekly_plan=plan,
                language=language,
                generated_at=self._now().isoformat(),
                plan_type=plan_type,
                model=MOCK_MODEL_NAME,
                targets=targets,
            )

        window = build_plan_window(today, targets.workout_frequency)
        prompt = self.prompt_builder.build_weekly_prompt(
            profile, targets, window, language=language, plan_type=plan_type, plan_template=plan_template,
        )

        def parse(text: str) -> WeeklyPlan:
            return self.transformer.transform(parse_json(sanitize(text)), window, profile.weight_kg)

        generation = await self.client.generate(prompt, parse, weekly=True, context="planner")
        plan = generation.value

        slot_targets = all_slot_targets(targets)
        taste = TasteProfile(
            preferences=list(profile.food_preferences),
            dislikes=list(profile.dislikes),
            allergies=list(profile.allergies),
            dietary_restrictions=list(profile.dietary_restrictions),
        )
        pools = await self.matcher.prefetch(slot_targets, taste, language=language)
        outcome = self.matcher.apply(plan, pools, slot_targets)
        plan.weekly_macros = NutritionAggregator.aggregate_week(plan)

        await self._persist(
            outcome.new_meals, outcome.reused_ids, language,
            path=normalize_path(profile.path), dietary_tags=profile.dietary_restrictions,
        )

        logger.info(
            "[planner] Plan ready: %d days from %s (%s)",
            len(plan.days), window.dates[0], generation.model,
        )
        return WeeklyPlanResult(
            weekly_plan=plan,
            language=language,
            generated_at=self._now().isoformat(),
            plan_type=plan_type,
            model=generation.model,
            targets=targets,
            reused_meal_ids=list(outcome.reused_ids),
        )

    async def generate_meal_suggestions(self, criteria: MealCriteria, language: str = "en") -> List[Meal]:
        """Suggest meals for one category, preferring stored meals.

        Stored meals within +/-10% of the target are used first; the rest are
        generated and saved to the inventory. Variation requests
        ("variations of X") are always generated.

        Args:
            criteria: Category, calorie target and dietary constraints
            language: Language code for meal and ingredient names

        Returns:
            Up to ``criteria.number_of_suggestions`` meals

        Raises:
            ValidationError: Invalid criteria
            GenerationError: Generation was needed and every backend failed
        """
        self._validate_criteria(criteria)
        category = criteria.category
        count = criteria.number_of_suggestions
        variation = self.prompt_builder.variation_target(criteria.ai_rules)

        reused: List[Meal] = []
        if not variation:
            taste = TasteProfile(
                preferences=list(criteria.preferences),
                dislikes=list(criteria.dislikes),
                allergies=list(criteria.allergies),
                dietary_restrictions=list(criteria.dietary_restrictions),
            )
            matches = await self.matcher.find_matches(
                category,
                criteria.target_calories,
                taste,
                tolerance=round_half_up(criteria.target_calories * SUGGESTION_CALORIE_WINDOW),
                limit=count,
                language=language,
            )
            reused = [replace(m.record.meal, category=category) for m in matches]
            logger.info("[planner] %d of %d %s suggestions from inventory", len(reused), count, category)

        generated: List[Meal] = []
        remaining = count - len(reused)
        if remaining > 0:
            prompt = self.prompt_builder.build_suggestion_prompt(criteria, remaining, language=language)

            def parse(text: str) -> List[Meal]:
                return self.transformer.transform_meals(parse_json(sanitize(text)), category)

            generation = await self.client.generate(prompt, parse, weekly=False, context="suggestions")
            generated = [self._with_defaults(m, criteria.target_calories) for m in generation.value[:remaining]]

        await self._persist(
            generated, [m.id for m in reused], language,
            path=normalize_path(criteria.path) if criteria.path else None,
            dietary_tags=criteria.dietary_restrictions,
        )
        return reused + generated

    @staticmethod
    def _validate_criteria(criteria: MealCriteria):
        if criteria is None:
            raise ValidationError("Meal criteria are required", field="criteria")
        if criteria.category not in MEAL_CATEGORIES:
            raise ValidationError(
                f"Unknown meal category '{criteria.category}'. Expected one of: {', '.join(MEAL_CATEGORIES)}",
                field="category",
            )
        if criteria.target_calories <= 0:
            raise ValidationError("Target calories must be positive", field="target_calories")
        if criteria.number_of_suggestions <= 0:
            raise ValidationError("Number of suggestions must be positive", field="number_of_suggestions")

    @staticmethod
    def _with_defaults(meal: Meal, target_calories: int) -> Meal:
        return replace(
            meal,
            calories=meal.calories if meal.calories > 0 else target_calories,
            prep_time=meal.prep_time or DEFAULT_PREP_TIME,
        )

    async def _persist(
        self,
        new_meals: List[Meal],
        reused_ids: List[str],
        language: str,
        path: Optional[str],
        dietary_tags: List[str],
    ):
        if new_meals:
            await self.inventory.insert_many(new_meals, language=language, path=path, dietary_tags=dietary_tags)
        if reused_ids:
            await self.inventory.increment_usage(reused_ids)

