"""Meal reuse: substitute stored meals for freshly generated ones.

Candidates are fetched once per category (the four queries run
concurrently), scored, and then dealt round-robin over the week's slots.
This is a greedy assignment, not an optimal one: slot order is arbitrary
and a good-enough substitute is all that is needed.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Set

from nutriplan.data_layer.meal_inventory import MealInventory
from nutriplan.data_layer.models import MEAL_CATEGORIES, Meal, MealRecord, WeeklyPlan
from nutriplan.nutrition.slots import SlotTarget
from nutriplan.scoring.meal_scorer import MealContext, MealScorer, correct_macros


logger = logging.getLogger(__name__)


@dataclass
class ScoredCandidate:
    record: MealRecord
    score: float


@dataclass
class TasteProfile:
    """User inputs that affect candidate selection and scoring."""

    preferences: List[str] = field(default_factory=list)
    dislikes: List[str] = field(default_factory=list)
    allergies: List[str] = field(default_factory=list)
    dietary_restrictions: List[str] = field(default_factory=list)


@dataclass
class ReuseOutcome:
    """What substitution did to a plan."""

    reused_ids: List[str] = field(default_factory=list)
    new_meals: List[Meal] = field(default_factory=list)


class ReuseMatcher:
    """Finds and applies inventory matches for meal slots."""

    def __init__(
        self,
        inventory: MealInventory,
        scorer: Optional[MealScorer] = None,
        tolerance: int = 150,
        pool_size: int = 10,
        reuse_ratio: float = 1.0,
    ):
        """Initialize matcher.

        Args:
            inventory: Meal inventory to search
            scorer: Candidate scorer (default MealScorer())
            tolerance: Calorie window (+/-) used for weekly slots
            pool_size: Candidates kept per category
            reuse_ratio: Share of slots (0..1) that may take a stored meal
        """
        if not 0.0 <= reuse_ratio <= 1.0:
            raise ValueError("reuse_ratio must be between 0 and 1")
        self.inventory = inventory
        self.scorer = scorer or MealScorer()
        self.tolerance = tolerance
        self.pool_size = pool_size
        self.reuse_ratio = reuse_ratio

    async def find_matches(
        self,
        category: str,
        target_calories: int,
        taste: TasteProfile,
        tolerance: Optional[int] = None,
        limit: Optional[int] = None,
        language: Optional[str] = None,
        exclude_ids: Optional[Set[str]] = None,
    ) -> List[ScoredCandidate]:
        """Best stored meals for a category and calorie target.

        Only meals tagged with every dietary restriction are considered.
        Allergen matches and net-negative scores are dropped.

        Args:
            category: Meal category
            target_calories: Calorie target of the slot
            taste: Preferences, dislikes, allergies and dietary restrictions
            tolerance: Calorie window (+/-), default ``self.tolerance``
            limit: Maximum results, default ``self.pool_size``
            language: Restrict to meals stored for this language
            exclude_ids: Meal ids that must not be returned

        Returns:
            Candidates sorted by descending score
        """
        window = self.tolerance if tolerance is None else tolerance
        records = await self.inventory.find_candidates(
            category,
            max(0, target_calories - window),
            target_calories + window,
            language=language,
            dietary_restrictions=taste.dietary_restrictions,
        )

        context = MealContext(
            target_calories=target_calories,
            tolerance=window,
            preferences=taste.preferences,
            dislikes=taste.dislikes,
            allergies=taste.allergies,
        )

        scored = []
        for record in records:
            if exclude_ids and record.meal.id in exclude_ids:
                continue
            score = self.scorer.score(record, context)
            if score is None or score < 0:
                continue
            scored.append(ScoredCandidate(record=record, score=score))

        scored.sort(key=lambda c: c.score, reverse=True)
        return scored[:limit if limit is not None else self.pool_size]

    async def prefetch(
        self,
        slot_targets: Dict[str, SlotTarget],
        taste: TasteProfile,
        language: Optional[str] = None,
    ) -> Dict[str, List[ScoredCandidate]]:
        """Candidate pool per category, all categories queried concurrently."""
        categories = [c for c in MEAL_CATEGORIES if c in slot_targets]
        pools = await asyncio.gather(*(
            self.find_matches(c, slot_targets[c].calories, taste, language=language)
            for c in categories
        ))
        result = dict(zip(categories, pools))
        logger.info(
            "[reuse] Candidate pools: %s",
            ", ".join(f"{c}={len(p)}" for c, p in result.items()),
        )
        return result

    def apply(
        self,
        plan: WeeklyPlan,
        pools: Dict[str, List[ScoredCandidate]],
        slot_targets: Dict[str, SlotTarget],
    ) -> ReuseOutcome:
        """Substitute pooled meals into the plan's slots, day by day.

        Each stored meal is used at most once per week. Slots without a
        substitute keep the generated meal with corrected macros.
        """
        outcome = ReuseOutcome()
        used: Set[str] = set()
        cursors = {category: 0 for category in pools}
        slot_counter = 0

        def next_candidate(category: str) -> Optional[MealRecord]:
            pool = pools.get(category, [])
            while cursors.get(category, 0) < len(pool):
                candidate = pool[cursors[category]]
                cursors[category] += 1
                if candidate.record.meal.id not in used:
                    return candidate.record
            return None

        def choose(meal: Meal, category: str) -> Meal:
            nonlocal slot_counter
            eligible = self._slot_eligible(slot_counter)
            slot_counter += 1

            record = next_candidate(category) if eligible else None
            if record is not None:
                used.add(record.meal.id)
                outcome.reused_ids.append(record.meal.id)
                logger.debug("[reuse] %s: %s -> %s", category, meal.name, record.meal.name)
                return replace(record.meal, category=category)

            generated = correct_macros(meal, slot_targets[category]) if category in slot_targets else meal
            used.add(generated.id)
            outcome.new_meals.append(generated)
            return generated

        for day in plan.sorted_days():
            for category in ("breakfast", "lunch", "dinner"):
                meal = getattr(day, category)
                if meal is not None:
                    setattr(day, category, choose(meal, category))
            day.snacks = [choose(snack, "snack") for snack in day.snacks]

        logger.info(
            "[reuse] Reused %d stored meals, kept %d generated meals",
            len(outcome.reused_ids), len(outcome.new_meals),
        )
        return outcome

    def _slot_eligible(self, index: int) -> bool:
        """Spread the reuse ratio evenly over slots (1.0 = every slot)."""
        return math.floor((index + 1) * self.reuse_ratio) > math.floor(index * self.reuse_ratio)
