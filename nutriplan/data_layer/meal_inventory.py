"""Meal inventory: previously generated meals available for reuse.

The inventory is read-heavy and append-mostly. Near-identical duplicates
written by concurrent generations are tolerated; reuse scoring treats them
as noise rather than an integrity problem.
"""
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from nutriplan.data_layer.models import Meal, MealRecord
from nutriplan.data_layer.serialization import record_from_dict, record_to_dict


logger = logging.getLogger(__name__)


def _tag_set(tags: Optional[List[str]]) -> Set[str]:
    return {t.strip().lower() for t in tags or [] if t and t.strip()}


class MealInventory(ABC):
    """Interface for meal inventory stores.

    A production document store implements the same coroutine methods; the
    planner only talks to this interface.
    """

    @abstractmethod
    async def find_candidates(
        self,
        category: str,
        min_calories: int,
        max_calories: int,
        language: Optional[str] = None,
        limit: Optional[int] = None,
        dietary_restrictions: Optional[List[str]] = None,
    ) -> List[MealRecord]:
        """Find stored meals of a category inside a calorie window.

        Args:
            category: Meal category ("breakfast", "lunch", "dinner", "snack")
            min_calories: Inclusive lower calorie bound
            max_calories: Inclusive upper calorie bound
            language: Only return meals stored for this language, if given
            dietary_restrictions: Only return meals tagged with every one of these
            limit: Maximum number of records to return

        Returns:
            Records ordered by usage count, then most recent use
        """
        pass

    @abstractmethod
    async def insert_many(
        self,
        meals: List[Meal],
        language: str = "en",
        path: Optional[str] = None,
        dietary_tags: Optional[List[str]] = None,
    ) -> List[MealRecord]:
        """Store newly generated meals with a usage count of 1."""
        pass

    @abstractmethod
    async def increment_usage(self, meal_ids: List[str]) -> int:
        """Bump usage count and last-used time; returns records updated."""
        pass

    @abstractmethod
    async def popular(self, category: Optional[str] = None, limit: int = 10) -> List[MealRecord]:
        """Most used meals, optionally restricted to a category."""
        pass

    @abstractmethod
    async def prune(self, older_than_days: int = 90, min_usage: int = 3) -> int:
        """Drop rarely used meals that have not been used recently.

        Returns:
            Number of records removed
        """
        pass


class InMemoryMealInventory(MealInventory):
    """Process-local inventory, optionally persisted to a JSON file.

    Usage:
        inventory = InMemoryMealInventory("meals.json")
        records = await inventory.find_candidates("lunch", 450, 750)
    """

    def __init__(
        self,
        json_path: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize inventory, loading existing records if the file exists.

        Args:
            json_path: JSON file to load from and save to (None keeps memory only)
            clock: Returns the current time; injectable for tests
        """
        self.json_path = Path(json_path) if json_path else None
        self._clock = clock or datetime.now
        self._records: Dict[str, MealRecord] = {}
        if self.json_path is not None and self.json_path.exists():
            self._load()

    def _load(self):
        with open(self.json_path, "r") as f:
            data = json.load(f)
        for item in data.get("meals", []):
            record = record_from_dict(item)
            self._records[record.meal.id] = record
        logger.debug("[inventory] Loaded %d meals from %s", len(self._records), self.json_path)

    def _save(self):
        if self.json_path is None:
            return
        self.json_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"meals": [record_to_dict(r) for r in self._records.values()]}
        with open(self.json_path, "w") as f:
            json.dump(payload, f, indent=2)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, meal_id: str) -> Optional[MealRecord]:
        return self._records.get(meal_id)

    @staticmethod
    def _rank(records: List[MealRecord]) -> List[MealRecord]:
        return sorted(
            records,
            key=lambda r: (r.usage_count, r.last_used or datetime.min),
            reverse=True,
        )

    async def find_candidates(
        self,
        category: str,
        min_calories: int,
        max_calories: int,
        language: Optional[str] = None,
        limit: Optional[int] = None,
        dietary_restrictions: Optional[List[str]] = None,
    ) -> List[MealRecord]:
        required = _tag_set(dietary_restrictions)
        matches = [
            r for r in self._records.values()
            if r.meal.category == category
            and min_calories <= r.meal.calories <= max_calories
            and (language is None or r.language == language)
            and required <= _tag_set(r.dietary_tags)
        ]
        ranked = self._rank(matches)
        return ranked[:limit] if limit is not None else ranked

    async def insert_many(
        self,
        meals: List[Meal],
        language: str = "en",
        path: Optional[str] = None,
        dietary_tags: Optional[List[str]] = None,
    ) -> List[MealRecord]:
        now = self._clock()
        inserted = []
        for meal in meals:
            record = MealRecord(
                meal=meal,
                usage_count=1,
                last_used=now,
                language=language,
                path=path,
                dietary_tags=list(dietary_tags or []),
            )
            self._records[meal.id] = record
            inserted.append(record)
        self._save()
        logger.info("[inventory] Stored %d new meals", len(inserted))
        return inserted

    async def increment_usage(self, meal_ids: List[str]) -> int:
        now = self._clock()
        updated = 0
        for meal_id in meal_ids:
            record = self._records.get(meal_id)
            if record is None:
                continue
            record.usage_count += 1
            record.last_used = now
            updated += 1
        if updated:
            self._save()
        return updated

    async def popular(self, category: Optional[str] = None, limit: int = 10) -> List[MealRecord]:
        records = [
            r for r in self._records.values()
            if category is None or r.meal.category == category
        ]
        return self._rank(records)[:limit]

    async def prune(self, older_than_days: int = 90, min_usage: int = 3) -> int:
        cutoff = self._clock() - timedelta(days=older_than_days)
        stale = [
            meal_id for meal_id, r in self._records.items()
            if r.usage_count < min_usage
            and (r.last_used is None or r.last_used < cutoff)
        ]
        for meal_id in stale:
            del self._records[meal_id]
        if stale:
            self._save()
            logger.info("[inventory] Pruned %d stale meals", len(stale))
        return len(stale)
