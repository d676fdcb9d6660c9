"""Tests for the meal inventory and its document serialization."""
import asyncio
import json
from datetime import datetime, timedelta

import pytest

from nutriplan.data_layer.meal_inventory import InMemoryMealInventory
from nutriplan.data_layer.models import Ingredient, Macros, Meal, MealRecord
from nutriplan.data_layer.serialization import meal_from_dict, meal_to_dict, record_from_dict, record_to_dict


NOW = datetime(2025, 1, 6, 12, 0)


def make_meal(meal_id, category="lunch", calories=500):
    return Meal(
        id=meal_id,
        name=f"Meal {meal_id}",
        category=category,
        calories=calories,
        macros=Macros(protein=30, carbs=50, fat=20),
        ingredients=[Ingredient(name="brown_rice", amount="80", unit="g", category="Grains")],
        prep_time=20,
    )


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def inventory(clock):
    return InMemoryMealInventory(clock=clock)


class TestSerialization:
    """Tests for the stored document layout."""

    def test_meal_document_is_camel_case(self):
        data = meal_to_dict(make_meal("m1"))
        assert data["prepTime"] == 20
        assert data["macros"] == {"protein": 30, "carbs": 50, "fat": 20}
        assert data["ingredients"] == [{"name": "brown_rice", "amount": "80", "unit": "g", "category": "Grains"}]

    def test_meal_roundtrip(self):
        meal = make_meal("m1")
        assert meal_from_dict(meal_to_dict(meal)) == meal

    def test_record_roundtrip(self):
        record = MealRecord(meal=make_meal("m1"), usage_count=4, last_used=NOW, language="de",
                            path="lose-weight", dietary_tags=["vegetarian"])
        data = record_to_dict(record)
        assert data["usageCount"] == 4
        assert data["lastUsed"] == "2025-01-06T12:00:00"
        assert record_from_dict(data) == record


class TestInventory:
    """Tests for InMemoryMealInventory."""

    def test_insert_starts_usage_at_one(self, inventory):
        records = asyncio.run(inventory.insert_many([make_meal("m1")], language="es", path="healthy"))

        assert len(inventory) == 1
        assert records[0].usage_count == 1
        assert records[0].last_used == NOW
        assert inventory.get("m1").language == "es"
        assert inventory.get("m1").path == "healthy"

    def test_find_candidates_filters(self, inventory):
        asyncio.run(inventory.insert_many([
            make_meal("a", calories=450),
            make_meal("b", calories=700),
            make_meal("c", category="dinner", calories=500),
        ]))
        asyncio.run(inventory.insert_many([make_meal("d", calories=500)], language="fr"))

        found = asyncio.run(inventory.find_candidates("lunch", 400, 600, language="en"))
        assert [r.meal.id for r in found] == ["a"]

        found = asyncio.run(inventory.find_candidates("lunch", 400, 700))
        assert {r.meal.id for r in found} == {"a", "b", "d"}

    def test_find_candidates_requires_every_restriction(self, inventory):
        asyncio.run(inventory.insert_many([make_meal("plain")]))
        asyncio.run(inventory.insert_many([make_meal("veg")], dietary_tags=["Vegetarian"]))
        asyncio.run(inventory.insert_many([make_meal("vegan")], dietary_tags=["vegetarian", "vegan"]))

        found = asyncio.run(inventory.find_candidates("lunch", 0, 1000, dietary_restrictions=["vegetarian"]))
        assert {r.meal.id for r in found} == {"veg", "vegan"}

        found = asyncio.run(inventory.find_candidates("lunch", 0, 1000, dietary_restrictions=["vegan", "vegetarian"]))
        assert [r.meal.id for r in found] == ["vegan"]

        found = asyncio.run(inventory.find_candidates("lunch", 0, 1000, dietary_restrictions=[]))
        assert len(found) == 3

    def test_candidates_ranked_by_usage_then_recency(self, inventory, clock):
        asyncio.run(inventory.insert_many([make_meal("old"), make_meal("new"), make_meal("popular")]))
        clock.now = NOW + timedelta(days=1)
        asyncio.run(inventory.increment_usage(["new"]))
        asyncio.run(inventory.increment_usage(["popular"]))
        clock.now = NOW + timedelta(days=2)
        asyncio.run(inventory.increment_usage(["popular"]))

        found = asyncio.run(inventory.find_candidates("lunch", 0, 1000))
        assert [r.meal.id for r in found] == ["popular", "new", "old"]

        limited = asyncio.run(inventory.find_candidates("lunch", 0, 1000, limit=1))
        assert [r.meal.id for r in limited] == ["popular"]

    def test_increment_usage(self, inventory, clock):
        asyncio.run(inventory.insert_many([make_meal("m1")]))
        clock.now = NOW + timedelta(hours=3)

        assert asyncio.run(inventory.increment_usage(["m1", "missing"])) == 1
        assert inventory.get("m1").usage_count == 2
        assert inventory.get("m1").last_used == NOW + timedelta(hours=3)

    def test_popular(self, inventory):
        asyncio.run(inventory.insert_many([make_meal("a"), make_meal("b", category="snack")]))
        asyncio.run(inventory.increment_usage(["b"]))
        assert [r.meal.id for r in asyncio.run(inventory.popular())] == ["b", "a"]
        assert [r.meal.id for r in asyncio.run(inventory.popular(category="lunch"))] == ["a"]

    def test_prune_removes_stale_rarely_used(self, inventory, clock):
        asyncio.run(inventory.insert_many([make_meal("stale"), make_meal("loved")]))
        asyncio.run(inventory.increment_usage(["loved", "loved"]))
        clock.now = NOW + timedelta(days=100)

        assert asyncio.run(inventory.prune(older_than_days=90, min_usage=3)) == 1
        assert inventory.get("stale") is None
        assert inventory.get("loved") is not None

    def test_prune_keeps_recent(self, inventory, clock):
        asyncio.run(inventory.insert_many([make_meal("fresh")]))
        clock.now = NOW + timedelta(days=10)
        assert asyncio.run(inventory.prune()) == 0


class TestJsonPersistence:
    """Tests for the JSON-file backed inventory."""

    def test_saved_and_reloaded(self, tmp_path, clock):
        path = tmp_path / "data" / "meals.json"
        first = InMemoryMealInventory(str(path), clock=clock)
        asyncio.run(first.insert_many([make_meal("m1")], language="it"))
        asyncio.run(first.increment_usage(["m1"]))

        stored = json.loads(path.read_text())
        assert stored["meals"][0]["usageCount"] == 2

        second = InMemoryMealInventory(str(path), clock=clock)
        assert len(second) == 1
        assert second.get("m1").language == "it"
        assert second.get("m1").meal == make_meal("m1")

    def test_missing_file_starts_empty(self, tmp_path):
        inventory = InMemoryMealInventory(str(tmp_path / "none.json"))
        assert len(inventory) == 0
        assert not (tmp_path / "none.json").exists()
