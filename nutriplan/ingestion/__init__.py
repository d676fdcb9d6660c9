"""Ingestion layer for turning model replies into plan objects."""

from nutriplan.ingestion.response_sanitizer import (
    sanitize,
    extract_json,
    repair_json,
)

from nutriplan.ingestion.ingredient_parser import (
    IngredientParser,
    ingredient_names,
)

from nutriplan.ingestion.plan_transformer import (
    PlanTransformer,
    MAX_PLAN_DAYS,
    normalize_meal_name,
    parse_numeric,
)

__all__ = [
    # Response sanitizing
    "sanitize",
    "extract_json",
    "repair_json",
    # Ingredient parsing
    "IngredientParser",
    "ingredient_names",
    # Plan transformation
    "PlanTransformer",
    "MAX_PLAN_DAYS",
    "normalize_meal_name",
    "parse_numeric",
]
