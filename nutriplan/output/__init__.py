"""Output formatting for weekly plans."""

from nutriplan.output.formatters import (
    format_plan_dict,
    format_plan_json,
    format_plan_markdown,
    format_meals_json,
    format_ingredient_string,
)

__all__ = [
    "format_plan_dict",
    "format_plan_json",
    "format_plan_markdown",
    "format_meals_json",
    "format_ingredient_string",
]
