"""Planning module for prompt building and weekly plan assembly."""

from .meal_planner import WeeklyPlanGenerator
from .prompt_builder import PromptBuilder, build_plan_window, PLAN_TEMPLATE_STYLES

__all__ = [
    "WeeklyPlanGenerator",
    "PromptBuilder",
    "build_plan_window",
    "PLAN_TEMPLATE_STYLES",
]
