#!/usr/bin/env python3
"""Command-line interface for the nutriplan weekly plan generator."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from nutriplan.config import Settings
from nutriplan.data_layer.exceptions import GenerationError, PlanGenerationError
from nutriplan.data_layer.meal_inventory import InMemoryMealInventory
from nutriplan.data_layer.models import MEAL_CATEGORIES, MealCriteria
from nutriplan.data_layer.user_profile import UserProfileLoader
from nutriplan.output.formatters import format_meals_json, format_plan_json, format_plan_markdown


def _split_list(value: Optional[str]) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate weekly meal and workout plans from nutrition targets"
    )
    parser.add_argument(
        "--settings",
        type=str,
        help="Optional settings YAML file (default: environment / .env only)"
    )
    parser.add_argument(
        "--inventory",
        type=str,
        help="Meal inventory JSON file used for reuse and saving new meals"
    )
    parser.add_argument(
        "--language",
        type=str,
        default="en",
        help="Language for meal and ingredient names (default: en)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a plan for today through Sunday")
    generate.add_argument(
        "--profile",
        type=str,
        default="config/user_profile.yaml",
        help="Path to user profile YAML file (default: config/user_profile.yaml)"
    )
    generate.add_argument("--mock", action="store_true", help="Use the canned plan instead of a model")
    generate.add_argument("--template", type=str, help="Plan style (e.g. plant-forward-glow)")
    generate.add_argument(
        "--format",
        choices=["markdown", "json"],
        default="markdown",
        help="Output format (default: markdown)"
    )
    generate.add_argument("--output", type=str, help="Optional file path to save output")

    suggest = subparsers.add_parser("suggest", help="Suggest meals for one category")
    suggest.add_argument("--category", choices=MEAL_CATEGORIES, required=True)
    suggest.add_argument("--calories", type=int, default=500, help="Target calories per meal (default: 500)")
    suggest.add_argument("--count", type=int, help="Number of suggestions (default from settings)")
    suggest.add_argument("--restrictions", type=str, help="Comma-separated dietary restrictions")
    suggest.add_argument("--preferences", type=str, help="Comma-separated food preferences")
    suggest.add_argument("--dislikes", type=str, help="Comma-separated dislikes")
    suggest.add_argument("--allergies", type=str, help="Comma-separated allergies")
    suggest.add_argument("--rules", type=str, help='Extra rules, e.g. "variations of chicken curry"')
    suggest.add_argument("--output", type=str, help="Optional file path to save output")
    return parser


def _load_settings(args) -> Settings:
    if args.settings:
        return Settings.from_yaml(args.settings)
    return Settings.from_env()


def _emit(text: str, output: Optional[str]):
    if output:
        Path(output).write_text(text)
        print(f"Output saved to {output}", file=sys.stderr)
    else:
        print(text)


async def run_generate(args, settings: Settings) -> int:
    profile_path = Path(args.profile)
    if not profile_path.exists():
        print(f"Error: User profile file not found: {profile_path}", file=sys.stderr)
        print(f"Hint: Copy config/user_profile.yaml.example to {profile_path} and customize it", file=sys.stderr)
        return 1

    print(f"Loading user profile from {profile_path}...", file=sys.stderr)
    profile = UserProfileLoader(str(profile_path)).load()

    generator = settings.build_generator(inventory=InMemoryMealInventory(args.inventory))
    print("Generating plan...", file=sys.stderr)
    result = await generator.generate_weekly_plan(
        profile,
        language=args.language,
        use_mock=args.mock,
        plan_template=args.template,
    )

    if args.format == "json":
        _emit(format_plan_json(result), args.output)
    else:
        _emit(format_plan_markdown(result), args.output)
    print(f"\nPlan with {len(result.weekly_plan.days)} days generated ({result.model})", file=sys.stderr)
    return 0


async def run_suggest(args, settings: Settings) -> int:
    criteria = MealCriteria(
        category=args.category,
        target_calories=args.calories,
        dietary_restrictions=_split_list(args.restrictions),
        preferences=_split_list(args.preferences),
        dislikes=_split_list(args.dislikes),
        allergies=_split_list(args.allergies),
        number_of_suggestions=args.count or settings.suggestion_count,
        ai_rules=args.rules,
    )
    generator = settings.build_generator(inventory=InMemoryMealInventory(args.inventory))
    meals = await generator.generate_meal_suggestions(criteria, language=args.language)
    _emit(format_meals_json(meals), args.output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = _load_settings(args)
        if args.command == "generate":
            return asyncio.run(run_generate(args, settings))
        return asyncio.run(run_suggest(args, settings))
    except GenerationError as e:
        print(f"Error: {e}", file=sys.stderr)
        for attempt in e.attempts:
            print(
                f"   - {attempt.backend} {attempt.model} #{attempt.attempt}: {attempt.error_code}",
                file=sys.stderr,
            )
        return 2
    except (PlanGenerationError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
