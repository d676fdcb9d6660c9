"""Prompt builder: plan window and generation prompts.

The plan always covers today through the coming Sunday (Monday-Sunday
weeks). On a Sunday the plan is that single day.
"""

import logging
import re
from datetime import date, timedelta
from typing import List, Optional

from nutriplan.data_layer.exceptions import ValidationError
from nutriplan.data_layer.models import (
    DAY_NAME_BY_INDEX,
    MealCriteria,
    NutritionTargets,
    PlanWindow,
    UserNutritionProfile,
    day_index,
)
from nutriplan.nutrition.paths import PATH_GUIDELINES, WORKOUT_CATEGORIES, normalize_path
from nutriplan.nutrition.slots import all_slot_targets


logger = logging.getLogger(__name__)

MAX_WINDOW_DAYS = 7

PLAN_TEMPLATE_STYLES = {
    "red-carpet-balance": """PLAN STYLE: Red Carpet Balance
- Focus on balanced whole foods with flexibility (80/20 approach)
- Include satisfying, feel-good meals that are still nutritious
- Allow room for comfort/social meals
- Balance carbs, protein, and fats evenly
- Simple breakfasts, satisfying dinners
- No extreme restrictions or rigid rules""",
    "high-performance-fuel": """PLAN STYLE: High-Performance Fuel
- Emphasize higher protein in every meal
- Use complex carbs for sustained energy
- Include energy-focused snacks (pre/post workout style)
- Recovery-friendly dinners with protein + anti-inflammatory foods
- Nutrient timing: carb-heavier meals around active hours
- Performance-driven ingredient choices""",
    "plant-forward-glow": """PLAN STYLE: Plant-Forward Glow
- Center meals around vegetables, fruits, grains, legumes, plant proteins
- Prioritize fiber-rich, colorful meals
- Include anti-inflammatory ingredients (turmeric, ginger, leafy greens, berries)
- Light but filling recipes
- Optional dairy/eggs allowed unless restricted
- Minimize processed foods""",
    "mindful-living": """PLAN STYLE: Mindful Living
- Focus on gentle, nourishing, easy-to-digest foods
- Comfort-focused meals with simple ingredients
- Routine-friendly portions (consistent meal sizes)
- Avoid heavy, complex, or overly rich meals
- Include calming foods (warm soups, whole grains, herbal-friendly pairings)
- Support digestive health""",
    "modern-comfort": """PLAN STYLE: Modern Comfort
- Familiar, comforting meals made with healthier swaps
- No "forbidden foods": include pizza, burgers, pasta etc. in healthier versions
- Focus on familiar flavors and accessible ingredients
- Zero food guilt approach
- Comfort food with better nutritional balance
- Simple cooking methods, no exotic ingredients""",
}

PREPARATION_WORDS_TEXT = (
    '"chopped", "diced", "minced", "fresh", "dried", "sliced", "grated", '
    '"crushed", "whole", "ground", "cubed", "julienned"'
)

VARIATION_PATTERN = re.compile(r"variations? of [\"']?([^\"']+)[\"']?", re.IGNORECASE)


def resolve_start_date(requested: Optional[date], today: date) -> date:
    """Start date actually used for a plan: always today.

    A caller-supplied date is ignored; plans never start in the past or the
    future.
    """
    if requested is not None and requested != today:
        logger.info("[planner] Ignoring requested start date %s, plans start today (%s)", requested, today)
    return today


def build_plan_window(today: date, workout_frequency: int) -> PlanWindow:
    """Dates from today through the coming Sunday, plus workout days.

    Workouts are spaced with index floor(i * days / workouts), so they never
    cluster at the start of the window.

    Args:
        today: Local calendar date the plan starts on
        workout_frequency: Desired workouts per week

    Returns:
        PlanWindow

    Raises:
        ValidationError: If the window would exceed 7 days
    """
    current = day_index(today)
    if current == 0:
        dates = [today]
    else:
        # today .. Saturday, then Sunday
        dates = [today + timedelta(days=offset) for offset in range(7 - current + 1)]

    if len(dates) > MAX_WINDOW_DAYS:
        raise ValidationError(f"Plan window has {len(dates)} days, at most {MAX_WINDOW_DAYS} allowed")

    active_days = tuple(day_index(d) for d in dates)
    workouts = max(0, min(int(workout_frequency or 0), len(dates)))
    workout_positions = [(i * len(dates)) // workouts for i in range(workouts)]

    return PlanWindow(
        dates=tuple(dates),
        active_days=active_days,
        workout_days=tuple(active_days[p] for p in workout_positions),
    )


def language_instruction(language: str) -> str:
    return f"Write all meal names and ingredient names in this language: {language}."


class PromptBuilder:
    """Renders generation prompts from targets and user data."""

    def build_weekly_prompt(
        self,
        profile: UserNutritionProfile,
        targets: NutritionTargets,
        window: PlanWindow,
        language: str = "en",
        plan_type: str = "weekly",
        plan_template: Optional[str] = None,
    ) -> str:
        """Render the full-week generation prompt.

        Args:
            profile: User nutrition profile
            targets: Targets computed for this generation
            window: Dates and workout days of the plan
            language: Language for meal and ingredient names
            plan_type: "weekly" or "daily"
            plan_template: Optional plan style replacing the goal context

        Returns:
            Prompt text
        """
        path = normalize_path(profile.path)
        macros = targets.macros
        slots = all_slot_targets(targets)
        meal_count = len(window.dates)

        workout_dates = set(window.workout_dates)
        schedule = "\n  ".join(
            f"- {d.isoformat()} ({DAY_NAME_BY_INDEX[day_index(d)]}): "
            f"{'MUST INCLUDE WORKOUT' if d in workout_dates else 'Rest Day (No Workout)'}"
            for d in window.dates
        )

        if plan_template and plan_template in PLAN_TEMPLATE_STYLES:
            goal_context = PLAN_TEMPLATE_STYLES[plan_template]
        elif targets.goal_description:
            goal_context = (
                f"ACTIVE GOAL: {targets.goal_description}\n"
                "  (Adjust meals/macros/workouts to achieve this)"
            )
        else:
            goal_context = "GOAL: Maintain healthy lifestyle"

        focus = ", ".join(targets.workout_types) if targets.workout_types else ", ".join(WORKOUT_CATEGORIES)
        preferences = (
            f"PREFERENCES: {', '.join(profile.food_preferences)}"
            if profile.food_preferences else "No specific preferences"
        )
        preference_rule = (
            "\n  *** CRITICAL: You MUST incorporate these food preferences into the meal plan. "
            "At least 50% of meals should feature or include these preferred foods/cuisines. ***"
            if profile.food_preferences else ""
        )
        dislikes = f"AVOID: {', '.join(profile.dislikes)}" if profile.dislikes else "No specific dislikes"

        frameworks = "\n".join(
            f"- {label}: ~{slots[slot].calories} kcal "
            f"(P:{slots[slot].macros.protein}g, C:{slots[slot].macros.carbs}g, F:{slots[slot].macros.fat}g)"
            for label, slot in (
                ("Breakfast", "breakfast"), ("Lunch", "lunch"), ("Dinner", "dinner"), ("Snacks", "snack"),
            )
        )

        return f"""
You are a precision nutritionist and structured data generator. Create a highly varied {plan_type} plan for a {profile.age}y {profile.gender} ({profile.height_cm:g}cm/{profile.weight_kg:g}kg).
{language_instruction(language)}

====== CRITICAL VARIETY ENFORCEMENT ======
The user will reject this plan if meals are repeated.
1. **NO REPEATS:** You must generate {meal_count * 3} unique distinct meals ({meal_count} breakfasts, {meal_count} lunches, {meal_count} dinners).
2. **PROTEIN ROTATION:** Use a different primary protein source for every Lunch and Dinner.
3. **CUISINE ROTATION:** Every day must feature a different flavor profile.

====== USER PROFILE & CONSTRAINTS ======
TARGETS:
- Daily Calories: {targets.target_calories} kcal (±5%)
- Macros: P:{macros.protein}g, C:{macros.carbs}g, F:{macros.fat}g (±10%)
- Goal: {goal_context}
- Path: {path}
- Guidance: {PATH_GUIDELINES[path]}
- Workouts: {targets.workout_frequency} per week. FOCUS: {focus}

DIETARY RULES (STRICTLY ENFORCE):
- Allergies: {', '.join(profile.allergies) or 'None'}
- Restrictions: {', '.join(profile.dietary_restrictions) or 'None'}
- Dislikes: {dislikes}
- Food Preferences (MUST INCORPORATE): {preferences}{preference_rule}

MEAL FRAMEWORKS (Approximate):
{frameworks}

====== DATA STRUCTURE RULES ======
1. Return ONLY valid JSON. Do not include markdown formatting.
2. Follow this schedule keys exactly:
  {schedule}
3. INGREDIENTS: Format as "ingredient|amount|unit|category" using RAW ingredient names and amounts.
   - CRITICAL: ingredient name MUST be RAW only (no preparation words)
   - DO NOT include: {PREPARATION_WORDS_TEXT}
   - Examples: "ginger" (NOT "chopped fresh ginger"), "chicken_breast" (NOT "diced chicken breast")
   - Category must be one of: Proteins, Vegetables, Fruits, Grains, Dairy, Pantry, Spices
4. MATH: Ensure (Protein*4 + Carbs*4 + Fat*9) matches the calorie total for each meal.

====== OUTPUT SCHEMA ======
{{
  "weeklyPlan": {{
    "YYYY-MM-DD": {{
      "day": "string",
      "date": "YYYY-MM-DD",
      "meals": {{
        "breakfast": {{
          "name": "string",
          "calories": number,
          "macros": {{ "protein": number, "carbs": number, "fat": number }},
          "ingredients": ["string"],
          "prepTime": number
        }},
        "lunch": {{ ...same structure }},
        "dinner": {{ ...same structure }},
        "snacks": [{{ ...same structure }}]
      }},
      "workouts": [{{ "name": "string", "category": "string", "duration": number, "caloriesBurned": number, "time": "HH:MM" }}]
    }}
  }}
}}
"""

    def build_suggestion_prompt(
        self,
        criteria: MealCriteria,
        count: int,
        language: str = "en",
    ) -> str:
        """Render the meal-suggestion prompt.

        Extra rules of the form "variations of X" (or a short bare dish
        name) switch to variation mode, where every meal must be a take on X.

        Args:
            criteria: Meal criteria
            count: Number of meals to ask for
            language: Language for meal and ingredient names

        Returns:
            Prompt text
        """
        requested = self.variation_target(criteria.ai_rules)
        lines: List[str] = []

        if requested:
            lines.append(
                f'You are a professional nutritionist. Generate exactly {count} UNIQUE VARIATIONS of "{requested}".'
            )
            lines.append("")
            lines.append("====== CRITICAL REQUIREMENT ======")
            lines.append(f'ALL {count} meals MUST be variations of "{requested}".')
            lines.append(f'Each meal name MUST include "{requested}" or clearly reference it.')
            lines.append(f'Examples: "Grilled {requested}", "{requested} with Herbs", "Spicy {requested}".')
        else:
            lines.append(
                f"You are a professional nutritionist. Generate exactly {count} unique "
                f"{criteria.category} meal suggestions."
            )

        lines.append("")
        lines.append("## Requirements:")
        lines.append(f"- Category: {criteria.category}")
        lines.append(f"- Target calories per meal: approximately {criteria.target_calories} calories (±10%)")
        lines.append(f"- {language_instruction(language)}")
        if criteria.dietary_restrictions:
            lines.append(f"- Dietary restrictions (MUST follow): {', '.join(criteria.dietary_restrictions)}")
        if criteria.allergies:
            lines.append(f"- Allergies (NEVER include): {', '.join(criteria.allergies)}")
        if criteria.preferences:
            lines.append(f"- Food Preferences (MUST INCORPORATE): {', '.join(criteria.preferences)}")
        if criteria.dislikes:
            lines.append(f"- Dislikes (MUST avoid): {', '.join(criteria.dislikes)}")
        if criteria.ai_rules and not requested:
            lines.append(f"- Additional rules: {criteria.ai_rules}")

        lines.append("")
        lines.append(f'Return a JSON object with a "meals" array containing exactly {count} meal objects:')
        lines.append(f"""{{
  "meals": [
    {{
      "name": "Meal Name",
      "calories": {criteria.target_calories},
      "macros": {{ "protein": 30, "carbs": 50, "fat": 15 }},
      "category": "{criteria.category}",
      "ingredients": [["ingredient_name_with_underscores", "100 g"]],
      "prepTime": 20
    }}
  ]
}}""")
        lines.append("")
        lines.append("## Rules:")
        lines.append('1. "name": Title Case with spaces, no underscores')
        lines.append(f'2. "calories": integer close to {criteria.target_calories}')
        lines.append('3. "macros": grams (integers) that add up to the calories')
        lines.append(f'4. "category": must be "{criteria.category}"')
        lines.append('5. "ingredients": [name, amount] tuples, RAW lowercase names with underscores')
        lines.append(f"   - DO NOT include: {PREPARATION_WORDS_TEXT}")
        lines.append('6. "prepTime": preparation time in minutes (integer)')
        return "\n".join(lines)

    @staticmethod
    def variation_target(ai_rules: Optional[str]) -> Optional[str]:
        """Dish name for variation mode, or None for standard suggestions."""
        if not ai_rules or not ai_rules.strip():
            return None
        rules = ai_rules.strip()
        match = VARIATION_PATTERN.search(rules)
        if match:
            return match.group(1).strip()

        lowered = rules.lower()
        if len(rules) < 50 and not any(word in lowered for word in ("make", "create", "generate")):
            return rules.strip("\"'").strip()
        return None
