"""Ingredient parser for turning model-written ingredient entries into tuples."""
import logging
import re
from typing import Any, Iterable, List, Optional, Tuple

from nutriplan.data_layer.models import Ingredient


logger = logging.getLogger(__name__)


class IngredientParser:
    """Parser for the ingredient formats models produce.

    Accepted entry shapes:
        "chicken breast|200|g|Proteins"   (pipe-delimited, 2-4 fields)
        "Chicken Breast (200 g)"          (parenthetical amount)
        ["chicken_breast", "200 g", "Proteins"]
        {"name": "chicken breast", "amount": "200", "unit": "g"}
        "chicken breast"                  (name only)
    """

    VALID_CATEGORIES = ("Proteins", "Vegetables", "Fruits", "Grains", "Dairy", "Pantry", "Spices")

    # Checked in order; first keyword contained in the name wins
    CATEGORY_KEYWORDS = (
        ("Proteins", ("chicken", "beef", "pork", "fish", "shrimp", "salmon", "tuna", "egg",
                      "tofu", "tempeh", "beans", "lentils", "turkey")),
        ("Vegetables", ("onion", "garlic", "tomato", "lettuce", "spinach", "kale", "carrot",
                        "broccoli", "cauliflower", "bell pepper", "cucumber", "zucchini")),
        ("Fruits", ("apple", "banana", "orange", "berry", "grape", "pineapple", "mango",
                    "lemon", "lime")),
        ("Grains", ("rice", "pasta", "bread", "quinoa", "oats", "flour", "tortilla", "wrap")),
        ("Dairy", ("milk", "cheese", "yogurt", "butter", "cream")),
        ("Pantry", ("oil", "salt", "pepper", "sugar", "honey", "vinegar", "soy sauce",
                    "ketchup", "mustard")),
        ("Spices", ("cumin", "paprika", "oregano", "basil", "thyme", "rosemary", "cinnamon",
                    "nutmeg")),
    )

    PREPARATION_WORDS = (
        "chopped", "diced", "minced", "fresh", "dried", "sliced", "grated", "crushed",
        "whole", "ground", "cubed", "julienned",
    )

    SALAD_VEGETABLES = ("cucumber", "tomato", "carrot", "bell_pepper", "lettuce")
    COOKED_VEGETABLES = ("carrot", "broccoli", "cauliflower", "bell_pepper", "zucchini")

    PARENTHETICAL_PATTERN = re.compile(r"^(.+?)\s*\(([^)]+)\)")
    PARENTHESES_PATTERN = re.compile(r"\([^)]*\)")
    AMOUNT_PATTERN = re.compile(r"^(\d+(?:[.,/]\d+)?)\s*(.*)$")

    def parse_all(self, entries: Any, meal_name: str = "") -> List[Ingredient]:
        """Parse every ingredient entry of one meal.

        Args:
            entries: List of ingredient entries in any accepted shape
            meal_name: Meal name, used to choose the mixed-vegetable set

        Returns:
            List of Ingredient tuples (entries without a name are dropped)
        """
        if not isinstance(entries, list):
            return []

        parsed: List[Ingredient] = []
        for entry in entries:
            ingredient = self.parse(entry)
            if ingredient is None:
                continue
            parsed.extend(self.expand_mixed_vegetables(ingredient, meal_name))
        return parsed

    def parse(self, entry: Any) -> Optional[Ingredient]:
        """Parse a single ingredient entry.

        Returns:
            Ingredient, or None when the entry carries no usable name
        """
        name, amount, unit, category = self._split_entry(entry)
        name = self.normalize_name(name)
        if not name:
            return None

        if not unit:
            amount, unit = self.split_amount(amount)

        return Ingredient(
            name=name,
            amount=amount,
            unit=unit or None,
            category=self.resolve_category(name, category),
        )

    def _split_entry(self, entry: Any) -> Tuple[str, str, str, Optional[str]]:
        if isinstance(entry, dict):
            return (
                str(entry.get("name") or ""),
                str(entry.get("amount") or ""),
                str(entry.get("unit") or ""),
                entry.get("category"),
            )

        if isinstance(entry, (list, tuple)):
            values = [str(v) if v is not None else "" for v in entry]
            if len(values) >= 4:
                return values[0], values[1], values[2], values[3]
            if len(values) == 3:
                # [name, "200 g", category]
                return values[0], values[1], "", values[2]
            if len(values) == 2:
                return values[0], values[1], "", None
            if len(values) == 1:
                return values[0], "", "", None
            return "", "", "", None

        text = str(entry or "").strip()
        if "|" in text:
            parts = [p.strip() for p in self.PARENTHESES_PATTERN.sub("", text).split("|")]
            if len(parts) >= 4:
                return parts[0], parts[1], parts[2], parts[3]
            if len(parts) == 3:
                return parts[0], parts[1], parts[2], None
            return parts[0], parts[1], "", None

        match = self.PARENTHETICAL_PATTERN.match(text)
        if match:
            return match.group(1), match.group(2).strip(), "", None
        return text, "", "", None

    def normalize_name(self, name: str) -> str:
        """Lowercase, underscore-separated name without preparation words.

        Args:
            name: Raw ingredient name (e.g., "Chopped Fresh Ginger")

        Returns:
            Normalized name (e.g., "ginger")
        """
        cleaned = self.PARENTHESES_PATTERN.sub("", name or "").strip().lower()
        words = [
            w for w in re.split(r"[\s_]+", cleaned)
            if w and w.strip(",") not in self.PREPARATION_WORDS
        ]
        return "_".join(w.strip(",") for w in words if w.strip(","))

    def split_amount(self, amount: str) -> Tuple[str, str]:
        """Split "200 g" into ("200", "g"); non-numeric text stays as the amount."""
        text = (amount or "").strip()
        match = self.AMOUNT_PATTERN.match(text)
        if match:
            return match.group(1).replace(",", "."), match.group(2).strip()
        return text, ""

    def resolve_category(self, name: str, category: Optional[str]) -> Optional[str]:
        """Keep a valid provided category, else look one up by keyword."""
        if category:
            provided = str(category).strip().capitalize()
            if provided in self.VALID_CATEGORIES:
                return provided
            logger.debug("[ingredients] Ignoring invalid category %r for %s", category, name)

        readable = name.replace("_", " ")
        for shopping_category, keywords in self.CATEGORY_KEYWORDS:
            if any(keyword in readable for keyword in keywords):
                return shopping_category
        return None

    def expand_mixed_vegetables(self, ingredient: Ingredient, meal_name: str = "") -> List[Ingredient]:
        """Replace a "mixed vegetables" entry with five concrete vegetables.

        The amount is split evenly; salads get raw salad vegetables, other
        meals get cooking vegetables.
        """
        if "mixed_veg" not in ingredient.name:
            return [ingredient]

        lowered = (meal_name or "").lower()
        is_salad = "salad" in lowered or "green" in lowered
        vegetables = self.SALAD_VEGETABLES if is_salad else self.COOKED_VEGETABLES

        amount = ingredient.amount
        try:
            share = float(ingredient.amount) / len(vegetables)
            amount = f"{share:.1f}".rstrip("0").rstrip(".")
        except ValueError:
            pass

        return [
            Ingredient(name=veg, amount=amount, unit=ingredient.unit, category="Vegetables")
            for veg in vegetables
        ]


def ingredient_names(ingredients: Iterable[Ingredient]) -> List[str]:
    """Readable ingredient names ("chicken breast") in order."""
    return [i.name.replace("_", " ") for i in ingredients]
