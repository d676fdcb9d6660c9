"""Runtime settings and component wiring.

Settings come from a YAML file, the environment, or both (environment wins
for secrets). A ``.env`` file in the working directory is loaded first.
"""

import logging
import os
from dataclasses import MISSING, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from nutriplan.data_layer.exceptions import ValidationError
from nutriplan.data_layer.meal_inventory import InMemoryMealInventory, MealInventory
from nutriplan.ingestion.plan_transformer import PlanTransformer
from nutriplan.nutrition.hydration import HydrationPolicy
from nutriplan.planning.meal_planner import WeeklyPlanGenerator
from nutriplan.providers.gemini_provider import GeminiProvider
from nutriplan.providers.model_client import ModelClient
from nutriplan.providers.ollama_provider import OllamaProvider
from nutriplan.providers.retry_policy import RetryPolicy
from nutriplan.providers.text_provider import TextGenerationProvider
from nutriplan.scoring.reuse_matcher import ReuseMatcher


logger = logging.getLogger(__name__)

# environment variable -> settings field
ENV_FIELDS = {
    "GEMINI_API_KEY": "gemini_api_key",
    "OLLAMA_BASE_URL": "ollama_base_url",
    "OLLAMA_MODEL": "ollama_model",
    "NUTRIPLAN_MAX_ATTEMPTS": "max_attempts",
    "NUTRIPLAN_BASE_DELAY": "base_delay",
}


@dataclass
class Settings:
    """Tunable values of the plan engine."""

    # Cloud backend
    gemini_api_key: Optional[str] = None
    gemini_models: List[str] = field(default_factory=lambda: list(GeminiProvider.DEFAULT_MODEL_PRIORITY))
    catalog_ttl: float = 600.0
    weekly_timeout: float = 120.0
    single_timeout: float = 60.0

    # Local backend
    ollama_enabled: bool = True
    ollama_base_url: str = OllamaProvider.DEFAULT_BASE_URL
    ollama_model: str = OllamaProvider.DEFAULT_MODEL
    ollama_weekly_timeout: float = 600.0
    ollama_single_timeout: float = 300.0

    # Retry
    max_attempts: int = 3
    base_delay: float = 2.0

    # Reuse
    reuse_tolerance: int = 150
    reuse_pool_size: int = 10
    reuse_ratio: float = 1.0

    # Planning
    suggestion_count: int = 3
    mock_delay: float = 3.0

    # Hydration
    water_base_glasses: int = 8
    water_max_glasses: int = 12
    water_calories_per_glass: int = 150

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Check value ranges.

        Raises:
            ValidationError: If a value is out of range
        """
        if self.max_attempts < 1:
            raise ValidationError("max_attempts must be at least 1", field="max_attempts")
        if self.base_delay < 0:
            raise ValidationError("base_delay cannot be negative", field="base_delay")
        for name in ("catalog_ttl", "weekly_timeout", "single_timeout",
                     "ollama_weekly_timeout", "ollama_single_timeout"):
            if getattr(self, name) <= 0:
                raise ValidationError(f"{name} must be positive", field=name)
        if not 0.0 <= self.reuse_ratio <= 1.0:
            raise ValidationError("reuse_ratio must be between 0 and 1", field="reuse_ratio")
        if self.reuse_tolerance < 0 or self.reuse_pool_size < 1:
            raise ValidationError("Invalid reuse settings", field="reuse")
        if self.suggestion_count < 1:
            raise ValidationError("suggestion_count must be at least 1", field="suggestion_count")
        if self.water_max_glasses < self.water_base_glasses or self.water_calories_per_glass <= 0:
            raise ValidationError("Invalid hydration settings", field="water")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Build settings from a mapping, coercing values to the field types.

        Unknown keys are ignored with a warning.

        Raises:
            ValidationError: If a value cannot be converted
        """
        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            if key not in known:
                logger.warning("Ignoring unknown setting '%s'", key)
                continue
            values[key] = _coerce(key, value, cls._default_of(known[key]))
        return cls(**values)

    @classmethod
    def from_env(cls, base: Optional[Dict[str, Any]] = None, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from environment variables (after loading ``.env``).

        Args:
            base: Values to start from (e.g. a parsed settings file)
            dotenv_path: Explicit .env file; default searches the working directory

        Returns:
            Settings
        """
        load_dotenv(dotenv_path)
        data = dict(base or {})
        for env_var, name in ENV_FIELDS.items():
            value = os.environ.get(env_var)
            if value:
                data[name] = value
        return cls.from_dict(data)

    @classmethod
    def from_yaml(cls, yaml_path: str, use_env: bool = True) -> "Settings":
        """Load settings from a YAML file.

        Args:
            yaml_path: Path to the settings file
            use_env: Let environment variables override file values

        Raises:
            FileNotFoundError: If the file does not exist
            ValidationError: If the file is not a mapping or a value is invalid
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValidationError(f"Settings file {path} must contain a mapping")
        if use_env:
            return cls.from_env(base=data)
        return cls.from_dict(data)

    @staticmethod
    def _default_of(f) -> Any:
        if f.default_factory is not MISSING:
            return f.default_factory()
        return f.default

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def build_providers(self) -> List[TextGenerationProvider]:
        """Backends in fallback order: Gemini (when a key is set), then Ollama."""
        providers: List[TextGenerationProvider] = []
        if self.gemini_api_key:
            providers.append(GeminiProvider(
                api_key=self.gemini_api_key,
                model_priority=self.gemini_models,
                catalog_ttl=self.catalog_ttl,
                weekly_timeout=self.weekly_timeout,
                single_timeout=self.single_timeout,
            ))
        else:
            logger.warning("GEMINI_API_KEY not set, using the local model server only")
        if self.ollama_enabled:
            providers.append(OllamaProvider(
                base_url=self.ollama_base_url,
                model=self.ollama_model,
                weekly_timeout=self.ollama_weekly_timeout,
                single_timeout=self.ollama_single_timeout,
            ))
        return providers

    def build_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, base_delay=self.base_delay)

    def build_hydration(self) -> HydrationPolicy:
        return HydrationPolicy(
            base_glasses=self.water_base_glasses,
            max_glasses=self.water_max_glasses,
            calories_per_glass=self.water_calories_per_glass,
        )

    def build_generator(
        self,
        inventory: Optional[MealInventory] = None,
        providers: Optional[List[TextGenerationProvider]] = None,
    ) -> WeeklyPlanGenerator:
        """Wire a WeeklyPlanGenerator from these settings.

        Args:
            inventory: Meal inventory (default: in-memory, not persisted)
            providers: Backends to use instead of ``build_providers()``
        """
        inventory = inventory if inventory is not None else InMemoryMealInventory()
        client = ModelClient(providers if providers is not None else self.build_providers(), self.build_policy())
        return WeeklyPlanGenerator(
            client=client,
            inventory=inventory,
            matcher=ReuseMatcher(
                inventory,
                tolerance=self.reuse_tolerance,
                pool_size=self.reuse_pool_size,
                reuse_ratio=self.reuse_ratio,
            ),
            transformer=PlanTransformer(hydration=self.build_hydration()),
            mock_delay=self.mock_delay,
        )


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Convert a raw setting to the type of its default; null keeps the default."""
    if value is None:
        return default
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
        if isinstance(default, list):
            if isinstance(value, str):
                return [item.strip() for item in value.split(",") if item.strip()]
            return [str(item) for item in value]
        return str(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid value for {name}: {value!r}", field=name) from e
