"""Cloud text-generation backend using the Gemini API.

Model variants are discovered through the REST model catalog and cached for
a bounded time; generation goes through the google-generativeai SDK.
"""

import asyncio
import logging
import os
import time
from typing import Callable, List, Optional, Sequence

import google.generativeai as genai
import requests
from google.api_core import exceptions as google_exceptions

from nutriplan.data_layer.exceptions import (
    ErrorCode,
    FatalBackendError,
    MalformedResponseError,
    TransientBackendError,
)
from nutriplan.providers.text_provider import TextGenerationProvider


logger = logging.getLogger(__name__)


class GeminiProvider(TextGenerationProvider):
    """Gemini backend with a cached, priority-sorted model catalog.

    Usage:
        provider = GeminiProvider(api_key="your_key")
        # or
        provider = GeminiProvider.from_env()  # reads GEMINI_API_KEY

        models = await provider.list_models()
        text = await provider.generate(models[0], prompt, weekly=True)
    """

    name = "gemini"

    BASE_URL = "https://generativelanguage.googleapis.com/v1"

    DEFAULT_MODEL_PRIORITY = (
        "gemini-2.5-flash",
        "gemini-2.5-pro",
        "gemini-2.0-flash",
        "gemini-2.0-flash-001",
        "gemini-2.5-flash-lite",
    )

    CATALOG_TIMEOUT = 5
    WEEKLY_MAX_TOKENS = 8192
    SINGLE_MAX_TOKENS = 4096

    def __init__(
        self,
        api_key: str,
        model_priority: Optional[Sequence[str]] = None,
        catalog_ttl: float = 600.0,
        weekly_timeout: float = 120.0,
        single_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize Gemini backend.

        Args:
            api_key: Gemini API key
            model_priority: Preferred model order (best first)
            catalog_ttl: Seconds the model catalog stays cached
            weekly_timeout: Per-call timeout for full-week generation
            single_timeout: Per-call timeout for single-item generation
            clock: Monotonic clock, replaced in tests

        Raises:
            ValueError: If API key is empty
        """
        if not api_key or not api_key.strip():
            raise ValueError("API key is required. Get one at https://aistudio.google.com/app/apikey")
        self.api_key = api_key.strip()
        self.model_priority = tuple(model_priority or self.DEFAULT_MODEL_PRIORITY)
        self.catalog_ttl = catalog_ttl
        self.weekly_timeout = weekly_timeout
        self.single_timeout = single_timeout
        self._clock = clock
        self._cached_models: Optional[List[str]] = None
        self._cached_at = 0.0
        genai.configure(api_key=self.api_key)

    @classmethod
    def from_env(cls, env_var: str = "GEMINI_API_KEY", **kwargs) -> "GeminiProvider":
        """Create backend from environment variable.

        Raises:
            ValueError: If environment variable not set
        """
        api_key = os.environ.get(env_var)
        if not api_key:
            raise ValueError(f"Environment variable {env_var} not set")
        return cls(api_key=api_key, **kwargs)

    def timeout_for(self, weekly: bool = False) -> float:
        return self.weekly_timeout if weekly else self.single_timeout

    # ------------------------------------------------------------------
    # Model catalog
    # ------------------------------------------------------------------

    def invalidate_models(self):
        """Drop the cached catalog so the next call refetches it."""
        self._cached_models = None

    async def list_models(self) -> List[str]:
        """Available gemini models sorted by priority, cached for the TTL.

        Falls back to the configured priority list when the catalog cannot
        be fetched; that fallback is not cached.
        """
        now = self._clock()
        if self._cached_models is not None and now - self._cached_at < self.catalog_ttl:
            logger.debug("[Gemini] Using cached model list")
            return list(self._cached_models)

        try:
            models = await asyncio.to_thread(self._fetch_catalog)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("[Gemini] Could not list available models: %s", e)
            return list(self.model_priority)

        if not models:
            logger.warning("[Gemini] Catalog returned no usable models, using defaults")
            return list(self.model_priority)

        self._cached_models = models
        self._cached_at = now
        logger.info("[Gemini] Available models: %s", ", ".join(models))
        return list(models)

    def _fetch_catalog(self) -> List[str]:
        """Fetch and sort the model catalog.

        Raises:
            requests.exceptions.RequestException: On transport failure
            ValueError: On a non-200 status or unreadable body
        """
        response = requests.get(
            f"{self.BASE_URL}/models",
            params={"key": self.api_key, "pageSize": 1000},
            timeout=self.CATALOG_TIMEOUT,
        )
        if response.status_code != 200:
            raise ValueError(f"Model catalog returned status {response.status_code}")

        names = []
        for model in response.json().get("models", []):
            if "generateContent" not in model.get("supportedGenerationMethods", []):
                continue
            name = str(model.get("name", "")).split("/")[-1]
            if "gemini" in name:
                names.append(name)
        return self.sort_by_priority(names)

    def sort_by_priority(self, names: List[str]) -> List[str]:
        """Priority models first in priority order; the rest keep catalog order."""
        rank = {name: index for index, name in enumerate(self.model_priority)}
        return sorted(names, key=lambda n: rank.get(n, len(rank)))

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, model: str, prompt: str, weekly: bool = False) -> str:
        """Generate text with one Gemini model.

        Raises:
            FatalBackendError: Invalid key or exhausted quota
            TransientBackendError: Overload, rate limiting, deadline, 5xx
            MalformedResponseError: Response carried no text
        """
        generative_model = genai.GenerativeModel(model)
        config = {
            "temperature": 0.7,
            "max_output_tokens": self.WEEKLY_MAX_TOKENS if weekly else self.SINGLE_MAX_TOKENS,
        }

        try:
            response = await generative_model.generate_content_async(
                prompt + "\n\nReturn ONLY JSON. No other text.",
                generation_config=config,
            )
        except (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated) as e:
            raise FatalBackendError(ErrorCode.INVALID_CREDENTIALS, str(e), backend=self.name, model=model)
        except google_exceptions.ResourceExhausted as e:
            if "quota" in str(e).lower():
                raise FatalBackendError(ErrorCode.QUOTA_EXCEEDED, str(e), backend=self.name, model=model)
            raise TransientBackendError(ErrorCode.RATE_LIMITED, str(e), backend=self.name, model=model)
        except google_exceptions.ServiceUnavailable as e:
            raise TransientBackendError(ErrorCode.BACKEND_OVERLOADED, str(e), backend=self.name, model=model)
        except google_exceptions.DeadlineExceeded as e:
            raise TransientBackendError(ErrorCode.TIMEOUT, str(e), backend=self.name, model=model)
        except google_exceptions.InternalServerError as e:
            raise TransientBackendError(ErrorCode.BACKEND_ERROR, str(e), backend=self.name, model=model)

        try:
            text = response.text
        except ValueError as e:
            # Blocked or empty candidates
            raise MalformedResponseError(f"Gemini returned no text: {e}")

        if not text or not text.strip():
            raise MalformedResponseError("Gemini returned empty response text")

        logger.info("[Gemini] %s returned %d characters", model, len(text))
        return text
