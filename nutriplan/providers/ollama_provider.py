"""Locally hosted text-generation backend (Ollama HTTP API)."""

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

import requests

from nutriplan.data_layer.exceptions import ErrorCode, FatalBackendError, MalformedResponseError
from nutriplan.providers.text_provider import TextGenerationProvider


logger = logging.getLogger(__name__)


class OllamaProvider(TextGenerationProvider):
    """Backend for a local Ollama server.

    Usage:
        provider = OllamaProvider()  # http://localhost:11434, model "phi"
        # or
        provider = OllamaProvider.from_env()  # reads OLLAMA_BASE_URL, OLLAMA_MODEL
    """

    name = "ollama"

    DEFAULT_BASE_URL = "http://localhost:11434"
    DEFAULT_MODEL = "phi"
    HEALTH_TIMEOUT = 5

    OPTIONS = {
        "temperature": 0.7,
        "top_p": 0.9,
        "top_k": 40,
    }
    WEEKLY_NUM_PREDICT = 8000
    SINGLE_NUM_PREDICT = 4000

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        weekly_timeout: float = 600.0,
        single_timeout: float = 300.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize local backend.

        Args:
            base_url: Server URL (default http://localhost:11434)
            model: Model name (default "phi")
            weekly_timeout: Timeout for full-week generation in seconds
            single_timeout: Timeout for single-item generation in seconds
            session: requests session, replaced in tests
        """
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.model = model or self.DEFAULT_MODEL
        self.weekly_timeout = weekly_timeout
        self.single_timeout = single_timeout
        self.session = session or requests.Session()

    @classmethod
    def from_env(cls, **kwargs) -> "OllamaProvider":
        return cls(
            base_url=os.environ.get("OLLAMA_BASE_URL"),
            model=os.environ.get("OLLAMA_MODEL"),
            **kwargs,
        )

    def timeout_for(self, weekly: bool = False) -> float:
        return self.weekly_timeout if weekly else self.single_timeout

    async def list_models(self) -> List[str]:
        return [self.model]

    async def generate(self, model: str, prompt: str, weekly: bool = False) -> str:
        """Generate text after checking the server is up.

        Raises:
            FatalBackendError: Server not reachable
            MalformedResponseError: Response body has no text
        """
        await asyncio.to_thread(self._check_health)
        full_prompt = prompt + "\n\nReturn ONLY valid JSON. No variable assignments, code, or explanations."
        data = await asyncio.to_thread(self._post_generate, model, full_prompt, weekly)

        text = data.get("response")
        if not isinstance(text, str) or not text.strip():
            raise MalformedResponseError("Invalid response from Ollama API")

        logger.info("[Ollama] %s returned %d characters", model, len(text))
        return text

    def _check_health(self):
        try:
            self.session.get(f"{self.base_url}/api/tags", timeout=self.HEALTH_TIMEOUT)
        except requests.exceptions.RequestException:
            raise FatalBackendError(
                ErrorCode.BACKEND_UNAVAILABLE,
                f"Ollama is not running at {self.base_url}",
                backend=self.name,
            )

    def _post_generate(self, model: str, prompt: str, weekly: bool) -> Dict[str, Any]:
        options = dict(self.OPTIONS)
        options["num_predict"] = self.WEEKLY_NUM_PREDICT if weekly else self.SINGLE_NUM_PREDICT

        response = self.session.post(
            f"{self.base_url}/api/generate",
            json={"model": model, "prompt": prompt, "stream": False, "options": options},
            timeout=self.timeout_for(weekly),
        )
        if response.status_code != 200:
            # Message carries the status code for classification
            raise requests.exceptions.HTTPError(
                f"{response.status_code} Ollama API returned status {response.status_code}"
            )
        return response.json()
