"""Provider abstraction layer for text-generation backends.

This package decouples the planner from concrete model backends (cloud API
vs. local server) and owns retry, timeout and fallback.
"""

from nutriplan.providers.text_provider import TextGenerationProvider
from nutriplan.providers.gemini_provider import GeminiProvider
from nutriplan.providers.ollama_provider import OllamaProvider
from nutriplan.providers.retry_policy import RetryPolicy
from nutriplan.providers.model_client import ModelClient, GenerationResult

__all__ = [
    "TextGenerationProvider",
    "GeminiProvider",
    "OllamaProvider",
    "RetryPolicy",
    "ModelClient",
    "GenerationResult",
]
