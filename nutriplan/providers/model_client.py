"""Model client: retry, timeout and fallback across model backends.

STATE PER REQUEST:
    SelectingModel → Calling → Success
                             → RetryableFailure → (backoff) Calling | next model
                             → FatalFailure     → next backend
    All backends exhausted   → GenerationError

Each model variant gets at most ``RetryPolicy.max_attempts`` calls. A reply
that cannot be parsed moves on to the next variant without another call to
the same one. Nothing is persisted here, so abandoning a call never leaves
partial state behind.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from nutriplan.data_layer.exceptions import (
    AttemptRecord,
    FatalBackendError,
    GenerationError,
    MalformedResponseError,
    PlanGenerationError,
    classify_backend_error,
)
from nutriplan.providers.retry_policy import RetryPolicy
from nutriplan.providers.text_provider import TextGenerationProvider


logger = logging.getLogger(__name__)

T = TypeVar("T")

RAW_LOG_LIMIT = 500


@dataclass
class GenerationResult(Generic[T]):
    """Parsed value plus where it came from."""

    value: T
    backend: str
    model: str
    attempts: List[AttemptRecord] = field(default_factory=list)


def _discard_result(task: "asyncio.Future[Any]"):
    # Abandoned calls may still fail later; retrieve the error so it is not reported
    if not task.cancelled():
        task.exception()


class ModelClient:
    """Calls backends in order until one produces a parseable reply.

    Usage:
        client = ModelClient([GeminiProvider.from_env(), OllamaProvider()])
        result = await client.generate(prompt, parse=json.loads, weekly=True)
    """

    def __init__(
        self,
        providers: Sequence[TextGenerationProvider],
        policy: Optional[RetryPolicy] = None,
    ):
        """Initialize client.

        Args:
            providers: Backends in fallback order (primary first)
            policy: Retry policy applied to every model variant
        """
        self.providers = list(providers)
        self.policy = policy or RetryPolicy()

    async def generate(
        self,
        prompt: str,
        parse: Callable[[str], T],
        weekly: bool = False,
        context: str = "ModelClient",
    ) -> GenerationResult[T]:
        """Generate and parse a reply, walking the fallback chain.

        Args:
            prompt: Prompt text
            parse: Turns raw text into a value; raising marks the reply malformed
            weekly: Full-week request (longer timeout, bigger token budget)
            context: Tag used in log messages

        Returns:
            GenerationResult with the parsed value

        Raises:
            GenerationError: Every model of every backend failed
        """
        if not self.providers:
            raise GenerationError("No model backend is configured")

        attempts: List[AttemptRecord] = []
        last_error: Optional[PlanGenerationError] = None

        for provider in self.providers:
            try:
                models = await provider.list_models()
            except Exception as e:
                last_error = classify_backend_error(e, backend=provider.name)
                attempts.append(AttemptRecord(provider.name, "", 0, last_error.code.value, last_error.message))
                logger.error("[%s] Could not list models for %s: %s", context, provider.name, last_error)
                continue

            logger.info("[%s] %s will try models: %s", context, provider.name, ", ".join(models))

            for model in models:
                outcome = await self._try_model(provider, model, prompt, parse, weekly, context, attempts)
                if isinstance(outcome, GenerationResult):
                    return outcome
                last_error = outcome
                if isinstance(outcome, FatalBackendError):
                    logger.error(
                        "[%s] %s aborted after fatal error: %s", context, provider.name, outcome
                    )
                    break

            logger.warning("[%s] Backend %s exhausted", context, provider.name)

        message = "All model backends failed"
        if attempts:
            last = attempts[-1]
            where = f"{last.backend}/{last.model}" if last.model else last.backend
            message = f"{message}; last error: {last.error_code} from {where}"
        raise GenerationError(message, attempts=attempts, cause=last_error)

    async def _try_model(
        self,
        provider: TextGenerationProvider,
        model: str,
        prompt: str,
        parse: Callable[[str], T],
        weekly: bool,
        context: str,
        attempts: List[AttemptRecord],
    ):
        """Call one model with retries; returns a GenerationResult or the last error."""
        error: Optional[PlanGenerationError] = None
        for attempt in range(self.policy.max_attempts):
            logger.info(
                "[%s] %s/%s attempt %d/%d", context, provider.name, model,
                attempt + 1, self.policy.max_attempts,
            )
            try:
                raw = await self._call_with_timeout(provider, model, prompt, weekly)
            except Exception as e:
                error = classify_backend_error(e, backend=provider.name, model=model)
                attempts.append(AttemptRecord(provider.name, model, attempt + 1, error.code.value, error.message))
                logger.warning("[%s] %s/%s failed: %s", context, provider.name, model, error)
                if isinstance(error, FatalBackendError):
                    return error
                if self.policy.should_retry(error, attempt):
                    await self.policy.wait(attempt, context)
                    continue
                return error

            try:
                value = parse(raw)
            except Exception as e:
                error = e if isinstance(e, MalformedResponseError) else MalformedResponseError(
                    f"Could not parse reply from {model}: {e}", raw_excerpt=raw or ""
                )
                attempts.append(AttemptRecord(provider.name, model, attempt + 1, error.code.value, error.message))
                logger.warning(
                    "[%s] %s/%s reply unusable: %s; raw output: %s",
                    context, provider.name, model, error, (raw or "")[:RAW_LOG_LIMIT],
                )
                return error

            logger.info("[%s] %s/%s succeeded", context, provider.name, model)
            return GenerationResult(value=value, backend=provider.name, model=model, attempts=list(attempts))

        return error

    @staticmethod
    async def _call_with_timeout(
        provider: TextGenerationProvider, model: str, prompt: str, weekly: bool
    ) -> str:
        """Race the call against the backend timeout.

        On timeout the call is abandoned, not cancelled: it keeps running in
        the background and its result is discarded.
        """
        timeout = provider.timeout_for(weekly)
        task = asyncio.ensure_future(provider.generate(model, prompt, weekly))
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if task not in done:
            task.add_done_callback(_discard_result)
            raise asyncio.TimeoutError(f"Request to {model} timed out after {timeout:.0f}s")
        return task.result()


def parse_json(text: str) -> Any:
    """json.loads that tolerates raw control characters inside strings."""
    return json.loads(text, strict=False)
