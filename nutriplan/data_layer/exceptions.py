"""Structured error types for the meal-plan generation pipeline.

Every failure that leaves a pipeline stage is one of the classes below, so
callers never see an unclassified exception from the model client or the
plan transformer.

PIPELINE ERROR FLOW:
    Input validation    → ValidationError            (never retried)
    Model backend call  → TransientBackendError      (retried with backoff)
                        → FatalBackendError          (backend abandoned)
    Sanitize/transform  → MalformedResponseError     (next model variant)
    All options used    → GenerationError            (terminal)
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import requests


class ErrorCode(Enum):
    """Machine-readable codes for every failure mode."""

    VALIDATION_FAILURE = "VALIDATION_FAILURE"

    # Transient backend failures
    RATE_LIMITED = "RATE_LIMITED"
    BACKEND_OVERLOADED = "BACKEND_OVERLOADED"
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    BACKEND_ERROR = "BACKEND_ERROR"

    # Fatal backend failures
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"

    # Response problems
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    EMPTY_PLAN = "EMPTY_PLAN"

    # Terminal
    GENERATION_FAILED = "GENERATION_FAILED"


class PlanGenerationError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        code: ErrorCode identifying the failure
        message: Human-readable description (never contains raw model output)
        context: Extra debugging details (model name, attempt, etc.)
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.context = context or {}
        super().__init__(f"[{code.value}] {message}")

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code!r}, "
            f"message={self.message!r}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a dictionary for API responses."""
        return {
            "error_code": self.code.value,
            "message": self.message,
            "context": self.context
        }


class ValidationError(PlanGenerationError):
    """Raised for malformed or missing input (profile, criteria, settings)."""

    def __init__(self, message: str, field: Optional[str] = None):
        context = {"field": field} if field else {}
        super().__init__(ErrorCode.VALIDATION_FAILURE, message, context)
        self.field = field


class BackendError(PlanGenerationError):
    """Common parent of classified model-backend failures."""

    retryable = False

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        backend: Optional[str] = None,
        model: Optional[str] = None,
    ):
        context = {}
        if backend:
            context["backend"] = backend
        if model:
            context["model"] = model
        super().__init__(code, message, context)
        self.backend = backend
        self.model = model


class TransientBackendError(BackendError):
    """Rate limiting, overload or timeout. Worth retrying after a delay."""

    retryable = True


class FatalBackendError(BackendError):
    """Invalid credentials, exhausted quota or unreachable server.

    Aborts the current backend; the next backend in the chain may still run.
    """


class MalformedResponseError(PlanGenerationError):
    """Model output could not be turned into a valid plan or meal list."""

    def __init__(
        self,
        message: str,
        raw_excerpt: str = "",
        code: ErrorCode = ErrorCode.MALFORMED_RESPONSE,
    ):
        context = {"raw_excerpt": raw_excerpt[:500]} if raw_excerpt else {}
        super().__init__(code, message, context)


@dataclass
class AttemptRecord:
    """One call made by the model client, kept for diagnostics."""

    backend: str
    model: str
    attempt: int
    error_code: str
    message: str


class GenerationError(PlanGenerationError):
    """Terminal failure after every model and backend was exhausted."""

    def __init__(
        self,
        message: str,
        attempts: Optional[List[AttemptRecord]] = None,
        cause: Optional[PlanGenerationError] = None,
    ):
        self.attempts = attempts or []
        self.cause = cause
        context: Dict[str, Any] = {"attempt_count": len(self.attempts)}
        if cause is not None:
            context["cause"] = cause.code.value
        super().__init__(ErrorCode.GENERATION_FAILED, message, context)


_FATAL_MARKERS = {
    ErrorCode.INVALID_CREDENTIALS: (
        "401", "403", "api_key_invalid", "invalid api key", "api key not valid",
        "permission denied", "unauthenticated",
    ),
    ErrorCode.QUOTA_EXCEEDED: ("quota",),
}

_TRANSIENT_MARKERS = {
    ErrorCode.TIMEOUT: ("timed out", "timeout", "deadline exceeded", "504"),
    ErrorCode.BACKEND_OVERLOADED: ("overloaded", "503", "unavailable"),
    ErrorCode.RATE_LIMITED: ("429", "rate limit", "too many requests"),
    ErrorCode.BACKEND_ERROR: ("500", "502", "internal"),
}


def classify_backend_error(
    error: BaseException,
    backend: Optional[str] = None,
    model: Optional[str] = None,
) -> PlanGenerationError:
    """Map any exception raised by a backend call to the error taxonomy.

    Already-classified pipeline errors pass through unchanged. Fatal markers
    are checked before transient ones, so "429 quota exceeded" is fatal while
    a bare "429" is a retryable rate limit. Unknown errors are treated as
    transient backend errors so they still get the bounded retry.

    Args:
        error: The raised exception
        backend: Backend name for context
        model: Model name for context

    Returns:
        A PlanGenerationError subclass instance
    """
    if isinstance(error, PlanGenerationError):
        return error

    if isinstance(error, asyncio.TimeoutError) or isinstance(error, requests.exceptions.Timeout):
        return TransientBackendError(
            ErrorCode.TIMEOUT,
            f"Request to {model or backend or 'backend'} timed out",
            backend=backend,
            model=model,
        )
    if isinstance(error, requests.exceptions.ConnectionError):
        return TransientBackendError(
            ErrorCode.CONNECTION_ERROR,
            f"Failed to connect to {backend or 'backend'}",
            backend=backend,
            model=model,
        )

    text = str(error) or error.__class__.__name__
    lowered = text.lower()

    for code, markers in _FATAL_MARKERS.items():
        if any(marker in lowered for marker in markers):
            return FatalBackendError(code, text, backend=backend, model=model)

    for code, markers in _TRANSIENT_MARKERS.items():
        if any(marker in lowered for marker in markers):
            return TransientBackendError(code, text, backend=backend, model=model)

    return TransientBackendError(ErrorCode.BACKEND_ERROR, text, backend=backend, model=model)
