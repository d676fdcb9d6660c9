"""Abstract base class for text-generation backends.

The model client depends ONLY on this interface. Concrete backends talk to
a cloud model API or a locally hosted model server without changing the
retry and fallback logic above them.
"""

from abc import ABC, abstractmethod
from typing import List


class TextGenerationProvider(ABC):
    """A backend that turns a prompt into free text.

    Implementations raise whatever their transport raises; the model client
    classifies errors with ``classify_backend_error``. Implementations may
    raise already-classified pipeline errors where they know better (an
    unreachable local server is fatal, for example).
    """

    name: str = "provider"

    @abstractmethod
    async def list_models(self) -> List[str]:
        """Model variants to try, best first.

        Returns:
            Non-empty list of model names
        """
        ...

    @abstractmethod
    async def generate(self, model: str, prompt: str, weekly: bool = False) -> str:
        """Generate text for a prompt with one model.

        Args:
            model: Model name from ``list_models``
            prompt: Full prompt text
            weekly: True for full-week generation (larger token budget)

        Returns:
            Raw model output
        """
        ...

    @abstractmethod
    def timeout_for(self, weekly: bool = False) -> float:
        """Seconds to wait for one ``generate`` call before giving up on it."""
        ...
