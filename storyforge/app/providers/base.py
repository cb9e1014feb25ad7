"""Provider interface shared by the Gemini and mock backends."""

from abc import ABC, abstractmethod
from typing import AsyncGenerator, Optional


class BaseProvider(ABC):
    """A text-generation backend.

    Routes pass the prompt together with the sampling parameters they
    chose. ``model`` overrides the default model for a single call, which
    is how titles run on a faster model than stories.
    """

    name: str = "base"

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        model: Optional[str] = None,
    ) -> str:
        """Return the complete response for ``prompt``.

        Raises:
            httpx.HTTPError: On transport errors and upstream error statuses
            ProviderResponseError: When the upstream answers without output
        """

    @abstractmethod
    def stream_text(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        model: Optional[str] = None,
    ) -> AsyncGenerator[str, None]:
        """Yield the response for ``prompt`` fragment by fragment."""

    @abstractmethod
    async def health_check(self, timeout: float = 2.0) -> bool:
        """Whether the backend is reachable. Never raises."""
