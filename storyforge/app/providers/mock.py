"""Mock provider for development and testing.

This provider simulates model responses without making external API calls.
It's useful when a Gemini key is not available.

Enable by setting environment variable:
    STORYFORGE_MOCK_PROVIDER=true
"""

import asyncio
import random
import re
from typing import Any, AsyncGenerator, Dict, List, Optional

from storyforge.app.providers.base import BaseProvider

_ARC_COUNT = re.compile(r"EXACTLY (\d+) arcs", re.IGNORECASE)
_CHAPTER_COUNT = re.compile(r"EXACTLY (\d+) chapters in EACH arc", re.IGNORECASE)


class MockProvider(BaseProvider):
    """Mock provider that returns scripted or canned responses.

    Features:
    - Scripted responses consumed in order (the last one repeats)
    - Well-formed outlines when the prompt asks for arcs and chapters
    - Optional injected error to exercise failure handling
    - Records every call in ``calls``
    """

    name = "mock"

    def __init__(
        self,
        responses: Optional[List[str]] = None,
        error: Optional[Exception] = None,
        min_delay: float = 0.0,
        max_delay: float = 0.0,
        chunk_words: int = 8,
    ):
        """Initialize the mock provider.

        Args:
            responses: Texts returned by successive calls
            error: Exception raised by every call when set
            min_delay: Minimum response delay in seconds
            max_delay: Maximum response delay in seconds
            chunk_words: Words per streamed fragment
        """
        super().__init__("mock-model")
        self._responses = list(responses or [])
        self.error = error
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.chunk_words = max(1, chunk_words)
        self.calls: List[Dict[str, Any]] = []

    def _record(self, prompt: str, **params: Any) -> None:
        self.calls.append({"prompt": prompt, **params})

    async def _simulate_latency(self) -> None:
        if self.max_delay > 0:
            await asyncio.sleep(random.uniform(self.min_delay, self.max_delay))

    def _next_content(self, prompt: str) -> str:
        if self._responses:
            if len(self._responses) > 1:
                return self._responses.pop(0)
            return self._responses[0]
        return self._generate_content(prompt)

    def _generate_content(self, prompt: str) -> str:
        arcs = _ARC_COUNT.search(prompt)
        chapters = _CHAPTER_COUNT.search(prompt)
        if arcs and chapters:
            return self._generate_outline(int(arcs.group(1)), int(chapters.group(1)))
        return (
            "# The Lantern Keeper\n\n"
            "The lighthouse had been dark for eleven years when Mara climbed its "
            "stairs with a borrowed lantern. Below, the harbour held its breath. "
            "She set the flame in the great lens and watched the light sweep the "
            "water, and somewhere beyond the reef a ship turned for home."
        )

    @staticmethod
    def _generate_outline(arcs: int, chapters_per_arc: int) -> str:
        lines = ["# Mock Novel", "", "**Logline:** A mock story for development.", ""]
        chapter = 1
        for arc in range(1, arcs + 1):
            lines.append(f"## Arc {arc}: Movement {arc}")
            lines.append("")
            for _ in range(chapters_per_arc):
                lines.append(f"### Chapter {chapter}: Scene {chapter}")
                lines.append("**Summary:** Something happens.")
                lines.append("")
                chapter += 1
        return "\n".join(lines)

    async def generate_text(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        model: Optional[str] = None,
    ) -> str:
        self._record(
            prompt,
            system=system,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            model=model,
        )
        await self._simulate_latency()
        if self.error is not None:
            raise self.error
        return self._next_content(prompt)

    async def stream_text(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        model: Optional[str] = None,
    ) -> AsyncGenerator[str, None]:
        self._record(
            prompt,
            system=system,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            model=model,
            stream=True,
        )
        await self._simulate_latency()
        if self.error is not None:
            raise self.error

        words = self._next_content(prompt).split(" ")
        for i in range(0, len(words), self.chunk_words):
            chunk = " ".join(words[i:i + self.chunk_words])
            if i + self.chunk_words < len(words):
                chunk += " "
            yield chunk

    async def health_check(self, timeout: float = 2.0) -> bool:
        return self.error is None
