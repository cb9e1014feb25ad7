"""Google Gemini provider implementation.

Talks to the Generative Language REST API directly over httpx:
``models/{model}:generateContent`` for complete responses and
``models/{model}:streamGenerateContent?alt=sse`` for streams.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict, List, Optional

import httpx

from storyforge.app.core.logging import get_logger
from storyforge.app.exceptions import ProviderResponseError
from storyforge.app.providers.base import BaseProvider

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def build_payload(
    prompt: str,
    system: Optional[str],
    temperature: float,
    max_output_tokens: int,
) -> Dict[str, Any]:
    """Build a generateContent request body."""
    payload: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
        },
    }
    if system:
        payload["systemInstruction"] = {"parts": [{"text": system}]}
    return payload


def extract_text(data: Dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate.

    Returns an empty string for chunks that carry no text (e.g. the final
    usage-only chunk of a stream).
    """
    candidates: List[Dict[str, Any]] = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


class GeminiProvider(BaseProvider):
    """Gemini over REST.

    Uses the shared ``http_client`` when one is given; otherwise each call
    opens and closes its own client.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = DEFAULT_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        super().__init__(model)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}

    def _model_url(self, model: Optional[str], method: str = "") -> str:
        return f"{self.base_url}/models/{model or self.model}{method}"

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.http_client is not None:
            yield self.http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def generate_text(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        model: Optional[str] = None,
    ) -> str:
        """Send a non-streaming generateContent request.

        Raises:
            httpx.HTTPStatusError: If the API returns an error status
            ProviderResponseError: If the response has no candidates
        """
        payload = build_payload(prompt, system, temperature, max_output_tokens)

        async with self._client() as client:
            resp = await client.post(
                self._model_url(model, ":generateContent"), headers=self.headers, json=payload
            )
            resp.raise_for_status()
            data = resp.json()

        if not data.get("candidates"):
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            raise ProviderResponseError(
                f"Gemini returned no candidates (block reason: {block_reason})",
                finish_reason=block_reason,
            )

        text = extract_text(data)
        if not text:
            finish_reason = data["candidates"][0].get("finishReason")
            logger.warning(
                f"Gemini returned an empty candidate (finish reason: {finish_reason})",
                extra={"provider": self.name},
            )
        return text

    async def stream_text(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        model: Optional[str] = None,
    ) -> AsyncGenerator[str, None]:
        """Stream over server-sent events, yielding text as it arrives.

        Raises:
            httpx.HTTPStatusError: If the API returns an error status
        """
        payload = build_payload(prompt, system, temperature, max_output_tokens)
        url = self._model_url(model, ":streamGenerateContent")

        async with self._client() as client:
            async with client.stream(
                "POST", url, headers=self.headers, params={"alt": "sse"}, json=payload
            ) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    chunk = self._decode_event(line)
                    if chunk is None:
                        continue
                    text = extract_text(chunk)
                    if text:
                        yield text

    def _decode_event(self, line: str) -> Optional[Dict[str, Any]]:
        # Only "data:" lines carry payload; blank keep-alives are skipped
        if not line.startswith("data:"):
            return None
        body = line[len("data:"):].strip()
        if not body:
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError:
            logger.warning(
                f"Skipping undecodable stream chunk: {body[:100]}",
                extra={"provider": self.name},
            )
            return None

    async def health_check(self, timeout: float = 2.0) -> bool:
        """Fetch the default model's metadata."""
        try:
            async with self._client() as client:
                resp = await client.get(self._model_url(None), headers=self.headers, timeout=timeout)
        except httpx.HTTPError:
            return False
        return resp.status_code == 200
