"""Provider factory for creating the text generation provider.

The provider is created once in the application lifespan and stored on
``app.state.provider``; handlers receive it through ``get_provider``.
"""

from enum import Enum
from typing import Optional

import httpx
from fastapi import Request

from storyforge.app.core.config import Settings, settings as default_settings
from storyforge.app.core.logging import get_logger
from storyforge.app.providers.base import BaseProvider
from storyforge.app.providers.gemini import GeminiProvider
from storyforge.app.providers.mock import MockProvider

logger = get_logger(__name__)


class ProviderType(str, Enum):
    """Supported provider types."""
    GEMINI = "gemini"
    MOCK = "mock"


def resolve_provider_type(settings: Settings) -> ProviderType:
    """Pick the provider for the current configuration.

    The mock provider is used when explicitly requested or when no Gemini
    key is configured.
    """
    if settings.mock_provider:
        return ProviderType.MOCK
    if not settings.gemini_api_key:
        logger.warning("GOOGLE_GENERATIVE_AI_API_KEY is not set; falling back to mock provider")
        return ProviderType.MOCK
    return ProviderType.GEMINI


def create_provider(
    http_client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> BaseProvider:
    """Create the configured provider.

    Args:
        http_client: Shared HTTP client for connection pooling
        settings: Settings override, defaults to the global settings

    Returns:
        A provider instance
    """
    settings = settings or default_settings
    provider_type = resolve_provider_type(settings)

    if provider_type is ProviderType.MOCK:
        provider = MockProvider()
    else:
        provider = GeminiProvider(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            http_client=http_client,
            timeout=settings.httpx_read_timeout,
        )

    logger.info(f"Using {provider_type.value} provider", extra={"provider": provider.name})
    return provider


def get_provider(request: Request) -> BaseProvider:
    """FastAPI dependency returning the application's provider."""
    return request.app.state.provider
