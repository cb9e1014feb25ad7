"""Text generation providers for StoryForge.

This package provides:
- Base provider interface (BaseProvider)
- Provider implementations (GeminiProvider, MockProvider)
- Provider factory (ProviderType, create_provider, get_provider)
"""

from storyforge.app.providers.base import BaseProvider
from storyforge.app.providers.factory import ProviderType, create_provider, get_provider
from storyforge.app.providers.gemini import GeminiProvider
from storyforge.app.providers.mock import MockProvider

__all__ = [
    "BaseProvider",
    "GeminiProvider",
    "MockProvider",
    "ProviderType",
    "create_provider",
    "get_provider",
]
