"""Core utilities for the StoryForge application."""

from storyforge.app.core.config import settings
from storyforge.app.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
]
