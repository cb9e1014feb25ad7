"""HTTP routers for StoryForge."""

from storyforge.app.api.credits import router as credits_router
from storyforge.app.api.generate import router as generate_router
from storyforge.app.api.stories import router as stories_router

__all__ = [
    "credits_router",
    "generate_router",
    "stories_router",
]
