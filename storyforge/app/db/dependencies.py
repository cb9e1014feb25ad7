"""Database dependencies for FastAPI dependency injection.

Usage:
    from storyforge.app.db.dependencies import SessionDep

    @router.get("/stories/{story_id}")
    async def get_story(story_id: str, session: SessionDep):
        return await get_story_by_id(session, story_id)
"""

from storyforge.app.db.async_session import SessionDep, get_db

__all__ = ["SessionDep", "get_db"]
