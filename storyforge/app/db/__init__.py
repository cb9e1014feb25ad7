"""Database package for StoryForge.

This package provides:
- Database models (User, UserCredits, CreditTransaction, AnonymousUsage, Story)
- Async session management
- CRUD operations for all models
- FastAPI dependency injection support
"""

from storyforge.app.db.base import Base
from storyforge.app.db.models import AnonymousUsage, CreditTransaction, Story, User, UserCredits
from storyforge.app.db.async_session import (
    SessionDep,
    close_async_engine,
    get_async_engine,
    get_async_session_maker,
    get_db,
)

__all__ = [
    "Base",
    "AnonymousUsage",
    "CreditTransaction",
    "Story",
    "User",
    "UserCredits",
    "SessionDep",
    "close_async_engine",
    "get_async_engine",
    "get_async_session_maker",
    "get_db",
]
