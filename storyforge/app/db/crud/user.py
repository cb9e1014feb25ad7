"""User CRUD operations."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storyforge.app.core.logging import get_logger
from storyforge.app.db.models import User

logger = get_logger(__name__)


async def ensure_user(
    session: AsyncSession,
    user_id: str,
    email: str | None = None,
    auto_commit: bool = True,
) -> User:
    """Get the user row, creating it if missing.

    Emails are unique; if another row already holds ``email`` the new user is
    stored without one.
    """
    user = await session.get(User, user_id)
    if user is not None:
        if email and user.email is None:
            user.email = email
        return user

    if email:
        result = await session.execute(select(User.id).where(User.email == email))
        if result.scalar_one_or_none() is not None:
            logger.warning(
                "Email already registered to another user, storing user without email",
                extra={"user_id": user_id},
            )
            email = None

    user = User(id=user_id, email=email)
    session.add(user)
    await session.flush()
    if auto_commit:
        await session.commit()
    return user
