"""Credit and anonymous-usage CRUD operations."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storyforge.app.core.config import settings
from storyforge.app.core.logging import get_logger
from storyforge.app.core.retry import DB_RETRY_POLICY, with_retry
from storyforge.app.db.crud.user import ensure_user
from storyforge.app.db.models import AnonymousUsage, CreditTransaction, UserCredits

logger = get_logger(__name__)


def _record_transaction(
    session: AsyncSession,
    user_id: str,
    amount: int,
    transaction_type: str,
    description: str,
) -> None:
    session.add(
        CreditTransaction(
            user_id=user_id,
            amount=amount,
            transaction_type=transaction_type,
            description=description,
        )
    )


@with_retry(DB_RETRY_POLICY)
async def get_user_credits(session: AsyncSession, user_id: str) -> UserCredits | None:
    return await session.get(UserCredits, user_id)


async def get_or_create_user_credits(
    session: AsyncSession,
    user_id: str,
    email: str | None = None,
    auto_commit: bool = True,
) -> UserCredits:
    """Return the user's credit row, creating it with the signup bonus if new.

    New users get ``settings.signup_bonus_credits`` credits and a ``signup``
    transaction. The user row itself is created on demand.

    Args:
        session: Database session from FastAPI dependency
        user_id: Supabase user id
        email: User email, stored when the user row is first created
        auto_commit: Whether to commit the transaction

    Returns:
        The UserCredits row
    """
    credits = await get_user_credits(session, user_id)
    if credits is not None:
        return credits

    await ensure_user(session, user_id, email, auto_commit=False)

    bonus = settings.signup_bonus_credits
    credits = UserCredits(user_id=user_id, credits=bonus, total_generated=0)
    session.add(credits)
    _record_transaction(session, user_id, bonus, "signup", f"Welcome bonus - {bonus} free stories")
    await session.flush()
    logger.info(f"Created credit account with {bonus} credits", extra={"user_id": user_id})

    if auto_commit:
        await session.commit()
    return credits


async def deduct_credit(
    session: AsyncSession,
    user_id: str,
    auto_commit: bool = True,
) -> bool:
    """Atomically take one credit from the user.

    A single conditional UPDATE with RETURNING keeps the balance from going
    negative under concurrent requests.

    Returns:
        True if a credit was deducted, False if the balance was zero or the
        user has no credit row
    """
    result = await session.execute(
        update(UserCredits)
        .where(UserCredits.user_id == user_id, UserCredits.credits > 0)
        .values(
            credits=UserCredits.credits - 1,
            total_generated=UserCredits.total_generated + 1,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(UserCredits.credits)
    )
    row = result.fetchone()
    if row is None:
        return False

    _record_transaction(session, user_id, -1, "usage", "Story generation")
    await session.flush()
    if auto_commit:
        await session.commit()
    return True


async def add_credits(
    session: AsyncSession,
    user_id: str,
    amount: int,
    description: str = "Credit purchase",
    auto_commit: bool = True,
) -> int:
    """Add purchased credits and return the new balance."""
    if amount <= 0:
        raise ValueError("amount must be positive")

    await get_or_create_user_credits(session, user_id, auto_commit=False)
    result = await session.execute(
        update(UserCredits)
        .where(UserCredits.user_id == user_id)
        .values(
            credits=UserCredits.credits + amount,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(UserCredits.credits)
    )
    balance = result.scalar_one()
    _record_transaction(session, user_id, amount, "purchase", description)
    await session.flush()
    if auto_commit:
        await session.commit()
    return balance


@with_retry(DB_RETRY_POLICY)
async def get_anonymous_usage(
    session: AsyncSession,
    session_id: str,
) -> AnonymousUsage | None:
    result = await session.execute(
        select(AnonymousUsage).where(AnonymousUsage.session_id == session_id)
    )
    return result.scalar_one_or_none()


async def can_generate_anonymous(session: AsyncSession, session_id: str) -> bool:
    """Whether an anonymous session still has a free story left."""
    usage = await get_anonymous_usage(session, session_id)
    return usage is None or usage.stories_generated < settings.anonymous_free_stories


async def track_anonymous_generation(
    session: AsyncSession,
    session_id: str,
    auto_commit: bool = True,
) -> None:
    """Count one generated story against an anonymous session."""
    result = await session.execute(
        update(AnonymousUsage)
        .where(AnonymousUsage.session_id == session_id)
        .values(
            stories_generated=AnonymousUsage.stories_generated + 1,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(AnonymousUsage.stories_generated)
    )
    if result.fetchone() is None:
        session.add(AnonymousUsage(session_id=session_id, stories_generated=1))
    await session.flush()
    if auto_commit:
        await session.commit()
