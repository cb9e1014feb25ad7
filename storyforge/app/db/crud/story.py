"""Story CRUD operations."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storyforge.app.core.retry import DB_RETRY_POLICY, with_retry
from storyforge.app.db.models import Story

# Fields an owner may change through update_story
UPDATABLE_FIELDS = frozenset({"title", "content", "is_published", "outline", "chapters_data"})


def count_words(text: str) -> int:
    return len(text.split())


@with_retry(DB_RETRY_POLICY)
async def list_published_stories(session: AsyncSession, limit: int = 100) -> list[Story]:
    """Newest published stories, for the public gallery."""
    result = await session.execute(
        select(Story)
        .where(Story.is_published.is_(True))
        .order_by(Story.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


@with_retry(DB_RETRY_POLICY)
async def list_stories_by_user(session: AsyncSession, user_id: str) -> list[Story]:
    result = await session.execute(
        select(Story).where(Story.user_id == user_id).order_by(Story.created_at.desc())
    )
    return list(result.scalars().all())


@with_retry(DB_RETRY_POLICY)
async def get_story_by_id(session: AsyncSession, story_id: str) -> Story | None:
    return await session.get(Story, story_id)


async def create_story(
    session: AsyncSession,
    *,
    title: str,
    content: str,
    user_id: str | None,
    prompt: str | None = None,
    genre: str | None = None,
    tone: str | None = None,
    story_type: str = "story",
    is_published: bool = False,
    outline: str | None = None,
    chapters_data: Any = None,
    auto_commit: bool = True,
) -> Story:
    """Store a generated story; the word count is computed from ``content``."""
    story = Story(
        title=title,
        content=content,
        prompt=prompt,
        genre=genre,
        tone=tone,
        word_count=count_words(content),
        user_id=user_id,
        story_type=story_type,
        is_published=is_published,
        outline=outline,
        chapters_data=chapters_data,
    )
    session.add(story)
    await session.flush()
    if auto_commit:
        await session.commit()
        await session.refresh(story)
    return story


async def update_story(
    session: AsyncSession,
    story: Story,
    auto_commit: bool = True,
    **fields: Any,
) -> Story:
    """Apply ``fields`` to ``story``.

    Raises:
        ValueError: If a field is not in UPDATABLE_FIELDS
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update story fields: {', '.join(sorted(unknown))}")

    for name, value in fields.items():
        setattr(story, name, value)
    if "content" in fields:
        story.word_count = count_words(story.content)
    story.updated_at = datetime.now(timezone.utc)

    await session.flush()
    if auto_commit:
        await session.commit()
        await session.refresh(story)
    return story


async def delete_story(session: AsyncSession, story: Story, auto_commit: bool = True) -> None:
    await session.delete(story)
    await session.flush()
    if auto_commit:
        await session.commit()
