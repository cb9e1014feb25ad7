"""Tests for user, credit and story CRUD operations against SQLite."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from storyforge.app.db.crud import (
    add_credits,
    can_generate_anonymous,
    create_story,
    deduct_credit,
    delete_story,
    ensure_user,
    get_anonymous_usage,
    get_or_create_user_credits,
    get_story_by_id,
    get_user_credits,
    list_published_stories,
    list_stories_by_user,
    track_anonymous_generation,
    update_story,
)
from storyforge.app.db.models import CreditTransaction, Story, User


async def transactions_for(session, user_id):
    result = await session.execute(
        select(CreditTransaction)
        .where(CreditTransaction.user_id == user_id)
        .order_by(CreditTransaction.id)
    )
    return list(result.scalars().all())


class TestUsers:

    @pytest.mark.asyncio
    async def test_ensure_user_creates_once(self, db_session):
        first = await ensure_user(db_session, "user-1", "a@example.com")
        second = await ensure_user(db_session, "user-1", "other@example.com")

        assert first.id == second.id == "user-1"
        assert second.email == "a@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_stored_without_email(self, db_session):
        await ensure_user(db_session, "user-1", "shared@example.com")

        user = await ensure_user(db_session, "user-2", "shared@example.com")

        assert user.email is None


class TestCredits:

    @pytest.mark.asyncio
    async def test_get_user_credits_does_not_create(self, db_session):
        assert await get_user_credits(db_session, "user-1") is None
        assert await db_session.get(User, "user-1") is None

    @pytest.mark.asyncio
    async def test_new_user_gets_signup_bonus(self, db_session):
        credits = await get_or_create_user_credits(db_session, "user-1", "a@example.com")

        assert credits.credits == 3
        assert credits.total_generated == 0
        assert await db_session.get(User, "user-1") is not None
        transactions = await transactions_for(db_session, "user-1")
        assert [(t.transaction_type, t.amount) for t in transactions] == [("signup", 3)]
        assert transactions[0].description == "Welcome bonus - 3 free stories"

    @pytest.mark.asyncio
    async def test_existing_user_not_credited_twice(self, db_session):
        await get_or_create_user_credits(db_session, "user-1")
        credits = await get_or_create_user_credits(db_session, "user-1")

        assert credits.credits == 3
        assert len(await transactions_for(db_session, "user-1")) == 1

    @pytest.mark.asyncio
    async def test_deduct_until_empty(self, db_session):
        await get_or_create_user_credits(db_session, "user-1")

        results = [await deduct_credit(db_session, "user-1") for _ in range(4)]

        assert results == [True, True, True, False]
        credits = await get_or_create_user_credits(db_session, "user-1")
        await db_session.refresh(credits)
        assert credits.credits == 0
        assert credits.total_generated == 3
        usage = [t for t in await transactions_for(db_session, "user-1") if t.transaction_type == "usage"]
        assert [t.amount for t in usage] == [-1, -1, -1]

    @pytest.mark.asyncio
    async def test_deduct_without_account_fails(self, db_session):
        assert await deduct_credit(db_session, "nobody") is False

    @pytest.mark.asyncio
    async def test_add_credits_returns_balance(self, db_session):
        await get_or_create_user_credits(db_session, "user-1")

        balance = await add_credits(db_session, "user-1", 10)

        assert balance == 13
        last = (await transactions_for(db_session, "user-1"))[-1]
        assert (last.transaction_type, last.amount, last.description) == (
            "purchase",
            10,
            "Credit purchase",
        )

    @pytest.mark.asyncio
    async def test_add_credits_creates_account(self, db_session):
        assert await add_credits(db_session, "user-new", 5) == 8

    @pytest.mark.asyncio
    async def test_add_credits_rejects_non_positive(self, db_session):
        with pytest.raises(ValueError):
            await add_credits(db_session, "user-1", 0)


class TestAnonymousUsage:

    @pytest.mark.asyncio
    async def test_unknown_session_may_generate(self, db_session):
        assert await get_anonymous_usage(db_session, "anon_1_ab") is None
        assert await can_generate_anonymous(db_session, "anon_1_ab") is True

    @pytest.mark.asyncio
    async def test_one_free_story_per_session(self, db_session):
        await track_anonymous_generation(db_session, "anon_1_ab")

        assert await can_generate_anonymous(db_session, "anon_1_ab") is False
        assert await can_generate_anonymous(db_session, "anon_2_cd") is True

    @pytest.mark.asyncio
    async def test_tracking_increments(self, db_session):
        await track_anonymous_generation(db_session, "anon_1_ab")
        await track_anonymous_generation(db_session, "anon_1_ab")

        usage = await get_anonymous_usage(db_session, "anon_1_ab")
        await db_session.refresh(usage)
        assert usage.stories_generated == 2


class TestStories:

    @pytest.mark.asyncio
    async def test_create_story_counts_words(self, db_session):
        await ensure_user(db_session, "user-1")

        story = await create_story(
            db_session,
            title="The Lantern Keeper",
            content="The light swept   the dark\nwater.",
            user_id="user-1",
            genre="fantasy",
            tone="mysterious",
        )

        assert len(story.id) == 36
        assert story.word_count == 6
        assert story.story_type == "story"
        assert story.is_published is False

    @pytest.mark.asyncio
    async def test_novel_keeps_outline_and_chapters(self, db_session):
        chapters = [{"number": 1, "title": "Arrival", "content": "..."}]

        story = await create_story(
            db_session,
            title="Saga",
            content="Chapter one text",
            user_id=None,
            story_type="novel",
            outline="## Arc 1: Start",
            chapters_data=chapters,
        )

        loaded = await get_story_by_id(db_session, story.id)
        assert loaded.outline == "## Arc 1: Start"
        assert loaded.chapters_data == chapters

    @pytest.mark.asyncio
    async def test_update_story_recomputes_word_count(self, db_session):
        story = await create_story(db_session, title="T", content="one two", user_id=None)

        await update_story(db_session, story, content="one two three", is_published=True)

        assert story.word_count == 3
        assert story.is_published is True

    @pytest.mark.asyncio
    async def test_update_story_rejects_unknown_fields(self, db_session):
        story = await create_story(db_session, title="T", content="x", user_id=None)

        with pytest.raises(ValueError, match="user_id"):
            await update_story(db_session, story, user_id="someone-else")

    @pytest.mark.asyncio
    async def test_delete_story(self, db_session):
        story = await create_story(db_session, title="T", content="x", user_id=None)

        await delete_story(db_session, story)

        assert await get_story_by_id(db_session, story.id) is None

    @pytest.mark.asyncio
    async def test_gallery_lists_published_newest_first(self, db_session):
        now = datetime.now(timezone.utc)
        db_session.add_all([
            Story(title="old", content="a", is_published=True, created_at=now - timedelta(days=2)),
            Story(title="new", content="b", is_published=True, created_at=now),
            Story(title="draft", content="c", is_published=False, created_at=now),
        ])
        await db_session.commit()

        stories = await list_published_stories(db_session)

        assert [s.title for s in stories] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_gallery_limit(self, db_session):
        db_session.add_all(
            [Story(title=f"s{i}", content="x", is_published=True) for i in range(5)]
        )
        await db_session.commit()

        assert len(await list_published_stories(db_session, limit=3)) == 3

    @pytest.mark.asyncio
    async def test_list_by_user_includes_drafts(self, db_session):
        await ensure_user(db_session, "user-1")
        await create_story(db_session, title="draft", content="x", user_id="user-1")
        await create_story(db_session, title="public", content="y", user_id="user-1", is_published=True)
        await create_story(db_session, title="theirs", content="z", user_id=None, is_published=True)

        titles = {s.title for s in await list_stories_by_user(db_session, "user-1")}

        assert titles == {"draft", "public"}
