"""Story storage and gallery endpoints."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storyforge.app.api.schemas import (
    CreateStoryRequest,
    StoryDetail,
    StoryPreview,
    UpdateStoryRequest,
)
from storyforge.app.core.logging import get_log_context, get_logger
from storyforge.app.db.crud import (
    create_story,
    delete_story,
    get_story_by_id,
    list_published_stories,
    update_story,
)
from storyforge.app.db.dependencies import SessionDep
from storyforge.app.db.models import Story
from storyforge.app.exceptions import ForbiddenError, StoryNotFoundError
from storyforge.app.middleware.auth import SupabaseUser, require_user

logger = get_logger(__name__)

router = APIRouter(prefix="/api/stories", tags=["stories"])

PREVIEW_LENGTH = 200


async def _get_owned_story(
    session: AsyncSession, story_id: str, user: SupabaseUser, action: str
) -> Story:
    story = await get_story_by_id(session, story_id)
    if story is None:
        raise StoryNotFoundError(story_id)
    if story.user_id != user.id:
        raise ForbiddenError(f"Forbidden - You can only {action} your own stories")
    return story


@router.get("", response_model=List[StoryPreview])
async def list_stories(session: SessionDep) -> List[StoryPreview]:
    """Published stories for the gallery, newest first."""
    stories = await list_published_stories(session)
    return [
        StoryPreview(
            id=story.id,
            title=story.title,
            genre=story.genre,
            tone=story.tone,
            story_type=story.story_type,
            created_at=story.created_at,
            preview=story.content[:PREVIEW_LENGTH],
            user_id=story.user_id,
        )
        for story in stories
    ]


@router.post("")
async def save_story(
    body: CreateStoryRequest,
    session: SessionDep,
    user: SupabaseUser = Depends(require_user),
) -> Dict[str, Any]:
    story = await create_story(
        session,
        title=body.title,
        content=body.content,
        user_id=user.id,
        prompt=body.prompt,
        genre=body.genre,
        tone=body.tone,
        story_type=body.story_type,
        is_published=body.is_published,
        outline=body.outline,
        chapters_data=body.chapters_data,
    )
    logger.info(
        f"Saved {story.story_type} {story.id} ({story.word_count} words)",
        extra=get_log_context(user_id=user.id),
    )
    return {"id": story.id}


@router.get("/{story_id}", response_model=StoryDetail)
async def get_story(story_id: str, session: SessionDep) -> StoryDetail:
    story = await get_story_by_id(session, story_id)
    if story is None:
        raise StoryNotFoundError(story_id)
    return StoryDetail.model_validate(story)


@router.put("/{story_id}")
async def put_story(
    story_id: str,
    body: UpdateStoryRequest,
    session: SessionDep,
    user: SupabaseUser = Depends(require_user),
) -> Dict[str, Any]:
    story = await _get_owned_story(session, story_id, user, "update")
    await update_story(
        session,
        story,
        title=body.title,
        content=body.content,
        is_published=body.is_published,
        outline=body.outline,
        chapters_data=body.chapters_data,
    )
    logger.info(f"Updated story {story_id}", extra=get_log_context(user_id=user.id))
    return {"success": True, "id": story_id, "message": "Story updated successfully"}


@router.delete("/{story_id}")
async def remove_story(
    story_id: str,
    session: SessionDep,
    user: SupabaseUser = Depends(require_user),
) -> Dict[str, Any]:
    story = await _get_owned_story(session, story_id, user, "delete")
    await delete_story(session, story)
    logger.info(f"Deleted story {story_id}", extra=get_log_context(user_id=user.id))
    return {"success": True, "message": "Story deleted successfully"}
