"""Generation endpoints: stories, chapters, outlines, titles and suggestions."""

import re
import secrets
import time
from typing import AsyncGenerator, Optional

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storyforge.app.api.schemas import (
    GenerateChapterRequest,
    GenerateOutlineRequest,
    GenerateStoryRequest,
    GenerateSuggestionRequest,
    GenerateTitleRequest,
    OutlineResponse,
    SuggestionResponse,
    TitleResponse,
)
from storyforge.app.core.config import Settings, settings
from storyforge.app.core.constants import StoryType
from storyforge.app.core.logging import get_log_context, get_logger
from storyforge.app.db.crud import (
    can_generate_anonymous,
    deduct_credit,
    get_or_create_user_credits,
    track_anonymous_generation,
)
from storyforge.app.db.dependencies import SessionDep
from storyforge.app.exceptions import (
    FreeLimitReachedError,
    GenerationFailedError,
    InsufficientCreditsError,
    ProviderResponseError,
)
from storyforge.app.middleware.auth import SupabaseUser, get_optional_user, require_user
from storyforge.app.middleware.rate_limit import (
    RateLimiterRegistry,
    enforce_rate_limit,
    get_rate_limit_key,
    get_rate_limiters,
)
from storyforge.app.providers.base import BaseProvider
from storyforge.app.providers.factory import get_provider
from storyforge.app.services.outline import (
    OutlineGenerator,
    OutlineRequest,
    OutlineStructureExpectation,
)
from storyforge.app.services.prompts import (
    build_chapter_prompt,
    build_story_system_prompt,
    build_suggestion_prompt,
    build_title_prompt,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])

# Errors from the model call that are reported as ``generation_failed``
UPSTREAM_ERRORS = (httpx.HTTPError, ProviderResponseError)

_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")


def new_anonymous_session_id() -> str:
    return f"anon_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


async def stream_text_response(chunks: AsyncGenerator[str, None], endpoint: str) -> StreamingResponse:
    """Wrap a provider stream in a plain-text StreamingResponse.

    The first chunk is pulled before the response starts so that a failed
    upstream call still produces a proper 500 ``generation_failed`` answer.
    """
    try:
        first = await chunks.__anext__()
    except StopAsyncIteration:
        first = ""
    except UPSTREAM_ERRORS as e:
        logger.exception("Generation failed", extra=get_log_context(endpoint=endpoint))
        raise GenerationFailedError(str(e) or "Failed to generate text") from e

    async def body() -> AsyncGenerator[str, None]:
        if first:
            yield first
        try:
            async for chunk in chunks:
                yield chunk
        except UPSTREAM_ERRORS:
            logger.exception("Generation stream interrupted", extra=get_log_context(endpoint=endpoint))
            raise

    return StreamingResponse(body(), media_type="text/plain; charset=utf-8")


def _set_session_cookie(response: Response, session_id: str, config: Settings) -> None:
    response.set_cookie(
        config.session_cookie_name,
        session_id,
        max_age=config.session_cookie_max_age,
        httponly=True,
        samesite="lax",
        secure=not config.debug,
    )


async def _charge_user(session: AsyncSession, user: SupabaseUser, message: str) -> None:
    """Check and deduct one credit.

    Raises:
        InsufficientCreditsError: If the balance is zero or the deduction fails
    """
    credits = await get_or_create_user_credits(session, user.id, user.email)
    if credits.credits <= 0:
        raise InsufficientCreditsError(0, message)
    if not await deduct_credit(session, user.id):
        raise InsufficientCreditsError(
            credits.credits, "Failed to deduct credit. Please try again."
        )
    logger.info("Deducted 1 credit", extra=get_log_context(user_id=user.id))


@router.post("/generate-story", response_model=None)
async def generate_story(
    body: GenerateStoryRequest,
    request: Request,
    session: SessionDep,
    user: Optional[SupabaseUser] = Depends(get_optional_user),
    provider: BaseProvider = Depends(get_provider),
    limiters: RateLimiterRegistry = Depends(get_rate_limiters),
) -> StreamingResponse:
    """Stream a one-shot story or novel.

    Signed-in users spend one credit. Anonymous callers get one free story
    per ``session_id`` cookie.
    """
    enforce_rate_limit(
        limiters.generation,
        settings.story_rate_limit,
        get_rate_limit_key(request, user.id if user else None),
    )

    anonymous_session_id = None
    if user:
        await _charge_user(
            session,
            user,
            "You've run out of credits. Please purchase more to continue generating stories.",
        )
    else:
        anonymous_session_id = (
            request.cookies.get(settings.session_cookie_name) or new_anonymous_session_id()
        )
        if not await can_generate_anonymous(session, anonymous_session_id):
            raise FreeLimitReachedError()
        await track_anonymous_generation(session, anonymous_session_id)

    is_novel = body.story_type == StoryType.NOVEL.value
    system = build_story_system_prompt(
        story_type=body.story_type,
        length=body.length,
        genre=body.genre,
        tone=body.tone,
        language=body.language,
        point_of_view=body.point_of_view,
        writing_style=body.writing_style,
    )
    chunks = provider.stream_text(
        body.prompt,
        system=system,
        temperature=settings.story_temperature,
        max_output_tokens=(
            settings.novel_max_output_tokens if is_novel else settings.story_max_output_tokens
        ),
    )
    response = await stream_text_response(chunks, endpoint="generate-story")
    if anonymous_session_id:
        _set_session_cookie(response, anonymous_session_id, settings)
    return response


@router.post("/generate-chapter", response_model=None)
async def generate_chapter(
    body: GenerateChapterRequest,
    request: Request,
    session: SessionDep,
    user: Optional[SupabaseUser] = Depends(get_optional_user),
    provider: BaseProvider = Depends(get_provider),
    limiters: RateLimiterRegistry = Depends(get_rate_limiters),
) -> StreamingResponse:
    """Stream one chapter of an outlined novel.

    A credit is spent only on the first chapter of each arc, and only for
    signed-in users.
    """
    enforce_rate_limit(
        limiters.generation,
        settings.chapter_rate_limit,
        get_rate_limit_key(request, user.id if user else None),
        message="Too many chapter generation requests. Please wait a moment.",
    )

    if body.is_first_chapter_of_arc and user:
        await _charge_user(session, user, "You've run out of credits. Each arc costs 1 credit.")

    system = build_chapter_prompt(
        outline=body.outline,
        chapter_number=body.chapter_number,
        chapter_title=body.chapter_title,
        chapter_summary=body.chapter_summary,
        previous_chapters=[chapter.model_dump() for chapter in body.previous_chapters],
        genre=body.genre,
        tone=body.tone,
        language=body.language,
        point_of_view=body.point_of_view,
        writing_style=body.writing_style,
    )
    chunks = provider.stream_text(
        f"Write Chapter {body.chapter_number}: {body.chapter_title}\n\n"
        "End with a complete sentence.",
        system=system,
        temperature=settings.chapter_temperature,
        max_output_tokens=settings.chapter_max_output_tokens,
    )
    return await stream_text_response(chunks, endpoint="generate-chapter")


@router.post("/generate-outline", response_model=OutlineResponse)
async def generate_outline(
    body: GenerateOutlineRequest,
    session: SessionDep,
    user: SupabaseUser = Depends(require_user),
    provider: BaseProvider = Depends(get_provider),
    limiters: RateLimiterRegistry = Depends(get_rate_limiters),
) -> OutlineResponse:
    """Generate a novel outline with the requested arc/chapter structure.

    Credits are checked but not spent; chapters pay per arc.
    """
    enforce_rate_limit(limiters.generation, settings.outline_rate_limit, user.id)

    credits = await get_or_create_user_credits(session, user.id, user.email)
    if credits.credits <= 0:
        raise InsufficientCreditsError(0, "You need credits to generate a novel outline.")

    outline_request = OutlineRequest(
        prompt=body.prompt,
        genre=body.genre,
        tone=body.tone,
        expectation=OutlineStructureExpectation.from_request(
            body.length, body.number_of_arcs, body.chapters_per_arc
        ),
        language=body.language,
        point_of_view=body.point_of_view,
        writing_style=body.writing_style,
        suggested_title=body.suggested_title,
    )
    try:
        result = await OutlineGenerator(provider, settings).generate(outline_request)
    except UPSTREAM_ERRORS as e:
        raise GenerationFailedError(str(e) or "Failed to generate outline") from e

    logger.info(
        f"Outline finished in state {result.state.value} after {result.attempts} call(s)",
        extra=get_log_context(user_id=user.id, endpoint="generate-outline"),
    )
    return OutlineResponse(outline=result.outline)


@router.post("/generate-title", response_model=TitleResponse)
async def generate_title(
    body: GenerateTitleRequest,
    user: SupabaseUser = Depends(require_user),
    provider: BaseProvider = Depends(get_provider),
    limiters: RateLimiterRegistry = Depends(get_rate_limiters),
) -> TitleResponse:
    enforce_rate_limit(
        limiters.api,
        settings.title_rate_limit,
        user.id,
        message="Too many title generation requests. Please wait a moment.",
    )

    try:
        text = await provider.generate_text(
            build_title_prompt(prompt=body.prompt, genre=body.genre, tone=body.tone),
            temperature=settings.title_temperature,
            max_output_tokens=settings.title_max_output_tokens,
            model=settings.title_model,
        )
    except UPSTREAM_ERRORS as e:
        logger.exception("Title generation failed", extra=get_log_context(user_id=user.id))
        raise GenerationFailedError(str(e) or "Failed to generate title") from e

    return TitleResponse(title=_SURROUNDING_QUOTES.sub("", text.strip()))


@router.post("/generate-suggestion", response_model=SuggestionResponse)
async def generate_suggestion(
    body: GenerateSuggestionRequest,
    user: SupabaseUser = Depends(require_user),
    provider: BaseProvider = Depends(get_provider),
) -> SuggestionResponse:
    """Suggest a title, description or summary for the outline editor."""
    prompt = build_suggestion_prompt(body.type, body.context)
    logger.debug(f"Suggestion prompt for {body.type}:\n{prompt}")

    try:
        text = await provider.generate_text(
            prompt,
            temperature=settings.suggestion_temperature,
            max_output_tokens=settings.suggestion_max_output_tokens,
        )
    except UPSTREAM_ERRORS as e:
        logger.exception("Suggestion generation failed", extra=get_log_context(user_id=user.id))
        raise GenerationFailedError(str(e) or "Failed to generate suggestion") from e

    suggestion = text.strip()
    if not suggestion:
        logger.warning(f"Empty {body.type} suggestion from provider", extra=get_log_context(user_id=user.id))
    return SuggestionResponse(suggestion=suggestion)
