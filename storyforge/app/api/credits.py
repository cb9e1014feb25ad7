"""Credit balance endpoint."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from storyforge.app.db.crud import get_or_create_user_credits
from storyforge.app.db.dependencies import SessionDep
from storyforge.app.middleware.auth import SupabaseUser, get_optional_user

router = APIRouter(prefix="/api", tags=["credits"])


@router.get("/credits")
async def get_credits(
    session: SessionDep,
    user: Optional[SupabaseUser] = Depends(get_optional_user),
) -> Dict[str, Any]:
    """Return the caller's credit balance; anonymous callers have none."""
    if user is None:
        return {"credits": 0, "isAnonymous": True}

    credits = await get_or_create_user_credits(session, user.id, user.email)
    return {
        "credits": credits.credits,
        "totalGenerated": credits.total_generated,
        "isAnonymous": False,
    }
