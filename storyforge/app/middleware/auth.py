"""Caller identification against Supabase Auth.

Sign-up and login happen in the front-end; this module only verifies the
Supabase access token sent as ``Authorization: Bearer <jwt>`` by asking
Supabase who it belongs to.
"""

import asyncio
import hashlib
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
from fastapi import Depends, Request

from storyforge.app.core.config import settings
from storyforge.app.core.http_client import get_http_client
from storyforge.app.core.logging import get_logger
from storyforge.app.exceptions import AuthenticationError

logger = get_logger(__name__)

MAX_TOKEN_LENGTH = 4096


@dataclass(frozen=True)
class SupabaseUser:
    """The subset of a Supabase user the API relies on."""
    id: str
    email: Optional[str] = None


# Verified tokens, LRU ordered: {token_hash: (user, verified_at)}
_user_cache: OrderedDict[str, Tuple[SupabaseUser, float]] = OrderedDict()
_cache_lock = asyncio.Lock()


async def _get_cached_user(token_hash: str) -> Optional[SupabaseUser]:
    async with _cache_lock:
        cached = _user_cache.get(token_hash)
        if cached is None:
            return None
        user, verified_at = cached
        if time.time() - verified_at >= settings.auth_cache_ttl_seconds:
            del _user_cache[token_hash]
            return None
        _user_cache.move_to_end(token_hash)
        return user


async def _cache_user(token_hash: str, user: SupabaseUser) -> None:
    async with _cache_lock:
        _user_cache.pop(token_hash, None)
        while len(_user_cache) >= settings.auth_cache_max_size:
            _user_cache.popitem(last=False)
        _user_cache[token_hash] = (user, time.time())


def clear_user_cache() -> None:
    _user_cache.clear()


def get_bearer_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.replace("Bearer ", "", 1).strip() or None


async def fetch_supabase_user(
    client: httpx.AsyncClient,
    token: str,
) -> Optional[SupabaseUser]:
    """Resolve an access token to its user via ``GET /auth/v1/user``.

    Returns:
        The user, or None if Supabase rejects the token

    Raises:
        httpx.HTTPError: On transport failures or 5xx answers
    """
    resp = await client.get(
        f"{settings.supabase_url.rstrip('/')}/auth/v1/user",
        headers={
            "apikey": settings.supabase_anon_key,
            "Authorization": f"Bearer {token}",
        },
    )
    if resp.status_code in (401, 403):
        return None
    resp.raise_for_status()
    data = resp.json()
    if not data.get("id"):
        return None
    return SupabaseUser(id=data["id"], email=data.get("email"))


async def get_optional_user(request: Request) -> Optional[SupabaseUser]:
    """Return the signed-in user, or None for anonymous callers.

    Invalid or expired tokens are treated as anonymous. Supabase being
    unreachable is also treated as anonymous, with a warning.
    """
    token = get_bearer_token(request)
    if not token or len(token) > MAX_TOKEN_LENGTH:
        return None
    if not settings.supabase_url:
        logger.warning("SUPABASE_URL is not configured; treating caller as anonymous")
        return None

    token_hash = hashlib.sha256(token.encode()).hexdigest()
    cached = await _get_cached_user(token_hash)
    if cached:
        return cached

    try:
        user = await fetch_supabase_user(get_http_client(), token)
    except httpx.HTTPError as e:
        logger.warning(f"Supabase user lookup failed: {type(e).__name__}: {e}")
        return None

    if user is not None:
        await _cache_user(token_hash, user)
    return user


async def require_user(
    user: Optional[SupabaseUser] = Depends(get_optional_user),
) -> SupabaseUser:
    """Dependency for routes that need a signed-in user.

    Raises:
        AuthenticationError: 401 if no valid token was supplied
    """
    if user is None:
        raise AuthenticationError()
    return user
