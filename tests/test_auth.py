"""Tests for Supabase access-token verification."""

import httpx
import pytest
import pytest_asyncio
from httpx import Response
from starlette.requests import Request

from storyforge.app.exceptions import AuthenticationError
from storyforge.app.middleware import auth
from storyforge.app.middleware.auth import (
    SupabaseUser,
    clear_user_cache,
    get_bearer_token,
    get_optional_user,
    require_user,
)

SUPABASE_URL = "https://project.supabase.co"
USER_URL = f"{SUPABASE_URL}/auth/v1/user"


def make_request(authorization=None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


@pytest.fixture(autouse=True)
def supabase_settings(monkeypatch):
    monkeypatch.setattr(auth.settings, "supabase_url", SUPABASE_URL + "/")
    monkeypatch.setattr(auth.settings, "supabase_anon_key", "anon-key")
    clear_user_cache()
    yield
    clear_user_cache()


@pytest_asyncio.fixture
async def http_client(monkeypatch):
    async with httpx.AsyncClient() as client:
        monkeypatch.setattr(auth, "get_http_client", lambda: client)
        yield client


class TestBearerToken:

    def test_extracts_token(self):
        assert get_bearer_token(make_request("Bearer abc.def")) == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer ", "bearer abc"])
    def test_missing_or_malformed(self, header):
        assert get_bearer_token(make_request(header)) is None


class TestGetOptionalUser:

    @pytest.mark.asyncio
    async def test_no_token_is_anonymous(self, http_client, respx_mock):
        route = respx_mock.get(USER_URL)

        assert await get_optional_user(make_request()) is None
        assert not route.called

    @pytest.mark.asyncio
    async def test_valid_token_resolves_user(self, http_client, respx_mock):
        route = respx_mock.get(USER_URL).mock(
            return_value=Response(200, json={"id": "user-1", "email": "a@example.com"})
        )

        user = await get_optional_user(make_request("Bearer good-token"))

        assert user == SupabaseUser(id="user-1", email="a@example.com")
        sent = route.calls.last.request
        assert sent.headers["apikey"] == "anon-key"
        assert sent.headers["authorization"] == "Bearer good-token"

    @pytest.mark.asyncio
    async def test_verified_token_is_cached(self, http_client, respx_mock):
        route = respx_mock.get(USER_URL).mock(
            return_value=Response(200, json={"id": "user-1"})
        )

        await get_optional_user(make_request("Bearer good-token"))
        user = await get_optional_user(make_request("Bearer good-token"))

        assert user.id == "user-1"
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_cache_entry_expires(self, http_client, respx_mock, monkeypatch):
        route = respx_mock.get(USER_URL).mock(
            return_value=Response(200, json={"id": "user-1"})
        )
        monkeypatch.setattr(auth.settings, "auth_cache_ttl_seconds", 0)

        await get_optional_user(make_request("Bearer good-token"))
        await get_optional_user(make_request("Bearer good-token"))

        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_rejected_token_is_anonymous(self, http_client, respx_mock):
        respx_mock.get(USER_URL).mock(return_value=Response(401, json={"msg": "expired"}))

        assert await get_optional_user(make_request("Bearer expired")) is None

    @pytest.mark.asyncio
    async def test_supabase_unreachable_is_anonymous(self, http_client, respx_mock, storyforge_logs):
        respx_mock.get(USER_URL).mock(side_effect=httpx.ConnectError("no route"))

        assert await get_optional_user(make_request("Bearer good-token")) is None
        assert "Supabase user lookup failed" in storyforge_logs.text

    @pytest.mark.asyncio
    async def test_oversized_token_ignored(self, http_client, respx_mock):
        route = respx_mock.get(USER_URL)

        token = "x" * (auth.MAX_TOKEN_LENGTH + 1)
        assert await get_optional_user(make_request(f"Bearer {token}")) is None
        assert not route.called

    @pytest.mark.asyncio
    async def test_unconfigured_supabase_is_anonymous(self, monkeypatch):
        monkeypatch.setattr(auth.settings, "supabase_url", "")

        assert await get_optional_user(make_request("Bearer good-token")) is None


class TestRequireUser:

    @pytest.mark.asyncio
    async def test_returns_user(self):
        user = SupabaseUser(id="user-1")
        assert await require_user(user) is user

    @pytest.mark.asyncio
    async def test_anonymous_raises_401(self):
        with pytest.raises(AuthenticationError) as exc_info:
            await require_user(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.to_response() == {"error": "unauthorized", "message": "Unauthorized"}
