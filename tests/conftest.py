"""Shared fixtures: a controllable clock, SQLite databases and an API harness."""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from storyforge.app.db.async_session import get_db
from storyforge.app.db.base import Base
from storyforge.app.db.models import User, UserCredits
from storyforge.app.main import create_app
from storyforge.app.middleware.auth import SupabaseUser, get_optional_user
from storyforge.app.providers.mock import MockProvider


class FakeClock:
    """Manually advanced time source for the rate limiters."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storyforge_logs(caplog):
    """caplog wired to the "storyforge" logger, which does not propagate."""
    logger = logging.getLogger("storyforge")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="storyforge")
    yield caplog
    logger.removeHandler(caplog.handler)


@pytest.fixture
def db_path(tmp_path) -> str:
    """A file-backed SQLite database with all tables created."""
    path = tmp_path / "storyforge.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return str(path)


@pytest_asyncio.fixture
async def async_session_maker(db_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_session_maker):
    async with async_session_maker() as session:
        yield session


@dataclass
class ApiHarness:
    """A running app wired to a MockProvider, a fake clock and SQLite."""
    app: FastAPI
    client: TestClient
    provider: MockProvider
    clock: FakeClock
    db_path: str
    user: Optional[SupabaseUser] = None
    _sync_engine: object = field(default=None, repr=False)

    def sign_in(self, user_id: str = "user-1", email: str = "writer@example.com") -> SupabaseUser:
        self.user = SupabaseUser(id=user_id, email=email)
        return self.user

    def sign_out(self) -> None:
        self.user = None

    def use_provider(self, provider: MockProvider) -> None:
        self.provider = provider
        self.app.state.provider = provider

    def db(self) -> Session:
        """A synchronous session for seeding and inspecting rows."""
        if self._sync_engine is None:
            self._sync_engine = create_engine(f"sqlite:///{self.db_path}")
        return Session(self._sync_engine, expire_on_commit=False)

    def seed_credits(self, user_id: str, credits: int, email: Optional[str] = None) -> None:
        with self.db() as session:
            session.add(User(id=user_id, email=email))
            session.add(UserCredits(user_id=user_id, credits=credits, total_generated=0))
            session.commit()


@pytest.fixture
def api(db_path, clock) -> Iterator[ApiHarness]:
    provider = MockProvider()
    app = create_app(provider=provider, clock=clock)

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    maker = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_db():
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    with TestClient(app) as client:
        harness = ApiHarness(app=app, client=client, provider=provider, clock=clock, db_path=db_path)
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_optional_user] = lambda: harness.user
        yield harness
        app.dependency_overrides.clear()
        if harness._sync_engine is not None:
            harness._sync_engine.dispose()


def build_outline(arcs: int, chapters_per_arc: int) -> str:
    lines = ["# Title", "", "## Main Characters", "- **Mara**: keeper", ""]
    chapter = 1
    for arc in range(1, arcs + 1):
        lines.append(f"## Arc {arc}: Part {arc}")
        for _ in range(chapters_per_arc):
            lines.append(f"### Chapter {chapter}: Scene {chapter}")
            lines.append("**Summary:** Things happen.")
            chapter += 1
    return "\n".join(lines)


@pytest.fixture
def outline_text():
    """Builder for well-formed outlines with the given arc/chapter counts."""
    return build_outline
