from contextlib import asynccontextmanager
from typing import List, Optional, Set
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base, get_db
from main import app
from models.user import User
from routers import rate_limit
from services.session_token import create_session_token


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest.fixture
def auth_headers():
    def _headers(user_id: int) -> dict:
        return {"Authorization": f"Bearer {create_session_token(user_id)['token']}"}

    return _headers


@pytest_asyncio.fixture
async def catalog_client(tmp_path):
    db_path = tmp_path / "catalog.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client, session_maker

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest_asyncio.fixture
async def seed_users(catalog_client):
    _, session_maker = catalog_client

    async def _seed(*user_ids: int) -> None:
        async with session_maker() as session:
            session.add_all([User(id=user_id, name=f"viewer-{user_id}") for user_id in user_ids])
            await session.commit()

    return _seed


class FakeYouTube:
    """In-memory stand-in for the thumbnail host and video pages."""

    def __init__(self):
        self.available_thumbnails: Set[str] = set()
        self.page_html: Optional[str] = None
        self.unreachable = False
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("host unreachable", request=request)
        if request.method == "HEAD":
            quality = request.url.path.rsplit("/", 1)[-1].split(".")[0]
            return httpx.Response(200 if quality in self.available_thumbnails else 404)
        if self.page_html is None:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, text=self.page_html)

    @property
    def head_urls(self) -> List[str]:
        return [str(request.url) for request in self.requests if request.method == "HEAD"]


@pytest.fixture
def fake_youtube():
    fake = FakeYouTube()

    @asynccontextmanager
    async def _fake_http_client(client, timeout):
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake.handler)) as mocked:
            yield mocked

    with patch("ingestion.youtube._http_client", _fake_http_client):
        yield fake
