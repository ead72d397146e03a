"""
Shared fixtures: SQLite database per test, the ASGI app with get_session
overridden, a mocked outbound HTTP client and small data factories.
"""

import itertools
import os
from decimal import Decimal

# settings are read at import time
os.environ["DATABASE_ASYNC_URL"] = "sqlite+aiosqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

import bcrypt
import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.enum import UserRole
from app.db.models.database import Course, User
from app.db.models.init_db import init_db
from app.db.sesson import get_session
from app.main import app

PASSWORD = "secret123"
PASSWORD_HASH = bcrypt.hashpw(PASSWORD.encode("utf-8"), bcrypt.gensalt(4)).decode("utf-8")

_seq = itertools.count(1)


def fake_upstream(request: httpx.Request) -> httpx.Response:
    """Stand-in for reCAPTCHA and the exchange rate API."""
    if "recaptcha" in request.url.path:
        return httpx.Response(200, json={"success": b"response=ok" in request.content})
    if "latest" in request.url.path:
        return httpx.Response(200, json={"base": "EGP", "rates": {"EGP": 1, "USD": 0.02}})
    return httpx.Response(404)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.state.http = httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream))

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await app.state.http.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
def add(session_factory):
    """Persist objects in a short-lived session and return them."""

    async def _add(*objects):
        async with session_factory() as session:
            session.add_all(objects)
            await session.commit()
        return objects[0] if len(objects) == 1 else objects

    return _add


@pytest.fixture
def fetch(session_factory):
    async def _fetch(model, pk):
        async with session_factory() as session:
            return await session.get(model, pk)

    return _fetch


@pytest.fixture
def make_user(add):
    async def _make_user(role: str = UserRole.USER.value, **fields) -> User:
        n = next(_seq)
        values = {
            "full_name": f"User {n}",
            "phone_number": f"0100000{n:04d}",
            "email": f"user{n}@example.com",
            "password": PASSWORD_HASH,
            "role": role,
            "balance": Decimal("0"),
        }
        values.update(fields)
        return await add(User(**values))

    return _make_user


@pytest.fixture
def make_course(add):
    async def _make_course(teacher: User, **fields) -> Course:
        values = {
            "user_id": teacher.id,
            "title": f"Course {next(_seq)}",
            "price": Decimal("100.00"),
            "is_published": True,
        }
        values.update(fields)
        return await add(Course(**values))

    return _make_course


@pytest.fixture
def login(client):
    """Log in through the API and return a Bearer header for that user."""

    async def _login(user: User, password: str = PASSWORD) -> dict:
        res = await client.post(
            "/api/v1/auth/login",
            json={"phone_number": user.phone_number, "password": password},
        )
        assert res.status_code == 200, res.text
        token = res.cookies["access_token"]
        client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _login
