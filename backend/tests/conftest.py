"""Shared fixtures: an app bound to a throwaway SQLite file, plus an HTTP client."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import Settings
from taskboard.main import create_app

DEFAULT_PASSWORD = "correct-horse"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every side effect at tmp_path."""
    return Settings(
        _env_file=None,
        environment="test",
        log_level="WARNING",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'taskboard.db'}",
        upload_dir=str(tmp_path / "uploads"),
        bcrypt_rounds=4,
        jwt_secret_key="test-secret",
    )


@pytest_asyncio.fixture()
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings)
    await app.state.db.create_all()
    yield app
    await app.state.db.dispose()


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture()
async def db_session(app: FastAPI) -> AsyncIterator[AsyncSession]:
    async with app.state.db.session() as session:
        yield session


async def register_user(
    client: AsyncClient,
    username: str = "alice",
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
) -> dict:
    response = await client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@taskboard.io",
            "password": password,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def auth_headers(client: AsyncClient) -> dict[str, str]:
    data = await register_user(client)
    return bearer(data["token"])
