from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncGenerator, Iterator

# Settings are read at import time; tests never touch a real database or SMTP server
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import sifixa.models  # noqa: F401,E402 - register tables
from sifixa.api.deps import get_session, require_staff  # noqa: E402
from sifixa.main import app  # noqa: E402
from sifixa.models.user import User  # noqa: E402

STAFF = User(id=1, email="tech@sifixa.com", full_name="Tech", is_staff=True)


def make_engine():
    return create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)


@pytest.fixture
def db():
    """Run `await fn(session)` against a fresh in-memory database and return its result."""

    def run(fn):
        async def _main():
            engine = make_engine()
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            maker = async_sessionmaker(engine, expire_on_commit=False)
            try:
                async with maker() as session:
                    return await fn(session)
            finally:
                await engine.dispose()

        return asyncio.run(_main())

    return run


@pytest.fixture
def client() -> Iterator[TestClient]:
    """API client on a fresh in-memory database, with staff access granted."""
    engine = make_engine()
    maker = async_sessionmaker(engine, expire_on_commit=False)

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[require_staff] = lambda: STAFF
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
