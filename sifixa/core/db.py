from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from sifixa.core.config import settings

# Query params understood by psycopg but rejected by asyncpg
_PSYCOPG_ONLY_PARAMS = ("sslmode", "channel_binding")


def to_async_url(database_url: str) -> tuple[str, dict]:
    """Turn a plain postgresql:// URL into an asyncpg URL plus connect_args.

    The hosted database requires SSL; asyncpg takes it via connect_args instead of sslmode.
    """
    parsed = urlparse(database_url)
    if parsed.scheme not in ("postgresql", "postgres"):
        return database_url, {}
    query = parse_qs(parsed.query, keep_blank_values=True)
    sslmode = (query.get("sslmode") or [""])[0]
    for key in _PSYCOPG_ONLY_PARAMS:
        query.pop(key, None)
    url = urlunparse(
        ("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, urlencode(query, doseq=True), parsed.fragment)
    )
    return url, {"ssl": sslmode != "disable"}


async_database_url, _connect_args = to_async_url(settings.database_url)

engine = create_async_engine(
    async_database_url,
    echo=settings.env == "development",
    pool_pre_ping=True,
    connect_args=_connect_args,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
