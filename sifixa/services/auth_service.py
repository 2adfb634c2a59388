from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.core.config import settings
from sifixa.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from sifixa.models.refresh_token import RefreshToken
from sifixa.models.user import User, UserCreate, UserPublic

TokenPairResult = tuple[User, str, str, int]


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    # Portal signups are customers; staff flags are granted by an administrator
    user = User(
        email=data.email.lower(),
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        is_google_account=False,
        is_staff=False,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        is_google_account=user.is_google_account,
        is_staff=user.is_staff,
    )


def make_token_pair(user_id: int) -> tuple[str, str, int]:
    access = create_access_token(user_id)
    refresh = create_refresh_token(user_id)
    expires_in = settings.access_token_expire_minutes * 60
    return access, refresh, expires_in


def _utc_naive_now() -> datetime:
    """Naive UTC datetime for DB columns that are TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


async def store_refresh_token(session: AsyncSession, user_id: int, refresh_token: str) -> None:
    user_id_str, jti = decode_refresh_token(refresh_token)
    if not user_id_str or not jti:
        return
    expires_at = _utc_naive_now() + timedelta(days=settings.refresh_token_expire_days)
    session.add(RefreshToken(user_id=user_id, jti=jti, expires_at=expires_at))
    await session.flush()


async def issue_tokens(session: AsyncSession, user: User) -> TokenPairResult:
    access, refresh, expires_in = make_token_pair(user.id)
    await store_refresh_token(session, user_id=user.id, refresh_token=refresh)
    return user, access, refresh, expires_in


async def login_user(session: AsyncSession, email: str, password: str) -> TokenPairResult | None:
    user = await get_user_by_email(session, email)
    if not user or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return await issue_tokens(session, user)


async def signup_user(
    session: AsyncSession, email: str, password: str, full_name: str | None = None
) -> TokenPairResult | None:
    if await get_user_by_email(session, email):
        return None
    user = await create_user(session, UserCreate(email=email, password=password, full_name=full_name))
    return await issue_tokens(session, user)


async def revoke_refresh_token(session: AsyncSession, jti: str) -> None:
    result = await session.execute(select(RefreshToken).where(RefreshToken.jti == jti))
    row = result.scalar_one_or_none()
    if row:
        row.revoked = True
        session.add(row)


async def refresh_tokens(session: AsyncSession, refresh_token: str) -> TokenPairResult | None:
    """Rotate a refresh token: the presented one is revoked and a new pair issued."""
    user_id_str, jti = decode_refresh_token(refresh_token)
    if not user_id_str or not jti:
        return None
    result = await session.execute(
        select(RefreshToken).where(
            RefreshToken.jti == jti,
            RefreshToken.revoked == False,  # noqa: E712
            RefreshToken.expires_at > _utc_naive_now(),
        )
    )
    token_row = result.scalar_one_or_none()
    if not token_row:
        return None
    result = await session.execute(select(User).where(User.id == int(user_id_str)))
    user = result.scalar_one_or_none()
    if not user:
        return None
    token_row.revoked = True
    session.add(token_row)
    return await issue_tokens(session, user)
