import base64
import logging
from urllib.parse import urlencode

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.core.config import settings
from sifixa.models.user import User
from sifixa.services.auth_service import get_user_by_email

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_TIMEOUT_SECONDS = 10.0


def encode_state(redirect_uri: str) -> str:
    return base64.urlsafe_b64encode(redirect_uri.encode()).decode().rstrip("=")


def decode_state(state: str) -> str | None:
    try:
        padded = state + "=" * (-len(state) % 4)
        return base64.urlsafe_b64decode(padded).decode()
    except (ValueError, UnicodeDecodeError):
        return None


def get_google_authorization_url(state: str | None = None, redirect_uri: str | None = None) -> str:
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "offline",
        "prompt": "consent",
    }
    # The frontend redirect rides in state so the callback can send tokens back there
    if redirect_uri:
        params["state"] = encode_state(redirect_uri)
    elif state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_code_for_tokens(code: str) -> dict | None:
    if not settings.google_client_id or not settings.google_client_secret:
        logger.warning("Google OAuth not configured")
        return None
    if not settings.google_redirect_uri:
        logger.warning("GOOGLE_REDIRECT_URI not set")
        return None
    async with httpx.AsyncClient(timeout=GOOGLE_TIMEOUT_SECONDS) as client:
        resp = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "redirect_uri": settings.google_redirect_uri,
                "grant_type": "authorization_code",
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    if resp.status_code != 200:
        logger.warning(
            "Google token exchange failed: status=%s body=%s redirect_uri=%s",
            resp.status_code,
            resp.text[:500],
            settings.google_redirect_uri,
        )
        return None
    return resp.json()


async def get_google_user_info(access_token: str) -> dict | None:
    async with httpx.AsyncClient(timeout=GOOGLE_TIMEOUT_SECONDS) as client:
        resp = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
    if resp.status_code != 200:
        return None
    return resp.json()


async def get_or_create_google_user(session: AsyncSession, email: str, name: str | None) -> User:
    user = await get_user_by_email(session, email)
    if user:
        if not user.is_google_account:
            user.is_google_account = True
            session.add(user)
            await session.flush()
        return user
    user = User(
        email=email.lower(),
        full_name=name or email.split("@")[0],
        hashed_password=None,
        is_google_account=True,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user
