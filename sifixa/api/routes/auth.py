import logging
from urllib.parse import urlencode
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.api.deps import get_current_user, get_session, refresh_header
from sifixa.api.schemas.auth import LoginRequest, RefreshRequest, SignupRequest, TokenPair
from sifixa.core.config import settings
from sifixa.core.security import decode_refresh_token
from sifixa.models.user import User, UserPublic
from sifixa.services.auth_service import (
    issue_tokens,
    login_user,
    refresh_tokens,
    revoke_refresh_token,
    signup_user,
    user_to_public,
)
from sifixa.services.google_auth_service import (
    decode_state,
    exchange_code_for_tokens,
    get_google_authorization_url,
    get_google_user_info,
    get_or_create_google_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_pair(pair: tuple[User, str, str, int]) -> TokenPair:
    _, access, refresh, expires_in = pair
    return TokenPair(access_token=access, refresh_token=refresh, expires_in=expires_in)


@router.post("/login", response_model=TokenPair)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenPair:
    pair = await login_user(session, body.email, body.password)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return _token_pair(pair)


@router.post("/signup", response_model=TokenPair)
async def signup(
    body: SignupRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenPair:
    pair = await signup_user(session, body.email, body.password, body.full_name or body.name)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )
    return _token_pair(pair)


@router.post("/refresh", response_model=TokenPair)
async def refresh(
    session: AsyncSession = Depends(get_session),
    x_refresh_token: str | None = Depends(refresh_header),
    body: RefreshRequest | None = None,
) -> TokenPair:
    token = x_refresh_token or (body.refresh_token if body else None)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token required (header X-Refresh-Token or body refresh_token)",
        )
    pair = await refresh_tokens(session, token)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )
    return _token_pair(pair)


@router.post("/logout")
async def logout(
    session: AsyncSession = Depends(get_session),
    x_refresh_token: str | None = Depends(refresh_header),
    body: RefreshRequest | None = None,
) -> dict:
    token = x_refresh_token or (body.refresh_token if body else None)
    if token:
        _, jti = decode_refresh_token(token)
        if jti:
            await revoke_refresh_token(session, jti)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserPublic)
async def me(current_user: User = Depends(get_current_user)) -> UserPublic:
    return user_to_public(current_user)


# --- Google SSO ---

def _is_allowed_redirect_uri(redirect_uri: str) -> bool:
    """Allow only redirect URIs under configured CORS origins."""
    for origin in settings.cors_origins_list:
        if redirect_uri == origin or redirect_uri.startswith(origin.rstrip("/") + "/"):
            return True
    return False


def _frontend_redirect(state: str | None) -> str | None:
    if not state:
        return None
    redirect_uri = decode_state(state)
    if redirect_uri and _is_allowed_redirect_uri(redirect_uri):
        return redirect_uri
    return None


@router.get("/google")
async def google_login(
    redirect_uri: str | None = Query(None, alias="redirect_uri"),
    state: str | None = Query(None),
):
    # Browser button flow: bounce straight to Google when the redirect target is ours
    if redirect_uri and _is_allowed_redirect_uri(redirect_uri):
        return RedirectResponse(url=get_google_authorization_url(redirect_uri=redirect_uri), status_code=302)
    url = get_google_authorization_url(state=state or str(uuid4()))
    return {"authorization_url": url}


@router.get("/google/callback")
async def google_callback(
    code: str = Query(..., alias="code"),
    state: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
):
    tokens = await exchange_code_for_tokens(code)
    if not tokens:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to exchange code with Google. Check GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, and GOOGLE_REDIRECT_URI.",
        )
    access_token = tokens.get("access_token")
    if not access_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No access token from Google")
    info = await get_google_user_info(access_token)
    if not info:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to get user info from Google")
    email = info.get("email")
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Google account has no email")
    logger.info("Google sign-in for %s", email)
    user = await get_or_create_google_user(session, email=email, name=info.get("name"))
    pair = await issue_tokens(session, user)

    frontend_redirect = _frontend_redirect(state)
    if frontend_redirect:
        _, access, refresh, expires_in = pair
        fragment = urlencode({
            "access_token": access,
            "refresh_token": refresh,
            "expires_in": str(expires_in),
        })
        return RedirectResponse(url=f"{frontend_redirect}#{fragment}", status_code=302)
    return _token_pair(pair)
