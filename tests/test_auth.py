from __future__ import annotations

from fastapi.testclient import TestClient

from sifixa.core.security import decode_refresh_token
from sifixa.services.auth_service import login_user, refresh_tokens, revoke_refresh_token, signup_user


def test_signup_then_login_issues_tokens(db) -> None:
    async def scenario(session):
        signed_up = await signup_user(session, "Tech@Sifixa.com", "correct-horse", "Tech")
        good = await login_user(session, "tech@sifixa.com", "correct-horse")
        bad = await login_user(session, "tech@sifixa.com", "wrong-password")
        return signed_up, good, bad

    signed_up, good, bad = db(scenario)

    user, access, refresh, expires_in = signed_up
    assert user.email == "tech@sifixa.com"
    assert user.is_staff is False
    assert access and refresh and expires_in > 0
    assert good is not None and good[0].id == user.id
    assert bad is None


def test_rotated_refresh_token_cannot_be_reused(db) -> None:
    async def scenario(session):
        _, _, first, _ = await signup_user(session, "maria@example.com", "correct-horse")
        rotated = await refresh_tokens(session, first)
        replayed = await refresh_tokens(session, first)
        again = await refresh_tokens(session, rotated[2])
        return rotated, replayed, again

    rotated, replayed, again = db(scenario)

    assert rotated is not None
    assert replayed is None
    assert again is not None


def test_revoked_refresh_token_cannot_refresh(db) -> None:
    async def scenario(session):
        _, _, refresh, _ = await signup_user(session, "maria@example.com", "correct-horse")
        _, jti = decode_refresh_token(refresh)
        await revoke_refresh_token(session, jti)
        return await refresh_tokens(session, refresh)

    assert db(scenario) is None


def test_duplicate_signup_is_conflict(client: TestClient) -> None:
    body = {"email": "maria@example.com", "password": "correct-horse", "name": "Maria"}

    assert client.post("/api/v1/auth/signup", json=body).status_code == 200
    resp = client.post("/api/v1/auth/signup", json={**body, "email": "MARIA@example.com"})

    assert resp.status_code == 409


def test_wrong_password_is_unauthorized(client: TestClient) -> None:
    client.post("/api/v1/auth/signup", json={"email": "maria@example.com", "password": "correct-horse"})

    resp = client.post("/api/v1/auth/login", json={"email": "maria@example.com", "password": "nope-nope"})

    assert resp.status_code == 401
    assert client.post(
        "/api/v1/auth/login", json={"email": "nobody@example.com", "password": "correct-horse"}
    ).status_code == 401


def test_me_refresh_and_logout_flow(client: TestClient) -> None:
    tokens = client.post(
        "/api/v1/auth/signup", json={"email": "maria@example.com", "password": "correct-horse", "full_name": "Maria"}
    ).json()

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "maria@example.com"
    assert me.json()["is_staff"] is False

    rotated = client.post("/api/v1/auth/refresh", headers={"X-Refresh-Token": tokens["refresh_token"]})
    assert rotated.status_code == 200
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).status_code == 401

    new_refresh = rotated.json()["refresh_token"]
    assert client.post("/api/v1/auth/logout", headers={"X-Refresh-Token": new_refresh}).status_code == 200
    assert client.post("/api/v1/auth/refresh", headers={"X-Refresh-Token": new_refresh}).status_code == 401
