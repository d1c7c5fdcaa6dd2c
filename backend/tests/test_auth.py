from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

from sqlalchemy import select

from classsched.core.config import get_settings
from classsched.core.security import create_state_token, hash_session_token
from classsched.models.user import Account, AuthSession, User
from classsched.services import oauth
from classsched.services.oauth import OAuthError, OAuthProfile


def fake_sign_in(profile: OAuthProfile):
    def complete_sign_in(settings, code):
        assert code == "auth-code"
        return profile

    return complete_sign_in


def signed_in_token(client, monkeypatch, email="a@x.com", subject="google-1"):
    monkeypatch.setattr(
        oauth,
        "complete_sign_in",
        fake_sign_in(OAuthProfile(provider_account_id=subject, email=email, name="Ada")),
    )
    state = create_state_token(oauth.GOOGLE_PROVIDER)
    response = client.get(
        "/api/auth/callback/google",
        params={"code": "auth-code", "state": state},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return response.cookies.get(get_settings().session_cookie_name)


def test_signin_redirects_to_google_with_signed_state(client):
    response = client.get("/api/auth/signin/google", follow_redirects=False)

    assert response.status_code == 307
    location = urlparse(response.headers["location"])
    assert location.netloc == "accounts.google.com"
    query = parse_qs(location.query)
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid email profile"]
    assert query["state"][0]


def test_callback_creates_user_account_and_session(client, monkeypatch, session_factory):
    token = signed_in_token(client, monkeypatch)

    assert token
    db = session_factory()
    try:
        user = db.execute(select(User).where(User.email == "a@x.com")).scalar_one()
        account = db.execute(select(Account).where(Account.user_id == user.id)).scalar_one()
        session_row = db.execute(select(AuthSession).where(AuthSession.user_id == user.id)).scalar_one()
    finally:
        db.close()
    assert account.provider == "google"
    assert account.provider_account_id == "google-1"
    assert session_row.session_token_hash == hash_session_token(token)


def test_session_cookie_authenticates(client, monkeypatch):
    signed_in_token(client, monkeypatch)

    response = client.get("/api/auth/session")

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "a@x.com"
    assert body["user"]["profileComplete"] is False
    assert body["expires"]


def test_repeat_sign_in_reuses_user(client, monkeypatch, session_factory):
    signed_in_token(client, monkeypatch)
    signed_in_token(client, monkeypatch)

    db = session_factory()
    try:
        assert len(db.execute(select(User)).scalars().all()) == 1
        assert len(db.execute(select(Account)).scalars().all()) == 1
        assert len(db.execute(select(AuthSession)).scalars().all()) == 2
    finally:
        db.close()


def test_callback_rejects_bad_state(client, monkeypatch):
    monkeypatch.setattr(oauth, "complete_sign_in", fake_sign_in(OAuthProfile("x", "a@x.com")))

    response = client.get(
        "/api/auth/callback/google",
        params={"code": "auth-code", "state": "not-a-token"},
        follow_redirects=False,
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid sign-in state"


def test_callback_rejects_expired_state(client):
    state = create_state_token(oauth.GOOGLE_PROVIDER, expires_delta=timedelta(seconds=-5))

    response = client.get(
        "/api/auth/callback/google",
        params={"code": "auth-code", "state": state},
        follow_redirects=False,
    )

    assert response.status_code == 401


def test_callback_maps_provider_failure_to_401(client, monkeypatch):
    def failing(settings, code):
        raise OAuthError("Token exchange failed")

    monkeypatch.setattr(oauth, "complete_sign_in", failing)
    state = create_state_token(oauth.GOOGLE_PROVIDER)

    response = client.get(
        "/api/auth/callback/google",
        params={"code": "auth-code", "state": state},
        follow_redirects=False,
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Sign-in with Google failed"


def test_signout_deletes_session(client, monkeypatch):
    token = signed_in_token(client, monkeypatch)
    headers = {"Authorization": f"Bearer {token}"}

    response = client.post("/api/auth/signout", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    client.cookies.clear()
    assert client.get("/api/auth/session", headers=headers).status_code == 401


def test_expired_session_is_rejected(client, sign_in, session_factory):
    token = sign_in("old@x.com")
    db = session_factory()
    try:
        row = db.execute(
            select(AuthSession).where(AuthSession.session_token_hash == hash_session_token(token))
        ).scalar_one()
        row.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.commit()
    finally:
        db.close()

    response = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized - Please sign in"}


def test_session_expiry_slides_after_update_age(client, sign_in, session_factory):
    settings = get_settings()
    token = sign_in("slide@x.com")
    stale_expiry = datetime.now(timezone.utc) + timedelta(
        seconds=settings.session_max_age_seconds - settings.session_update_age_seconds - 60
    )
    db = session_factory()
    try:
        row = db.execute(
            select(AuthSession).where(AuthSession.session_token_hash == hash_session_token(token))
        ).scalar_one()
        row.expires_at = stale_expiry
        db.commit()
    finally:
        db.close()

    response = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    expires = datetime.fromisoformat(response.json()["expires"])
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    assert expires > stale_expiry + timedelta(hours=23)


def test_unknown_token_is_rejected(client):
    response = client.get("/api/auth/session", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
