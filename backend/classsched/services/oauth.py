"""Google OAuth 2.0 authorization-code flow.

Only the three provider calls live here: building the authorize URL,
exchanging the code, and reading the signed-in identity. Sessions and users
are handled by the callers.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from urllib.parse import urlencode

import httpx

from classsched.core.config import Settings

logger = logging.getLogger(__name__)

GOOGLE_PROVIDER = "google"


class OAuthError(RuntimeError):
    pass


@dataclass(frozen=True)
class OAuthProfile:
    provider_account_id: str
    email: str
    name: str | None = None
    image: str | None = None


def build_authorization_url(settings: Settings, *, state: str) -> str:
    query = urlencode(
        {
            "client_id": settings.google_client_id,
            "redirect_uri": settings.google_redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
    )
    return f"{settings.google_authorize_url}?{query}"


def exchange_code(settings: Settings, code: str) -> str:
    """Trade the authorization code for an access token."""
    try:
        with httpx.Client(timeout=settings.oauth_timeout_seconds) as client:
            response = client.post(
                settings.google_token_url,
                data={
                    "code": code,
                    "client_id": settings.google_client_id,
                    "client_secret": settings.google_client_secret,
                    "redirect_uri": settings.google_redirect_uri,
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("OAuth token exchange failed: %s", exc)
        raise OAuthError("Token exchange failed") from exc

    access_token = response.json().get("access_token")
    if not access_token:
        raise OAuthError("Token response did not include an access token")
    return access_token


def fetch_profile(settings: Settings, access_token: str) -> OAuthProfile:
    try:
        with httpx.Client(timeout=settings.oauth_timeout_seconds) as client:
            response = client.get(
                settings.google_userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("OAuth userinfo request failed: %s", exc)
        raise OAuthError("Userinfo request failed") from exc

    data = response.json()
    subject = data.get("sub")
    email = (data.get("email") or "").strip().lower()
    if not subject or not email:
        raise OAuthError("Provider did not return an identity")
    if data.get("email_verified") is False:
        raise OAuthError("Provider email is not verified")
    return OAuthProfile(
        provider_account_id=str(subject),
        email=email,
        name=data.get("name"),
        image=data.get("picture"),
    )


def complete_sign_in(settings: Settings, code: str) -> OAuthProfile:
    return fetch_profile(settings, exchange_code(settings, code))
