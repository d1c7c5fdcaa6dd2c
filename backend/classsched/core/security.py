from datetime import datetime, timedelta, timezone
import hashlib
import secrets

from jose import JWTError, jwt

from classsched.core.config import get_settings

STATE_AUDIENCE = "classsched:oauth-state"


def create_state_token(provider: str, *, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.oauth_state_expire_minutes)
    )
    payload = {
        "provider": provider,
        "nonce": secrets.token_urlsafe(16),
        "aud": STATE_AUDIENCE,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_state_token(token: str, provider: str) -> bool:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=STATE_AUDIENCE,
        )
    except JWTError:
        return False
    return payload.get("provider") == provider


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)


def hash_session_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
