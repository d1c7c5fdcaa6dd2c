from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from classsched.core.config import Settings
from classsched.core.security import generate_session_token, hash_session_token
from classsched.models.user import AuthSession, User

logger = logging.getLogger(__name__)


def normalize_dt(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def create_session(db: Session, settings: Settings, *, user: User) -> tuple[str, AuthSession]:
    """Persist a new session for `user` and return the raw token with its row."""
    token = generate_session_token()
    row = AuthSession(
        user_id=user.id,
        session_token_hash=hash_session_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=settings.session_max_age_seconds),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return token, row


def resolve_session(db: Session, settings: Settings, token: str) -> tuple[AuthSession, User] | None:
    row = db.execute(
        select(AuthSession).where(AuthSession.session_token_hash == hash_session_token(token))
    ).scalar_one_or_none()
    if row is None:
        return None

    now = datetime.now(timezone.utc)
    expires_at = normalize_dt(row.expires_at)
    if expires_at is None or expires_at <= now:
        db.delete(row)
        db.commit()
        return None

    user = db.get(User, row.user_id)
    if user is None:
        return None

    # Slide the expiry forward, but write at most once per update window.
    max_age = timedelta(seconds=settings.session_max_age_seconds)
    update_age = timedelta(seconds=settings.session_update_age_seconds)
    if expires_at - max_age + update_age <= now:
        row.expires_at = now + max_age
        db.commit()
        db.refresh(row)
    return row, user


def delete_session(db: Session, token: str) -> bool:
    result = db.execute(
        delete(AuthSession).where(AuthSession.session_token_hash == hash_session_token(token))
    )
    db.commit()
    return result.rowcount > 0


def purge_expired_sessions(db: Session) -> int:
    result = db.execute(delete(AuthSession).where(AuthSession.expires_at <= datetime.now(timezone.utc)))
    db.commit()
    if result.rowcount:
        logger.info("Purged %d expired session(s)", result.rowcount)
    return result.rowcount
