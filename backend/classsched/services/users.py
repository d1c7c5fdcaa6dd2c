from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classsched.core.exceptions import NotFound, ValidationFailed
from classsched.models.user import Account, User
from classsched.schemas.user import ProfileUpdate
from classsched.services.oauth import OAuthProfile

logger = logging.getLogger(__name__)

PROGRAM_OPTIONS = [
    "BS Criminology",
    "BS Information Technology",
    "BS Computer Science",
    "2-Year Associate in Computer Science",
    "BS Business Administration",
    "Major in Marketing Management",
    "Bachelor of Elementary Education",
    "Bachelor of Secondary Education",
    "Senior High School - ABM",
    "Senior High School - HUMSS",
    "Senior High School - STEM",
    "Senior High School - TVL",
    "Special Program: Professional Education Unit Earner",
]
YEAR_OPTIONS = ["1st Year", "2nd Year", "3rd Year", "4th Year"]
SEMESTER_OPTIONS = ["1st Semester", "2nd Semester"]
ACADEMIC_YEAR_OPTIONS = ["2024-2025", "2025-2026", "2026-2027"]


def _query_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def upsert_oauth_user(db: Session, *, provider: str, profile: OAuthProfile) -> User:
    """Find or create the user behind a third-party identity and link the account."""
    account = db.execute(
        select(Account).where(
            Account.provider == provider,
            Account.provider_account_id == profile.provider_account_id,
        )
    ).scalar_one_or_none()
    if account is not None:
        user = db.get(User, account.user_id)
    else:
        user = _query_user_by_email(db, profile.email)

    if user is None:
        user = User(email=profile.email, name=profile.name, image=profile.image)
        db.add(user)
        db.flush()
        logger.info("Created user %s from %s sign-in", profile.email, provider)
    else:
        user.name = profile.name or user.name
        user.image = profile.image or user.image

    if account is None:
        db.add(Account(user_id=user.id, provider=provider, provider_account_id=profile.provider_account_id))

    try:
        db.commit()
    except IntegrityError:
        # A concurrent callback for the same identity won the insert.
        db.rollback()
        user = _query_user_by_email(db, profile.email)
        if user is None:
            raise
    db.refresh(user)
    return user


def update_profile(db: Session, *, user_id: str, payload: ProfileUpdate) -> User:
    values = payload.model_dump()
    if not all(values.values()):
        raise ValidationFailed("All fields required")
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User")
    for key, value in values.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user
