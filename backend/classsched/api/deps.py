from collections.abc import Generator
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from classsched.core.config import Settings, get_settings
from classsched.core.exceptions import Unauthorized
from classsched.db.session import SessionLocal
from classsched.services.sessions import normalize_dt, resolve_session

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Identity of the signed-in caller, built once per request."""

    user_id: str
    email: str
    name: str | None
    program: str | None
    year: str | None
    semester: str | None
    academic_year: str | None
    session_token: str
    expires: datetime

    @property
    def profile_complete(self) -> bool:
        return all((self.program, self.year, self.semester, self.academic_year))


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_app_settings() -> Settings:
    return get_settings()


def _session_token(request: Request, credentials: HTTPAuthorizationCredentials | None, settings: Settings) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


def get_optional_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RequestContext | None:
    token = _session_token(request, credentials, settings)
    if token is None:
        return None
    resolved = resolve_session(db, settings, token)
    if resolved is None:
        return None
    session_row, user = resolved
    return RequestContext(
        user_id=user.id,
        email=user.email,
        name=user.name,
        program=user.program,
        year=user.year,
        semester=user.semester,
        academic_year=user.academic_year,
        session_token=token,
        expires=normalize_dt(session_row.expires_at),
    )


def get_current_context(context: RequestContext | None = Depends(get_optional_context)) -> RequestContext:
    if context is None:
        raise Unauthorized("Unauthorized - Please sign in")
    return context
