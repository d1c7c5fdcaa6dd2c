import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.orm import Session

from classsched.api.deps import RequestContext, get_app_settings, get_current_context, get_db
from classsched.core.config import Settings
from classsched.core.exceptions import Unauthorized
from classsched.core.security import create_state_token, verify_state_token
from classsched.models.user import User
from classsched.schemas.user import OkOut, SessionOut, UserOut
from classsched.services import oauth
from classsched.services.rate_limit import enforce_rate_limit
from classsched.services.sessions import create_session, delete_session, purge_expired_sessions
from classsched.services.users import upsert_oauth_user

router = APIRouter()
logger = logging.getLogger(__name__)


def _set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


@router.get("/signin/google")
def sign_in_with_google(settings: Settings = Depends(get_app_settings)) -> RedirectResponse:
    state = create_state_token(oauth.GOOGLE_PROVIDER)
    return RedirectResponse(
        oauth.build_authorization_url(settings, state=state),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )


@router.get("/callback/google")
def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    enforce_rate_limit(
        request,
        scope="auth.callback",
        limit=settings.oauth_callback_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    if error:
        logger.info("Provider refused sign-in: %s", error)
        raise Unauthorized("Sign-in was cancelled or refused")
    if not code or not state or not verify_state_token(state, oauth.GOOGLE_PROVIDER):
        raise Unauthorized("Invalid sign-in state")

    try:
        profile = oauth.complete_sign_in(settings, code)
    except oauth.OAuthError as exc:
        raise Unauthorized("Sign-in with Google failed") from exc

    user = upsert_oauth_user(db, provider=oauth.GOOGLE_PROVIDER, profile=profile)
    purge_expired_sessions(db)
    token, _ = create_session(db, settings, user=user)
    logger.info("User %s signed in", user.email)

    response = RedirectResponse(settings.frontend_url, status_code=status.HTTP_303_SEE_OTHER)
    _set_session_cookie(response, settings, token)
    return response


@router.get("/session", response_model=SessionOut)
def current_session(
    context: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
) -> SessionOut:
    user = db.get(User, context.user_id)
    return SessionOut(user=UserOut.model_validate(user), expires=context.expires)


@router.post("/signout", response_model=OkOut)
def sign_out(
    response: Response,
    context: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> OkOut:
    delete_session(db, context.session_token)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return OkOut(ok=True)
