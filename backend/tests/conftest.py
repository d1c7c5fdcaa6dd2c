import os

# Must be set before classsched builds its engine from settings.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from classsched.api.deps import get_app_settings, get_db
from classsched.client.api import ScheduleApiClient
from classsched.core.config import get_settings
from classsched.db.base import Base
from classsched.main import app
from classsched.models.user import User
from classsched.services.rate_limit import clear_rate_limiter
from classsched.services.sessions import create_session

SCHEDULE_PAYLOAD = {
    "courseCode": "CS101",
    "descriptiveTitle": "Intro",
    "units": "3",
    "days": "MWF",
    "time": "9:00 AM-10:00 AM",
    "room": "101",
    "instructor": "Lee",
}


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def client(session_factory):
    clear_rate_limiter()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    clear_rate_limiter()


@pytest.fixture()
def override_settings(client):
    def apply(**updates):
        patched = get_settings().model_copy(update=updates)
        app.dependency_overrides[get_app_settings] = lambda: patched
        return patched

    return apply


@pytest.fixture()
def sign_in(session_factory):
    """Create a user with a live session and return its bearer token."""

    def make(email: str, **profile) -> str:
        db = session_factory()
        try:
            user = User(email=email, name=email.split("@")[0], **profile)
            db.add(user)
            db.commit()
            db.refresh(user)
            token, _ = create_session(db, get_settings(), user=user)
            return token
        finally:
            db.close()

    return make


@pytest.fixture()
def auth_headers(sign_in):
    def make(email: str = "a@x.com", **profile) -> dict[str, str]:
        return {"Authorization": f"Bearer {sign_in(email, **profile)}"}

    return make


@pytest.fixture()
def api_client(client):
    """Build async API clients that talk to the app in-process."""

    def make(token: str | None = None) -> ScheduleApiClient:
        return ScheduleApiClient(
            "http://testserver/api",
            session_token=token,
            transport=httpx.ASGITransport(app=app),
        )

    return make


@pytest.fixture()
def schedule_payload():
    return dict(SCHEDULE_PAYLOAD)
