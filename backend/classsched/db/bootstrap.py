from __future__ import annotations

import logging

from sqlalchemy import inspect, text

from classsched.db.base import Base
from classsched.db.session import engine
import classsched.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "program", "year", "semester", "academic_year"},
    "accounts": {"id", "user_id", "provider", "provider_account_id"},
    "auth_sessions": {"id", "user_id", "session_token_hash", "expires_at"},
    "schedules": {
        "id",
        "course_code",
        "descriptive_title",
        "units",
        "days",
        "time",
        "room",
        "instructor",
        "email",
        "created_at",
    },
}

PROFILE_COLUMNS: dict[str, str] = {
    "program": "VARCHAR(200)",
    "year": "VARCHAR(50)",
    "semester": "VARCHAR(50)",
    "academic_year": "VARCHAR(20)",
}


def _ensure_users_profile_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "users" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("users")}
        for column_name, column_type in PROFILE_COLUMNS.items():
            if column_name in column_names:
                continue
            connection.execute(text(f"ALTER TABLE users ADD COLUMN {column_name} {column_type}"))


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_users_profile_columns()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
