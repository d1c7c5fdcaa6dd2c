from __future__ import annotations

from datetime import datetime, timezone
import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from classsched.core.config import Settings
from classsched.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from classsched.models.schedule import Schedule
from classsched.schemas.schedule import DuplicateCheckResult, ScheduleCreate, ScheduleUpdate
from classsched.validation import is_valid_days, is_valid_units, missing_required_fields

logger = logging.getLogger(__name__)

COURSE_CODE_LABEL = "Course Code"
DESCRIPTIVE_TITLE_LABEL = "Descriptive Title"

# Wire name -> column attribute for the seven client-editable fields.
EDITABLE_FIELDS: dict[str, str] = {
    "courseCode": "course_code",
    "descriptiveTitle": "descriptive_title",
    "units": "units",
    "days": "days",
    "time": "time",
    "room": "room",
    "instructor": "instructor",
}


def find_duplicate(
    db: Session,
    *,
    course_code: str | None,
    descriptive_title: str | None,
    exclude_id: str | None = None,
    owner_email: str | None = None,
) -> DuplicateCheckResult:
    """Probe for a record that already uses the given course code or title.

    Values that are missing or empty take no part in the match. When both
    values hit (on one record or on different ones) the course code is the
    field reported.
    """
    conditions = []
    if course_code:
        conditions.append(Schedule.course_code == course_code)
    if descriptive_title:
        conditions.append(Schedule.descriptive_title == descriptive_title)
    if not conditions:
        return DuplicateCheckResult(is_duplicate=False)

    statement = select(Schedule.course_code, Schedule.descriptive_title).where(or_(*conditions))
    if exclude_id:
        statement = statement.where(Schedule.id != exclude_id)
    if owner_email is not None:
        statement = statement.where(Schedule.email == owner_email)

    matches = db.execute(statement).all()
    if not matches:
        return DuplicateCheckResult(is_duplicate=False)
    if course_code and any(row.course_code == course_code for row in matches):
        return DuplicateCheckResult(is_duplicate=True, field=COURSE_CODE_LABEL)
    return DuplicateCheckResult(is_duplicate=True, field=DESCRIPTIVE_TITLE_LABEL)


def _wire_values(payload: ScheduleCreate | ScheduleUpdate, *, exclude_unset: bool) -> dict[str, str | None]:
    return payload.model_dump(by_alias=True, exclude_unset=exclude_unset)


def _check_units_and_days(values: dict[str, str | None], settings: Settings) -> None:
    if "units" in values and not is_valid_units(values["units"]):
        raise ValidationFailed("Units must be a number greater than zero", details={"field": "units"})
    if settings.validate_days and "days" in values:
        if not is_valid_days(values["days"] or "", settings.allowed_day_patterns):
            raise ValidationFailed(
                f"Days must be one of: {', '.join(settings.allowed_day_patterns)}",
                details={"field": "days"},
            )


def _reject_duplicates(
    db: Session,
    settings: Settings,
    *,
    course_code: str | None,
    descriptive_title: str | None,
    owner_email: str,
    exclude_id: str | None = None,
) -> None:
    if not settings.reject_duplicate_writes:
        return
    result = find_duplicate(
        db,
        course_code=course_code,
        descriptive_title=descriptive_title,
        exclude_id=exclude_id,
        owner_email=owner_email if settings.scope_duplicates_to_owner else None,
    )
    if result.is_duplicate:
        raise Conflict(f"{result.field} already exists", details={"field": result.field})


def create_schedule(db: Session, settings: Settings, *, payload: ScheduleCreate, owner_email: str) -> Schedule:
    values = _wire_values(payload, exclude_unset=False)
    missing = missing_required_fields(values)
    if missing:
        raise ValidationFailed("Missing required fields", details={"fields": missing})
    _check_units_and_days(values, settings)
    _reject_duplicates(
        db,
        settings,
        course_code=payload.course_code,
        descriptive_title=payload.descriptive_title,
        owner_email=owner_email,
    )

    schedule = Schedule(
        **{column: values[wire] for wire, column in EDITABLE_FIELDS.items()},
        email=owner_email,
        created_at=datetime.now(timezone.utc),
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info("Schedule %s created by %s", schedule.id, owner_email)
    return schedule


def get_owned_schedule(db: Session, settings: Settings, *, schedule_id: str, email: str) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise NotFound("Schedule")
    if settings.enforce_record_ownership and schedule.email != email:
        raise Forbidden("You do not own this schedule")
    return schedule


def update_schedule(
    db: Session,
    settings: Settings,
    *,
    schedule_id: str,
    payload: ScheduleUpdate,
    email: str,
) -> Schedule:
    schedule = get_owned_schedule(db, settings, schedule_id=schedule_id, email=email)

    # Unknown keys (id, _id, owner, createdAt...) never reach the model.
    values = _wire_values(payload, exclude_unset=True)
    empty = missing_required_fields(values, fields=values.keys())
    if empty:
        raise ValidationFailed("Missing required fields", details={"fields": empty})
    _check_units_and_days(values, settings)
    _reject_duplicates(
        db,
        settings,
        course_code=values.get("courseCode"),
        descriptive_title=values.get("descriptiveTitle"),
        owner_email=schedule.email,
        exclude_id=schedule.id,
    )

    for wire, value in values.items():
        setattr(schedule, EDITABLE_FIELDS[wire], value)
    db.commit()
    db.refresh(schedule)
    return schedule


def delete_schedule(db: Session, settings: Settings, *, schedule_id: str, email: str) -> None:
    schedule = get_owned_schedule(db, settings, schedule_id=schedule_id, email=email)
    db.delete(schedule)
    db.commit()
    logger.info("Schedule %s deleted by %s", schedule_id, email)


def list_schedules_for(db: Session, email: str, *, newest_first: bool = False) -> list[Schedule]:
    statement = select(Schedule).where(Schedule.email == email)
    if newest_first:
        statement = statement.order_by(Schedule.created_at.desc())
    return list(db.execute(statement).scalars())
