from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from classsched.api.deps import (
    RequestContext,
    get_app_settings,
    get_current_context,
    get_db,
    get_optional_context,
)
from classsched.core.config import Settings
from classsched.core.exceptions import Unauthorized
from classsched.schemas.schedule import (
    DuplicateCheckRequest,
    DuplicateCheckResult,
    MessageOut,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
)
from classsched.services import schedules as schedule_service
from classsched.services.rate_limit import enforce_rate_limit

router = APIRouter()


@router.get("/schedules", response_model=list[ScheduleOut])
def list_schedules_by_email(email: str = Query(min_length=1), db: Session = Depends(get_db)) -> list[ScheduleOut]:
    return schedule_service.list_schedules_for(db, email)


@router.get("/schedule", response_model=list[ScheduleOut])
def list_my_schedules(
    context: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    return schedule_service.list_schedules_for(db, context.email, newest_first=True)


@router.post("/schedule", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    context: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ScheduleOut:
    return schedule_service.create_schedule(db, settings, payload=payload, owner_email=context.email)


@router.post(
    "/schedule/check-duplicates",
    response_model=DuplicateCheckResult,
    response_model_exclude_none=True,
)
def check_duplicates(
    payload: DuplicateCheckRequest,
    request: Request,
    context: RequestContext | None = Depends(get_optional_context),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> DuplicateCheckResult:
    enforce_rate_limit(
        request,
        scope="schedule.check_duplicates",
        limit=settings.duplicate_check_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    owner_email = None
    if settings.scope_duplicates_to_owner:
        if context is None:
            raise Unauthorized("Unauthorized - Please sign in")
        owner_email = context.email
    return schedule_service.find_duplicate(
        db,
        course_code=payload.course_code,
        descriptive_title=payload.descriptive_title,
        exclude_id=payload.exclude_id,
        owner_email=owner_email,
    )


@router.put("/schedule/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    context: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ScheduleOut:
    return schedule_service.update_schedule(
        db,
        settings,
        schedule_id=schedule_id,
        payload=payload,
        email=context.email,
    )


@router.delete("/schedule/{schedule_id}", response_model=MessageOut)
def delete_schedule(
    schedule_id: str,
    context: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> MessageOut:
    schedule_service.delete_schedule(db, settings, schedule_id=schedule_id, email=context.email)
    return MessageOut(message="Schedule deleted successfully")
