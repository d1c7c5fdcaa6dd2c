from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classsched.api.deps import RequestContext, get_current_context, get_db
from classsched.schemas.user import OkOut, ProfileOptions, ProfileOut, ProfileUpdate
from classsched.services import users as user_service

router = APIRouter()


@router.get("/user/profile", response_model=ProfileOut)
def get_profile(context: RequestContext = Depends(get_current_context)) -> ProfileOut:
    return ProfileOut(
        program=context.program,
        year=context.year,
        semester=context.semester,
        academic_year=context.academic_year,
        profile_complete=context.profile_complete,
    )


@router.post("/user/profile", response_model=OkOut)
def save_profile(
    payload: ProfileUpdate,
    context: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
) -> OkOut:
    user_service.update_profile(db, user_id=context.user_id, payload=payload)
    return OkOut(ok=True)


@router.get("/user/profile/options", response_model=ProfileOptions)
def profile_options() -> ProfileOptions:
    return ProfileOptions(
        programs=user_service.PROGRAM_OPTIONS,
        years=user_service.YEAR_OPTIONS,
        semesters=user_service.SEMESTER_OPTIONS,
        academic_years=user_service.ACADEMIC_YEAR_OPTIONS,
    )
