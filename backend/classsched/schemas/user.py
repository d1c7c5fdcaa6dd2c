from datetime import datetime

from pydantic import ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel

from classsched.schemas.schedule import CamelModel


class ProfileUpdate(CamelModel):
    program: str | None = None
    year: str | None = None
    semester: str | None = None
    academic_year: str | None = None

    @field_validator("program", "year", "semester", "academic_year")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()


class ProfileOut(CamelModel):
    program: str | None = None
    year: str | None = None
    semester: str | None = None
    academic_year: str | None = None
    profile_complete: bool

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ProfileOptions(CamelModel):
    programs: list[str]
    years: list[str]
    semesters: list[str]
    academic_years: list[str]


class UserOut(ProfileOut):
    id: str
    email: EmailStr
    name: str | None = None
    image: str | None = None


class SessionOut(CamelModel):
    user: UserOut
    expires: datetime


class OkOut(CamelModel):
    ok: bool = True
