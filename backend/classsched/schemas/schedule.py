from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScheduleFields(CamelModel):
    """All seven schedule fields, each optional so presence is checked by the route."""

    course_code: str | None = None
    descriptive_title: str | None = None
    units: str | None = None
    days: str | None = None
    time: str | None = None
    room: str | None = None
    instructor: str | None = None

    @field_validator("units", mode="before")
    @classmethod
    def stringify_units(cls, value: object) -> object:
        # Forms post units as text, scripts tend to post numbers.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("course_code", "descriptive_title", "days", "time", "room", "instructor")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()


class ScheduleCreate(ScheduleFields):
    pass


class ScheduleUpdate(ScheduleFields):
    pass


class ScheduleOut(CamelModel):
    id: str
    course_code: str
    descriptive_title: str
    units: str
    days: str
    time: str
    room: str
    instructor: str
    owner: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class DuplicateCheckRequest(CamelModel):
    course_code: str | None = None
    descriptive_title: str | None = None
    exclude_id: str | None = None


class DuplicateCheckResult(CamelModel):
    is_duplicate: bool
    field: str | None = None


class MessageOut(BaseModel):
    message: str
