"""Create/edit flow for schedule records.

Typing into the course code or title triggers a debounced duplicate probe.
Submitting checks the field shapes, runs one combined duplicate probe (the
user may never have paused long enough for the per-field one), then writes
and merges the server's record into the local collection.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
import logging

from classsched.client.api import ApiError, ScheduleApiClient
from classsched.client.banner import TimedBanner
from classsched.client.collection import ScheduleCollection
from classsched.client.debounce import DEFAULT_DELAY_SECONDS
from classsched.client.validation import DuplicateGuard
from classsched.validation import (
    ValidationRules,
    check_schedule_shape,
    compose_time,
    format_clock,
    parse_clock,
    split_time,
)

logger = logging.getLogger(__name__)


def _display_clock(value: str) -> str:
    parsed = parse_clock(value) if value else None
    return format_clock(parsed) if parsed else value


# Form attribute -> wire key. Start and end are joined into `time` on submit.
WIRE_KEYS: dict[str, str] = {
    "course_code": "courseCode",
    "descriptive_title": "descriptiveTitle",
    "units": "units",
    "days": "days",
    "start_time": "startTime",
    "end_time": "endTime",
    "room": "room",
    "instructor": "instructor",
}
FORM_FIELDS: dict[str, str] = {wire: attr for attr, wire in WIRE_KEYS.items()}


@dataclass
class ScheduleFormData:
    course_code: str = ""
    descriptive_title: str = ""
    units: str = ""
    days: str = ""
    start_time: str = ""
    end_time: str = ""
    room: str = ""
    instructor: str = ""

    @classmethod
    def from_record(cls, record: dict) -> "ScheduleFormData":
        start, end = split_time(record.get("time") or "") or ("", "")
        return cls(
            course_code=record.get("courseCode", ""),
            descriptive_title=record.get("descriptiveTitle", ""),
            units=str(record.get("units", "")),
            days=record.get("days", ""),
            start_time=start,
            end_time=end,
            room=record.get("room", ""),
            instructor=record.get("instructor", ""),
        )

    def to_payload(self) -> dict[str, str]:
        values = {WIRE_KEYS[key]: value.strip() for key, value in asdict(self).items()}
        start = values.pop("startTime")
        end = values.pop("endTime")
        values["time"] = compose_time(_display_clock(start), _display_clock(end)) if start and end else ""
        return values


class ScheduleFormController:
    def __init__(
        self,
        api: ScheduleApiClient,
        collection: ScheduleCollection,
        *,
        rules: ValidationRules = ValidationRules(),
        editing: dict | None = None,
        banner: TimedBanner | None = None,
        debounce_delay: float = DEFAULT_DELAY_SECONDS,
    ) -> None:
        self._api = api
        self._collection = collection
        self.rules = rules
        self.banner = banner or TimedBanner()
        self.editing_id: str | None = editing.get("id") if editing else None
        self.data = ScheduleFormData.from_record(editing) if editing else ScheduleFormData()
        self.field_errors: dict[str, str] = {}
        self.submitting = False
        self.guard = DuplicateGuard(
            api,
            exclude_id=self.editing_id,
            delay=debounce_delay,
            on_error=self.banner.show,
        )

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    @property
    def errors(self) -> dict[str, str]:
        return {**self.field_errors, **self.guard.errors}

    @property
    def can_submit(self) -> bool:
        return not self.submitting and not self.guard.has_conflicts

    def set_field(self, name: str, value: str) -> None:
        if name not in FORM_FIELDS:
            raise KeyError(name)
        setattr(self.data, FORM_FIELDS[name], value)
        self.field_errors.pop(name, None)
        self.guard.on_input(name, value)

    def reset(self) -> None:
        self.data = ScheduleFormData()
        self.field_errors = {}
        self.guard.reset()

    async def submit(self) -> dict | None:
        """Validate, probe for duplicates, then create or update.

        Returns the stored record, or None when anything blocked the write.
        """
        if not self.can_submit:
            return None

        payload = self.data.to_payload()
        report = check_schedule_shape(payload, self.rules)
        if not report.ok:
            self.field_errors = dict(report.errors)
            self.banner.show(report.first_error())
            return None
        self.field_errors = {}

        self.submitting = True
        try:
            status = await self.guard.check_all(
                course_code=payload["courseCode"],
                descriptive_title=payload["descriptiveTitle"],
            )
            if status.is_duplicate:
                self.banner.show(f"{status.field} already exists")
                return None

            if self.is_editing:
                record = await self._api.update_schedule(self.editing_id, payload)
                self._collection.merge(record)
            else:
                record = await self._api.create_schedule(payload)
                self._collection.add(record)
                self.reset()
            return record
        except ApiError as exc:
            action = "update" if self.is_editing else "add"
            logger.info("Failed to %s schedule: %s", action, exc.message)
            self.banner.show(exc.message or f"Failed to {action} schedule. Please try again.")
            return None
        finally:
            self.submitting = False


class ScheduleBoard:
    """Loads the signed-in user's records and handles delete and edit."""

    def __init__(
        self,
        api: ScheduleApiClient,
        *,
        rules: ValidationRules = ValidationRules(),
        banner: TimedBanner | None = None,
        debounce_delay: float = DEFAULT_DELAY_SECONDS,
    ) -> None:
        self._api = api
        self.rules = rules
        self.banner = banner or TimedBanner()
        self.debounce_delay = debounce_delay
        self.schedules = ScheduleCollection()

    async def load(self) -> None:
        try:
            self.schedules.replace_all(await self._api.list_schedules())
        except ApiError as exc:
            logger.info("Failed to fetch schedules: %s", exc.message)
            self.banner.show("Failed to load schedules. Please refresh the page.")

    def new_form(self) -> ScheduleFormController:
        return ScheduleFormController(
            self._api,
            self.schedules,
            rules=self.rules,
            banner=self.banner,
            debounce_delay=self.debounce_delay,
        )

    def edit_form(self, schedule_id: str) -> ScheduleFormController | None:
        record = self.schedules.get(schedule_id)
        if record is None:
            self.banner.show("Invalid schedule ID")
            return None
        return ScheduleFormController(
            self._api,
            self.schedules,
            rules=self.rules,
            editing=record,
            banner=self.banner,
            debounce_delay=self.debounce_delay,
        )

    async def delete(self, schedule_id: str) -> bool:
        try:
            await self._api.delete_schedule(schedule_id)
        except ApiError as exc:
            self.banner.show(exc.message or "Failed to delete schedule. Please try again.")
            return False
        self.schedules.remove(schedule_id)
        return True
