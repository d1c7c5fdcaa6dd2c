from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum
import math

from classsched.validation import parse_clock, split_time


class SortField(str, Enum):
    course_code = "courseCode"
    descriptive_title = "descriptiveTitle"
    units = "units"
    days = "days"
    time = "time"
    room = "room"
    instructor = "instructor"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


def _units_key(value: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.inf
    return number if math.isfinite(number) else math.inf


def _time_key(value: str) -> tuple[int, str]:
    parts = split_time(value or "")
    start = parse_clock(parts[0]) if parts else None
    if start is None:
        return (24 * 60, (value or "").lower())
    return (start.hour * 60 + start.minute, "")


def sort_key(record: dict, field: SortField):
    value = record.get(field.value)
    if field is SortField.units:
        return _units_key(value)
    if field is SortField.time:
        return _time_key(value)
    return (value or "").casefold()


class ScheduleCollection:
    """The in-memory list of records shown in the schedule table."""

    def __init__(self, records: Iterable[dict] = ()) -> None:
        self._records: list[dict] = [dict(r) for r in records]

    def __iter__(self) -> Iterator[dict]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, schedule_id: str) -> dict | None:
        return next((r for r in self._records if r.get("id") == schedule_id), None)

    def replace_all(self, records: Iterable[dict]) -> None:
        self._records = [dict(r) for r in records]

    def add(self, record: dict) -> None:
        self._records.append(dict(record))

    def merge(self, record: dict) -> bool:
        for index, existing in enumerate(self._records):
            if existing.get("id") == record.get("id"):
                self._records[index] = {**existing, **record}
                return True
        return False

    def remove(self, schedule_id: str) -> bool:
        before = len(self._records)
        self._records = [r for r in self._records if r.get("id") != schedule_id]
        return len(self._records) != before

    def sorted_by(self, field: SortField | str, direction: SortDirection | str = SortDirection.asc) -> list[dict]:
        field = SortField(field)
        reverse = SortDirection(direction) is SortDirection.desc
        return sorted(self._records, key=lambda r: sort_key(r, field), reverse=reverse)
