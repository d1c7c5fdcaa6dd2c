"""Field-shape rules shared by the API and the client form.

The server only enforces required fields, units and (optionally) days. The
client additionally checks the time range before it ever submits.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import time
import math
import re

SCHEDULE_FIELDS: tuple[str, ...] = (
    "courseCode",
    "descriptiveTitle",
    "units",
    "days",
    "time",
    "room",
    "instructor",
)

DEFAULT_DAY_PATTERNS: tuple[str, ...] = ("MWF", "TTH", "M", "T", "W", "TH", "F", "S")

_CLOCK_12H = re.compile(r"^(1[0-2]|0?[1-9]):([0-5][0-9])\s*([AaPp][Mm])$")
_CLOCK_24H = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


@dataclass(frozen=True)
class ValidationRules:
    validate_days: bool = False
    allowed_day_patterns: tuple[str, ...] = DEFAULT_DAY_PATTERNS
    require_time_order: bool = True


@dataclass
class ShapeReport:
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def first_error(self) -> str | None:
        return next(iter(self.errors.values()), None)


def missing_required_fields(payload: Mapping[str, object], fields: Iterable[str] = SCHEDULE_FIELDS) -> list[str]:
    missing: list[str] = []
    for name in fields:
        value = payload.get(name)
        if isinstance(value, str):
            value = value.strip()
        if not value:
            missing.append(name)
    return missing


def is_valid_units(value: object) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(str(value).strip())
    except ValueError:
        return False
    return math.isfinite(number) and number > 0


def is_valid_days(value: str, patterns: Iterable[str] = DEFAULT_DAY_PATTERNS) -> bool:
    return value.strip().upper() in {pattern.upper() for pattern in patterns}


def parse_clock(value: str) -> time | None:
    text = value.strip()
    match = _CLOCK_12H.match(text)
    if match:
        hour = int(match.group(1)) % 12
        if match.group(3).upper() == "PM":
            hour += 12
        return time(hour, int(match.group(2)))
    match = _CLOCK_24H.match(text)
    if match:
        return time(int(match.group(1)), int(match.group(2)))
    return None


def format_clock(value: time) -> str:
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def compose_time(start: str, end: str) -> str:
    return f"{start.strip()}-{end.strip()}"


def split_time(value: str) -> tuple[str, str] | None:
    start, sep, end = value.partition("-")
    if not sep or not start.strip() or not end.strip():
        return None
    return start.strip(), end.strip()


def is_valid_time_range(value: str, *, require_order: bool = True) -> bool:
    parts = split_time(value)
    if parts is None:
        return False
    start, end = (parse_clock(part) for part in parts)
    if start is None or end is None:
        return False
    if require_order:
        return end > start
    return True


def check_schedule_shape(payload: Mapping[str, object], rules: ValidationRules = ValidationRules()) -> ShapeReport:
    report = ShapeReport()
    for name in missing_required_fields(payload):
        report.errors[name] = "This field is required"
    if "units" not in report.errors and not is_valid_units(payload.get("units")):
        report.errors["units"] = "Please enter a valid number of units"
    if rules.validate_days and "days" not in report.errors:
        if not is_valid_days(str(payload.get("days")), rules.allowed_day_patterns):
            report.errors["days"] = f"Please enter valid days ({', '.join(rules.allowed_day_patterns)})"
    if "time" not in report.errors:
        time_value = str(payload.get("time"))
        if not is_valid_time_range(time_value, require_order=False):
            report.errors["time"] = "Please enter a valid time range (start-end)"
        elif rules.require_time_order and not is_valid_time_range(time_value):
            report.errors["time"] = "End time must be later than start time"
    return report
