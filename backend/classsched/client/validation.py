from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
import logging

from classsched.client.api import DuplicateStatus, ScheduleApiClient
from classsched.client.debounce import DEFAULT_DELAY_SECONDS, Debouncer

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "courseCode": "Course Code",
    "descriptiveTitle": "Descriptive Title",
}


class FieldState(str, Enum):
    clean = "clean"
    pending = "pending"
    conflict = "conflict"


class FieldValidator:
    """Tracks the duplicate state of one form field as the user types."""

    def __init__(
        self,
        field_name: str,
        check: Callable[[str], Awaitable[DuplicateStatus]],
        *,
        delay: float = DEFAULT_DELAY_SECONDS,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self.field_name = field_name
        self.label = FIELD_LABELS.get(field_name, field_name)
        self.state = FieldState.clean
        self.error: str | None = None
        self._check = check
        self._on_error = on_error
        self._debouncer: Debouncer[DuplicateStatus] = Debouncer(delay)

    def on_input(self, value: str) -> None:
        candidate = value.strip()
        if not candidate:
            self._debouncer.cancel()
            self._mark_clean()
            return
        self.state = FieldState.pending
        self._debouncer.schedule(lambda: self._check(candidate), self._apply, self._fail)

    def reset(self) -> None:
        self._debouncer.cancel()
        self._mark_clean()

    async def settle(self) -> None:
        await self._debouncer.drain()

    def mark_conflict(self, message: str | None = None) -> None:
        self._debouncer.cancel()
        self.state = FieldState.conflict
        self.error = message or f"{self.label} already exists"

    def _mark_clean(self) -> None:
        self.state = FieldState.clean
        self.error = None

    def _apply(self, status: DuplicateStatus) -> None:
        if status.is_duplicate:
            self.state = FieldState.conflict
            self.error = f"{self.label} already exists"
        else:
            self._mark_clean()

    def _fail(self, exc: Exception) -> None:
        logger.warning("Duplicate check for %s failed: %s", self.field_name, exc)
        self._mark_clean()
        if self._on_error is not None:
            self._on_error("Could not check for duplicates. Please try again.")


class DuplicateGuard:
    """Per-field validators for course code and title, sharing one API client."""

    def __init__(
        self,
        api: ScheduleApiClient,
        *,
        exclude_id: str | None = None,
        delay: float = DEFAULT_DELAY_SECONDS,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self._api = api
        self.exclude_id = exclude_id
        self.fields = {
            "courseCode": FieldValidator(
                "courseCode",
                lambda value: api.check_duplicates(course_code=value, exclude_id=self.exclude_id),
                delay=delay,
                on_error=on_error,
            ),
            "descriptiveTitle": FieldValidator(
                "descriptiveTitle",
                lambda value: api.check_duplicates(descriptive_title=value, exclude_id=self.exclude_id),
                delay=delay,
                on_error=on_error,
            ),
        }

    def on_input(self, field_name: str, value: str) -> None:
        validator = self.fields.get(field_name)
        if validator is not None:
            validator.on_input(value)

    @property
    def has_conflicts(self) -> bool:
        return any(v.state is FieldState.conflict for v in self.fields.values())

    @property
    def errors(self) -> dict[str, str]:
        return {name: v.error for name, v in self.fields.items() if v.error}

    async def check_all(self, *, course_code: str, descriptive_title: str) -> DuplicateStatus:
        """Final combined probe run right before submitting."""
        for validator in self.fields.values():
            validator.reset()
        status = await self._api.check_duplicates(
            course_code=course_code,
            descriptive_title=descriptive_title,
            exclude_id=self.exclude_id,
        )
        if status.is_duplicate:
            field_name = "courseCode" if status.field == FIELD_LABELS["courseCode"] else "descriptiveTitle"
            self.fields[field_name].mark_conflict()
        return status

    def reset(self) -> None:
        for validator in self.fields.values():
            validator.reset()

    async def settle(self) -> None:
        for validator in self.fields.values():
            await validator.settle()
