from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace

from classsched.client.api import ApiError, ScheduleApiClient


@dataclass(frozen=True)
class ProfileSelection:
    program: str = ""
    year: str = ""
    semester: str = ""
    academic_year: str = ""

    @classmethod
    def from_user(cls, user: Mapping[str, object]) -> "ProfileSelection":
        return cls(
            program=str(user.get("program") or ""),
            year=str(user.get("year") or ""),
            semester=str(user.get("semester") or ""),
            academic_year=str(user.get("academicYear") or ""),
        )

    def is_complete(self) -> bool:
        return all(value.strip() for value in (self.program, self.year, self.semester, self.academic_year))

    def to_payload(self) -> dict[str, str]:
        return {
            "program": self.program,
            "year": self.year,
            "semester": self.semester,
            "academicYear": self.academic_year,
        }


def needs_onboarding(user: Mapping[str, object]) -> bool:
    return not ProfileSelection.from_user(user).is_complete()


def has_changes(initial: ProfileSelection, current: ProfileSelection) -> bool:
    return initial != current


class ProfileOnboarding:
    """The one-time profile prompt, reused later to edit the same fields."""

    def __init__(self, api: ScheduleApiClient, user: Mapping[str, object], *, edit_mode: bool = False) -> None:
        self._api = api
        self.initial = ProfileSelection.from_user(user)
        self.selection = self.initial
        self.edit_mode = edit_mode
        self.open = edit_mode or not self.initial.is_complete()
        self.error: str | None = None

    def select(self, **values: str) -> None:
        self.selection = replace(self.selection, **values)

    async def submit(self) -> bool:
        if not self.selection.is_complete():
            self.error = "All fields are required."
            return False
        if self.edit_mode and not has_changes(self.initial, self.selection):
            self.open = False
            return True
        try:
            await self._api.save_profile(self.selection.to_payload())
        except ApiError:
            self.error = "Failed to save profile."
            return False
        self.initial = self.selection
        self.error = None
        self.open = False
        self.edit_mode = False
        return True
