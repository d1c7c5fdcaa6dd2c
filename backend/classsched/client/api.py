from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"
NETWORK_ERROR_MESSAGE = "Network error. Please try again."


class ApiError(RuntimeError):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class DuplicateStatus:
    is_duplicate: bool
    field: str | None = None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if isinstance(body.get(key), str):
                return body[key]
    return response.reason_phrase


class ScheduleApiClient:
    """Async client for the schedule API, authenticated with a session token."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        headers = {"Accept": "application/json"}
        if session_token:
            headers["Authorization"] = f"Bearer {session_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self) -> "ScheduleApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(0, NETWORK_ERROR_MESSAGE) from exc
        if response.is_error:
            message = _error_message(response)
            logger.debug("%s %s failed with %s: %s", method, path, response.status_code, message)
            raise ApiError(response.status_code, message)
        return response.json()

    async def list_schedules(self) -> list[dict]:
        return await self._request("GET", "/schedule")

    async def list_schedules_by_email(self, email: str) -> list[dict]:
        return await self._request("GET", "/schedules", params={"email": email})

    async def create_schedule(self, data: Mapping[str, str]) -> dict:
        return await self._request("POST", "/schedule", json=dict(data))

    async def update_schedule(self, schedule_id: str, data: Mapping[str, str]) -> dict:
        return await self._request("PUT", f"/schedule/{schedule_id}", json=dict(data))

    async def delete_schedule(self, schedule_id: str) -> str:
        body = await self._request("DELETE", f"/schedule/{schedule_id}")
        return body["message"]

    async def check_duplicates(
        self,
        *,
        course_code: str | None = None,
        descriptive_title: str | None = None,
        exclude_id: str | None = None,
    ) -> DuplicateStatus:
        payload: dict[str, str] = {}
        if course_code:
            payload["courseCode"] = course_code
        if descriptive_title:
            payload["descriptiveTitle"] = descriptive_title
        if exclude_id:
            payload["excludeId"] = exclude_id
        body = await self._request("POST", "/schedule/check-duplicates", json=payload)
        return DuplicateStatus(is_duplicate=bool(body["isDuplicate"]), field=body.get("field"))

    async def get_session(self) -> dict:
        return await self._request("GET", "/auth/session")

    async def get_profile_options(self) -> dict:
        return await self._request("GET", "/user/profile/options")

    async def save_profile(self, profile: Mapping[str, str]) -> bool:
        body = await self._request("POST", "/user/profile", json=dict(profile))
        return bool(body.get("ok"))
