from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

import requests

from .config import SchedulerSettings
from .types import DrawSnapshot


class LotteryApiError(RuntimeError):
    """Raised when the lottery API answers with an error envelope."""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class LotteryApiClient:
    """Thin wrapper around the lottery HTTP API used by the scheduler."""

    def __init__(self, settings: SchedulerSettings, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        if settings.admin_api_key:
            self._session.headers["X-Admin-Token"] = settings.admin_api_key

    async def get_current_draw(self) -> Optional[DrawSnapshot]:
        data = await asyncio.to_thread(self._request, "GET", "/api/lottery/current-draw")
        return DrawSnapshot.from_payload(data) if data else None

    async def schedule_next_draw(self) -> DrawSnapshot:
        data = await asyncio.to_thread(self._request, "POST", "/api/admin/draws/schedule-next")
        return DrawSnapshot.from_payload(data)

    async def conduct_draw(self, draw_id: str) -> Mapping[str, Any]:
        return await asyncio.to_thread(self._request, "POST", f"/api/admin/draws/{draw_id}/conduct")

    async def close(self) -> None:
        self._session.close()

    def _request(self, method: str, path: str) -> Any:
        url = f"{self._settings.api_url}{path}"
        resp = self._session.request(method, url, timeout=self._settings.request_timeout_seconds)
        try:
            payload = resp.json()
        except ValueError:
            resp.raise_for_status()
            raise LotteryApiError(resp.status_code, "invalid_payload", "API returned non-JSON payload")

        if not isinstance(payload, Mapping):
            raise LotteryApiError(resp.status_code, "invalid_payload", "API returned non-object payload")
        if not payload.get("success"):
            error = payload.get("error") or {}
            raise LotteryApiError(
                resp.status_code,
                str(error.get("code", "http_error")),
                str(error.get("message", resp.reason)),
            )
        return payload.get("data")
