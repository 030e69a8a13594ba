from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol

from .api_client import LotteryApiError
from .config import SchedulerSettings
from .types import Action, DrawSnapshot


class LotteryClientProtocol(Protocol):
    async def get_current_draw(self) -> Optional[DrawSnapshot]:
        ...

    async def schedule_next_draw(self) -> DrawSnapshot:
        ...

    async def conduct_draw(self, draw_id: str) -> Mapping[str, Any]:
        ...

    async def close(self) -> None:
        ...


@dataclass
class SchedulerResult:
    action: Action
    draw_id: Optional[str] = None
    winners: int = 0


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class DrawScheduler:
    """Keeps one draw scheduled and conducts it once its draw date has passed."""

    def __init__(
        self,
        settings: SchedulerSettings,
        client: LotteryClientProtocol,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], dt.datetime] = _utc_now,
    ) -> None:
        self._settings = settings
        self._client = client
        self._clock = clock
        self._logger = logger or logging.getLogger("lottery.scheduler")

    async def run_forever(self) -> None:
        interval = self._settings.poll_interval_seconds
        self._logger.info("Draw scheduler started; poll interval=%s", interval)
        try:
            while True:
                try:
                    await self._tick()
                except Exception as exc:
                    self._logger.exception("Scheduler iteration failed: %s", exc)
                await asyncio.sleep(interval)
        finally:
            await self._client.close()

    async def run_once(self) -> SchedulerResult:
        try:
            return await self._tick()
        finally:
            await self._client.close()

    async def _tick(self) -> SchedulerResult:
        current = await self._client.get_current_draw()

        if current is None:
            draw = await self._client.schedule_next_draw()
            self._logger.info("No open draw; scheduled %s for %s", draw.draw_id, draw.draw_date.isoformat())
            return SchedulerResult(action=Action.SCHEDULED, draw_id=draw.draw_id)

        if not current.is_due(self._clock()):
            self._logger.debug(
                "Draw %s not due until %s; waiting.", current.draw_id, current.draw_date.isoformat()
            )
            return SchedulerResult(action=Action.SKIPPED, draw_id=current.draw_id)

        try:
            outcome = await self._client.conduct_draw(current.draw_id)
        except LotteryApiError as exc:
            if exc.code != "already_completed":
                raise
            self._logger.info("Draw %s was already completed; skipping.", current.draw_id)
            return SchedulerResult(action=Action.SKIPPED, draw_id=current.draw_id)

        winners = int(outcome.get("winners_count", 0))
        self._logger.info(
            "Conducted draw %s -> %s (%s winners)",
            current.draw_id,
            outcome.get("draw", {}).get("winning_numbers"),
            winners,
        )
        return SchedulerResult(action=Action.CONDUCTED, draw_id=current.draw_id, winners=winners)
