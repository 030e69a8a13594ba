from __future__ import annotations

import datetime as dt
import logging
import secrets
import uuid
from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Protocol
from zoneinfo import ZoneInfo

from .. import engine
from ..config import LotterySettings
from ..errors import (
    AlreadyCompleted,
    DrawClosed,
    DrawNotFound,
    DrawUnavailable,
    InvalidNumbers,
    InvalidParameters,
    TicketLimitExceeded,
)
from ..types import (
    DrawDetails,
    DrawOutcome,
    DrawRecord,
    DrawStatus,
    LotteryStatistics,
    NumberSet,
    TicketRecord,
    WinningTicket,
)


class LotteryStore(Protocol):
    def get_current_draw(self) -> Optional[DrawRecord]:
        ...

    def get_draw(self, draw_id: str) -> Optional[DrawRecord]:
        ...

    def list_recent_draws(self, limit: int = 10) -> List[DrawRecord]:
        ...

    def create_draw(self, draw: DrawRecord) -> DrawRecord:
        ...

    def update_winning_numbers(self, draw_id: str, numbers: NumberSet) -> Optional[DrawRecord]:
        ...

    def get_tickets_for_draw(self, draw_id: str) -> List[TicketRecord]:
        ...

    def get_tickets_for_user(self, user_id: str) -> List[TicketRecord]:
        ...

    def create_ticket(self, ticket: TicketRecord) -> TicketRecord:
        ...

    def set_ticket_winner(self, ticket_id: str, is_winner: bool) -> Optional[TicketRecord]:
        ...

    def ticket_guard(self, user_id: str, draw_id: str) -> AbstractContextManager:
        ...


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class DrawLifecycleManager:
    """Enforces ticket eligibility and drives draws from scheduled to completed."""

    def __init__(
        self,
        store: LotteryStore,
        settings: Optional[LotterySettings] = None,
        *,
        clock: Callable[[], dt.datetime] = utc_now,
        randbelow: Callable[[int], int] = secrets.randbelow,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._settings = settings or LotterySettings()
        self._clock = clock
        self._randbelow = randbelow
        self._logger = logger or logging.getLogger("lottery.lifecycle")

    @property
    def settings(self) -> LotterySettings:
        return self._settings

    def generate_quick_pick(self) -> NumberSet:
        return engine.generate_quick_pick(self._randbelow)

    def get_odds(self) -> Dict[str, str]:
        return engine.compute_odds()

    def get_current_draw(self) -> Optional[DrawRecord]:
        return self._store.get_current_draw()

    def get_recent_draws(self, limit: int = 10) -> List[DrawRecord]:
        return self._store.list_recent_draws(limit)

    def get_user_tickets(self, user_id: str) -> List[TicketRecord]:
        return self._store.get_tickets_for_user(user_id)

    def get_draw_tickets(self, draw_id: str) -> List[TicketRecord]:
        return self._store.get_tickets_for_draw(draw_id)

    def get_draw_details(self, draw_id: str) -> DrawDetails:
        draw = self._store.get_draw(draw_id)
        if draw is None:
            raise DrawNotFound(f"Draw {draw_id} not found")
        tickets = self._store.get_tickets_for_draw(draw_id)
        return DrawDetails(
            draw=draw,
            ticket_count=len(tickets),
            winning_tickets=sum(1 for ticket in tickets if ticket.is_winner),
        )

    def create_draw(self, draw_date: dt.datetime, total_prize: Any) -> DrawRecord:
        if not engine.validate_draw_parameters(
            draw_date, total_prize, now=self._clock(), min_prize=self._settings.min_prize
        ):
            raise InvalidParameters(
                f"Draw date must be in the future and prize at least {self._settings.min_prize}"
            )
        if draw_date.tzinfo is None:
            draw_date = draw_date.replace(tzinfo=dt.timezone.utc)

        draw = self._store.create_draw(
            DrawRecord(
                id=_new_id(),
                draw_date=draw_date,
                status=DrawStatus.SCHEDULED,
                total_prize=engine.to_decimal(total_prize),
                tickets_sold=0,
                winning_numbers=None,
                created_at=self._clock(),
            )
        )
        self._logger.info(
            "Draw %s scheduled for %s with prize %s", draw.id, draw.draw_date.isoformat(), draw.total_prize
        )
        return draw

    def purchase_ticket(self, user_id: str, draw_id: str, numbers: Any) -> TicketRecord:
        if not engine.validate_number_set(numbers):
            raise InvalidNumbers()

        draw = self._store.get_current_draw()
        if draw is None or draw.id != draw_id:
            raise DrawUnavailable()

        if not draw.status.accepts_tickets:
            raise DrawClosed()

        limit = self._settings.max_tickets_per_user
        with self._store.ticket_guard(user_id, draw_id):
            owned = [t for t in self._store.get_tickets_for_user(user_id) if t.draw_id == draw_id]
            if len(owned) >= limit:
                raise TicketLimitExceeded(f"Maximum {limit} tickets per draw exceeded")

            ticket = self._store.create_ticket(
                TicketRecord(
                    id=_new_id(),
                    user_id=user_id,
                    draw_id=draw_id,
                    numbers=engine.normalize_number_set(numbers),
                    purchase_date=self._clock(),
                    price=self._settings.ticket_price,
                    is_winner=False,
                )
            )

        self._logger.info("Ticket %s purchased by %s for draw %s", ticket.id, user_id, draw_id)
        return ticket

    def conduct_draw(self, draw_id: str) -> DrawOutcome:
        draw = self._store.get_current_draw()
        if draw is None or draw.id != draw_id:
            # A completed draw is never current; report it as such rather than missing.
            previous = self._store.get_draw(draw_id)
            if previous is not None and previous.status is DrawStatus.COMPLETED:
                raise AlreadyCompleted()
            raise DrawNotFound()

        if draw.status is DrawStatus.COMPLETED:
            raise AlreadyCompleted()

        winning_numbers = engine.generate_number_set(self._randbelow)
        updated = self._store.update_winning_numbers(draw_id, winning_numbers)
        if updated is None:
            # Another caller completed the draw between the read and the write.
            raise AlreadyCompleted()

        winners: List[WinningTicket] = []
        for ticket in self._store.get_tickets_for_draw(draw_id):
            validation = engine.score_ticket(ticket.numbers, winning_numbers, draw.total_prize)
            if validation.is_winner:
                self._store.set_ticket_winner(ticket.id, True)
                winners.append(WinningTicket(ticket=ticket.copy(is_winner=True), validation=validation))

        self._logger.info(
            "Draw %s completed with numbers %s; %s winning tickets",
            draw_id,
            list(winning_numbers),
            len(winners),
        )
        return DrawOutcome(draw=updated, winners=winners)

    def next_draw_date(self) -> dt.datetime:
        now = self._clock()
        draw_time = dt.time(self._settings.draw_hour)
        if self._settings.draw_timezone:
            zone = ZoneInfo(self._settings.draw_timezone)
            tomorrow = now.astimezone(zone).date() + dt.timedelta(days=1)
            return dt.datetime.combine(tomorrow, draw_time, tzinfo=zone)
        # Naive wall time, so astimezone() picks the system offset in effect on that day.
        tomorrow = now.astimezone().date() + dt.timedelta(days=1)
        return dt.datetime.combine(tomorrow, draw_time).astimezone()

    def schedule_next_draw(self) -> DrawRecord:
        return self.create_draw(self.next_draw_date(), self._settings.base_prize)

    def get_statistics(self) -> LotteryStatistics:
        recent = self._store.list_recent_draws(self._settings.stats_window)
        awarded = sum(
            (draw.total_prize for draw in recent if draw.status is DrawStatus.COMPLETED),
            Decimal("0"),
        )
        return LotteryStatistics(
            total_draws=len(recent),
            total_tickets_sold=sum(draw.tickets_sold for draw in recent),
            total_prizes_awarded=awarded,
            odds=engine.compute_odds(),
        )
