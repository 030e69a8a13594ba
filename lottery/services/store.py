"""SQLAlchemy implementation of the store used by the lifecycle manager."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy.engine import Engine

from ..db import make_engine, make_session_factory
from ..models import Base
from ..types import DrawRecord, NumberSet, TicketRecord
from .draws import DrawRepository
from .tickets import TicketRepository


class _GuardEntry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class SqlLotteryStore:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        factory = make_session_factory(engine)
        self.draws = DrawRepository(factory)
        self.tickets = TicketRepository(factory)
        self._guards: Dict[Tuple[str, str], _GuardEntry] = {}
        self._guards_lock = threading.Lock()

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlLotteryStore":
        return cls(make_engine(database_url, echo=echo))

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    @contextmanager
    def ticket_guard(self, user_id: str, draw_id: str) -> Iterator[None]:
        """Serialize count-then-insert for one (user, draw) pair within this process.

        Entries are reference counted and dropped once the last holder leaves.
        """
        key = (user_id, draw_id)
        with self._guards_lock:
            entry = self._guards.get(key)
            if entry is None:
                entry = self._guards[key] = _GuardEntry()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guards_lock:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._guards[key]

    # draws

    def get_current_draw(self) -> Optional[DrawRecord]:
        return self.draws.get_current_draw()

    def get_draw(self, draw_id: str) -> Optional[DrawRecord]:
        return self.draws.get_draw(draw_id)

    def list_recent_draws(self, limit: int = 10) -> List[DrawRecord]:
        return self.draws.list_recent_draws(limit)

    def create_draw(self, draw: DrawRecord) -> DrawRecord:
        return self.draws.create_draw(draw)

    def update_winning_numbers(self, draw_id: str, numbers: NumberSet) -> Optional[DrawRecord]:
        return self.draws.update_winning_numbers(draw_id, numbers)

    # tickets

    def get_tickets_for_draw(self, draw_id: str) -> List[TicketRecord]:
        return self.tickets.get_tickets_for_draw(draw_id)

    def get_tickets_for_user(self, user_id: str) -> List[TicketRecord]:
        return self.tickets.get_tickets_for_user(user_id)

    def create_ticket(self, ticket: TicketRecord) -> TicketRecord:
        return self.tickets.create_ticket(ticket)

    def set_ticket_winner(self, ticket_id: str, is_winner: bool) -> Optional[TicketRecord]:
        return self.tickets.set_ticket_winner(ticket_id, is_winner)
