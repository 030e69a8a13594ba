from __future__ import annotations

from typing import List, Optional

from sqlalchemy import desc, update
from sqlalchemy.orm import sessionmaker

from ..db import session_scope
from ..models import Draw, Ticket
from ..types import TicketRecord


class TicketRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create_ticket(self, record: TicketRecord) -> TicketRecord:
        with session_scope(self._session_factory) as session:
            ticket = Ticket.from_record(record)
            session.add(ticket)
            session.execute(
                update(Draw)
                .where(Draw.id == record.draw_id)
                .values(tickets_sold=Draw.tickets_sold + 1)
                .execution_options(synchronize_session=False)
            )
            session.flush()
            session.refresh(ticket)
            return ticket.to_record()

    def get_tickets_for_draw(self, draw_id: str) -> List[TicketRecord]:
        with session_scope(self._session_factory) as session:
            tickets = (
                session.query(Ticket)
                .filter(Ticket.draw_id == draw_id)
                .order_by(Ticket.purchase_date.asc())
                .all()
            )
            return [ticket.to_record() for ticket in tickets]

    def get_tickets_for_user(self, user_id: str) -> List[TicketRecord]:
        with session_scope(self._session_factory) as session:
            tickets = (
                session.query(Ticket)
                .filter(Ticket.user_id == user_id)
                .order_by(desc(Ticket.purchase_date))
                .all()
            )
            return [ticket.to_record() for ticket in tickets]

    def set_ticket_winner(self, ticket_id: str, is_winner: bool) -> Optional[TicketRecord]:
        with session_scope(self._session_factory) as session:
            ticket = session.get(Ticket, ticket_id)
            if not ticket:
                return None
            ticket.is_winner = is_winner
            session.flush()
            session.refresh(ticket)
            return ticket.to_record()
