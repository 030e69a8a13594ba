from __future__ import annotations

import datetime as dt
import json
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base

from .types import DrawRecord, DrawStatus, NumberSet, TicketRecord

Base = declarative_base()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def to_db_datetime(value: dt.datetime) -> dt.datetime:
    """Aware datetimes are stored as naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def from_db_datetime(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


def dump_numbers(numbers: Iterable[int]) -> str:
    return json.dumps(sorted(int(n) for n in numbers))


def load_numbers(raw: Optional[str]) -> Optional[NumberSet]:
    if not raw:
        return None
    return tuple(json.loads(raw))


class Draw(Base):
    __tablename__ = "draws"

    id = Column(String(36), primary_key=True)
    draw_date = Column(DateTime, nullable=False, index=True)
    winning_numbers = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default=DrawStatus.SCHEDULED.value)
    total_prize = Column(Numeric(12, 2), nullable=False)
    tickets_sold = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: to_db_datetime(utcnow()), nullable=False)

    def set_numbers(self, numbers: Iterable[int]) -> None:
        self.winning_numbers = dump_numbers(numbers)

    def get_numbers(self) -> Optional[NumberSet]:
        return load_numbers(self.winning_numbers)

    @classmethod
    def from_record(cls, record: DrawRecord) -> "Draw":
        draw = cls(
            id=record.id,
            draw_date=to_db_datetime(record.draw_date),
            status=record.status.value,
            total_prize=record.total_prize,
            tickets_sold=record.tickets_sold,
        )
        if record.winning_numbers:
            draw.set_numbers(record.winning_numbers)
        if record.created_at is not None:
            draw.created_at = to_db_datetime(record.created_at)
        return draw

    def to_record(self) -> DrawRecord:
        return DrawRecord(
            id=self.id,
            draw_date=from_db_datetime(self.draw_date),
            status=DrawStatus(self.status),
            total_prize=Decimal(self.total_prize),
            tickets_sold=int(self.tickets_sold or 0),
            winning_numbers=self.get_numbers(),
            created_at=from_db_datetime(self.created_at),
        )


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (Index("ix_tickets_user_draw", "user_id", "draw_id"),)

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False)
    draw_id = Column(String(36), ForeignKey("draws.id"), nullable=False, index=True)
    numbers = Column(Text, nullable=False)
    purchase_date = Column(DateTime, default=lambda: to_db_datetime(utcnow()), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    is_winner = Column(Boolean, nullable=False, default=False)

    def set_numbers(self, numbers: Iterable[int]) -> None:
        self.numbers = dump_numbers(numbers)

    def get_numbers(self) -> NumberSet:
        return load_numbers(self.numbers) or ()

    @classmethod
    def from_record(cls, record: TicketRecord) -> "Ticket":
        ticket = cls(
            id=record.id,
            user_id=record.user_id,
            draw_id=record.draw_id,
            purchase_date=to_db_datetime(record.purchase_date),
            price=record.price,
            is_winner=record.is_winner,
        )
        ticket.set_numbers(record.numbers)
        return ticket

    def to_record(self) -> TicketRecord:
        return TicketRecord(
            id=self.id,
            user_id=self.user_id,
            draw_id=self.draw_id,
            numbers=self.get_numbers(),
            purchase_date=from_db_datetime(self.purchase_date),
            price=Decimal(self.price),
            is_winner=bool(self.is_winner),
        )
