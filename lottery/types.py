from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

NumberSet = Tuple[int, ...]


class DrawStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"

    @property
    def accepts_tickets(self) -> bool:
        return self in (DrawStatus.SCHEDULED, DrawStatus.ACTIVE)


class PrizeLevel(str, Enum):
    JACKPOT = "jackpot"
    SECOND = "second"
    THIRD = "third"
    FOURTH = "fourth"
    NONE = "none"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class DrawRecord:
    id: str
    draw_date: dt.datetime
    status: DrawStatus
    total_prize: Decimal
    tickets_sold: int = 0
    winning_numbers: Optional[NumberSet] = None
    created_at: Optional[dt.datetime] = None

    def copy(self, **updates) -> "DrawRecord":
        return replace(self, **updates)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "draw_date": self.draw_date.isoformat(),
            "status": self.status.value,
            "total_prize": str(self.total_prize),
            "tickets_sold": self.tickets_sold,
            "winning_numbers": list(self.winning_numbers) if self.winning_numbers else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class TicketRecord:
    id: str
    user_id: str
    draw_id: str
    numbers: NumberSet
    purchase_date: dt.datetime
    price: Decimal
    is_winner: bool = False

    def copy(self, **updates) -> "TicketRecord":
        return replace(self, **updates)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "draw_id": self.draw_id,
            "numbers": list(self.numbers),
            "purchase_date": self.purchase_date.isoformat(),
            "price": str(self.price),
            "is_winner": self.is_winner,
        }


@dataclass(frozen=True)
class WinnerValidation:
    """Result of scoring one ticket against a set of winning numbers."""

    is_winner: bool
    match_count: int
    prize_level: PrizeLevel
    prize_amount: Decimal

    def to_dict(self) -> dict:
        return {
            "is_winner": self.is_winner,
            "match_count": self.match_count,
            "prize_level": self.prize_level.value,
            "prize_amount": str(self.prize_amount),
        }


@dataclass(frozen=True)
class WinningTicket:
    ticket: TicketRecord
    validation: WinnerValidation

    def to_dict(self) -> dict:
        payload = {"ticket": self.ticket.to_dict()}
        payload.update(self.validation.to_dict())
        return payload


@dataclass(frozen=True)
class DrawOutcome:
    draw: DrawRecord
    winners: List[WinningTicket] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "draw": self.draw.to_dict(),
            "winners_count": len(self.winners),
            "winners": [winner.to_dict() for winner in self.winners],
        }


@dataclass(frozen=True)
class DrawDetails:
    draw: DrawRecord
    ticket_count: int
    winning_tickets: int

    def to_dict(self) -> dict:
        payload = self.draw.to_dict()
        payload["ticket_count"] = self.ticket_count
        payload["winning_tickets"] = self.winning_tickets
        return payload


@dataclass(frozen=True)
class LotteryStatistics:
    total_draws: int
    total_tickets_sold: int
    total_prizes_awarded: Decimal
    odds: Dict[str, str]

    def to_dict(self) -> dict:
        return {
            "total_draws": self.total_draws,
            "total_tickets_sold": self.total_tickets_sold,
            "total_prizes_awarded": str(self.total_prizes_awarded),
            "odds": dict(self.odds),
        }


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as resolved by the HTTP layer."""

    user_id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
