from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .engine import MAX_NUMBER, MIN_NUMBER, NUMBERS_COUNT


class TicketPurchaseRequest(BaseModel):
    draw_id: str = Field(..., min_length=1, description="Identifier of the current draw.")
    numbers: List[int] = Field(..., description="6 unique numbers between 1 and 50.")

    @field_validator("numbers")
    @classmethod
    def validate_numbers(cls, value: List[int]) -> List[int]:
        if len(value) != NUMBERS_COUNT:
            raise ValueError(f"Must select exactly {NUMBERS_COUNT} numbers.")
        if len(set(value)) != NUMBERS_COUNT:
            raise ValueError("Numbers must be unique.")
        for n in value:
            if not MIN_NUMBER <= n <= MAX_NUMBER:
                raise ValueError(f"Numbers must be between {MIN_NUMBER} and {MAX_NUMBER}.")
        return value


class CreateDrawRequest(BaseModel):
    draw_date: dt.datetime
    total_prize: Decimal = Field(..., gt=0)


class DrawResponse(BaseModel):
    id: str
    draw_date: str
    status: str
    total_prize: str
    tickets_sold: int
    winning_numbers: Optional[List[int]] = None
    created_at: Optional[str] = None


class TicketResponse(BaseModel):
    id: str
    user_id: str
    draw_id: str
    numbers: List[int]
    purchase_date: str
    price: str
    is_winner: bool = False


class QuickPickResponse(BaseModel):
    numbers: List[int]
