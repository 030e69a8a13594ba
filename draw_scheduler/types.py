from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence


class Action(str, Enum):
    SCHEDULED = "scheduled"
    CONDUCTED = "conducted"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DrawSnapshot:
    draw_id: str
    draw_date: dt.datetime
    status: str
    winning_numbers: Optional[Sequence[int]] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DrawSnapshot":
        try:
            draw_id = str(payload["id"])
            raw_date = str(payload["draw_date"])
        except KeyError as exc:
            raise ValueError(f"Draw payload missing field: {exc.args[0]}") from exc
        try:
            draw_date = dt.datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError("Invalid draw date format") from exc
        if draw_date.tzinfo is None:
            draw_date = draw_date.replace(tzinfo=dt.timezone.utc)
        numbers = payload.get("winning_numbers")
        return cls(
            draw_id=draw_id,
            draw_date=draw_date,
            status=str(payload.get("status", "scheduled")),
            winning_numbers=tuple(numbers) if numbers else None,
        )

    def is_due(self, now: dt.datetime) -> bool:
        return self.draw_date <= now
