from __future__ import annotations

from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from ..db import session_scope
from ..models import Draw, dump_numbers
from ..types import DrawRecord, DrawStatus, NumberSet

OPEN_STATUSES = (DrawStatus.SCHEDULED.value, DrawStatus.ACTIVE.value)


class DrawRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create_draw(self, record: DrawRecord) -> DrawRecord:
        with session_scope(self._session_factory) as session:
            draw = Draw.from_record(record)
            session.add(draw)
            session.flush()
            session.refresh(draw)
            return draw.to_record()

    def get_draw(self, draw_id: str) -> Optional[DrawRecord]:
        with session_scope(self._session_factory) as session:
            draw = session.get(Draw, draw_id)
            return draw.to_record() if draw else None

    def get_current_draw(self) -> Optional[DrawRecord]:
        with session_scope(self._session_factory) as session:
            draw = (
                session.query(Draw)
                .filter(Draw.status.in_(OPEN_STATUSES))
                .order_by(Draw.draw_date.asc())
                .first()
            )
            return draw.to_record() if draw else None

    def list_recent_draws(self, limit: int = 10) -> List[DrawRecord]:
        with session_scope(self._session_factory) as session:
            query = session.query(Draw).order_by(Draw.draw_date.desc())
            if limit:
                query = query.limit(limit)
            return [draw.to_record() for draw in query.all()]

    def update_winning_numbers(self, draw_id: str, numbers: NumberSet) -> Optional[DrawRecord]:
        """Set winning numbers and complete the draw in one conditional write.

        Returns ``None`` when the draw is missing or was already completed.
        """
        with session_scope(self._session_factory) as session:
            result = session.execute(
                update(Draw)
                .where(Draw.id == draw_id, Draw.status != DrawStatus.COMPLETED.value)
                .values(winning_numbers=dump_numbers(numbers), status=DrawStatus.COMPLETED.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
            draw = session.get(Draw, draw_id)
            session.refresh(draw)
            return draw.to_record()
