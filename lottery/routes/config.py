from __future__ import annotations

from flask import Blueprint

from ..engine import MAX_NUMBER, MIN_NUMBER, NUMBERS_COUNT
from ..extensions import get_settings
from ..responses import ok

bp = Blueprint("config", __name__)


@bp.get("/config")
def get_config():
    lottery = get_settings().lottery
    return ok(
        {
            "min_number": MIN_NUMBER,
            "max_number": MAX_NUMBER,
            "numbers_count": NUMBERS_COUNT,
            "ticket_price": str(lottery.ticket_price),
            "max_tickets_per_user": lottery.max_tickets_per_user,
            "min_prize": str(lottery.min_prize),
            "draw_hour": lottery.draw_hour,
        }
    )
