from __future__ import annotations

from flask import Blueprint, request

from ..extensions import get_manager
from ..responses import ok
from ..schemas import DrawResponse, QuickPickResponse

bp = Blueprint("lottery", __name__)

MAX_DRAWS_LIMIT = 100


def limit_arg(default: int) -> int:
    limit = request.args.get("limit", default, type=int) or default
    return max(1, min(limit, MAX_DRAWS_LIMIT))


@bp.get("/current-draw")
def current_draw():
    draw = get_manager().get_current_draw()
    if draw is None:
        return ok(None, "No active draw")
    return ok(DrawResponse(**draw.to_dict()).model_dump(), "Current draw retrieved")


@bp.get("/draws")
def recent_draws():
    draws = get_manager().get_recent_draws(limit_arg(10))
    return ok([DrawResponse(**draw.to_dict()).model_dump() for draw in draws])


@bp.get("/draw/<draw_id>")
def draw_details(draw_id: str):
    details = get_manager().get_draw_details(draw_id)
    return ok(details.to_dict())


@bp.get("/quick-pick")
def quick_pick():
    numbers = get_manager().generate_quick_pick()
    return ok(QuickPickResponse(numbers=list(numbers)).model_dump(), "Quick pick numbers generated")


@bp.get("/odds")
def odds():
    return ok(get_manager().get_odds())


@bp.get("/statistics")
def statistics():
    return ok(get_manager().get_statistics().to_dict())
