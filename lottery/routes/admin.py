from __future__ import annotations

from flask import Blueprint, current_app, g, request

from ..auth import require_admin, resolve_principal
from ..extensions import get_manager, get_settings
from ..responses import ok
from ..schemas import CreateDrawRequest, DrawResponse, TicketResponse
from .lottery import limit_arg

bp = Blueprint("admin", __name__)


@bp.before_request
def verify_admin():
    principal = resolve_principal(request.headers, get_settings().admin_api_key)
    g.principal = require_admin(principal)


@bp.post("/draws")
def create_draw():
    payload = request.get_json(force=True, silent=True) or {}
    data = CreateDrawRequest(**payload)

    draw = get_manager().create_draw(data.draw_date, data.total_prize)
    current_app.logger.info("Admin %s created draw %s", g.principal.user_id, draw.id)
    return ok(DrawResponse(**draw.to_dict()).model_dump(), "Draw created successfully", 201)


@bp.post("/draws/<draw_id>/conduct")
def conduct_draw(draw_id: str):
    outcome = get_manager().conduct_draw(draw_id)
    current_app.logger.info(
        "Admin %s conducted draw %s (%s winners)", g.principal.user_id, draw_id, len(outcome.winners)
    )
    return ok(outcome.to_dict(), "Draw conducted successfully")


@bp.post("/draws/schedule-next")
def schedule_next_draw():
    draw = get_manager().schedule_next_draw()
    return ok(DrawResponse(**draw.to_dict()).model_dump(), "Next draw scheduled successfully", 201)


@bp.get("/draws")
def list_draws():
    manager = get_manager()
    limit = limit_arg(50)
    response = []
    for draw in manager.get_recent_draws(limit):
        tickets = manager.get_draw_tickets(draw.id)
        record = draw.to_dict()
        record["ticket_count"] = len(tickets)
        record["winning_tickets"] = sum(1 for ticket in tickets if ticket.is_winner)
        response.append(record)
    return ok(response)


@bp.get("/draws/<draw_id>/tickets")
def draw_tickets(draw_id: str):
    tickets = get_manager().get_draw_tickets(draw_id)
    return ok([TicketResponse(**ticket.to_dict()).model_dump() for ticket in tickets])


@bp.get("/dashboard")
def dashboard():
    manager = get_manager()
    statistics = manager.get_statistics()
    current = manager.get_current_draw()
    current_payload = None
    if current is not None:
        current_payload = current.to_dict()
        current_payload["ticket_count"] = len(manager.get_draw_tickets(current.id))

    return ok(
        {
            "total_draws": statistics.total_draws,
            "current_draw": current_payload,
            "recent_draws": [draw.to_dict() for draw in manager.get_recent_draws(5)],
            "statistics": statistics.to_dict(),
        }
    )
