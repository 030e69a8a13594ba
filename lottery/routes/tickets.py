from __future__ import annotations

from flask import Blueprint, current_app, request

from ..auth import resolve_user
from ..extensions import get_manager
from ..responses import ok
from ..schemas import TicketPurchaseRequest, TicketResponse

bp = Blueprint("tickets", __name__)


@bp.post("")
def purchase_ticket():
    principal = resolve_user(request.headers)
    payload = request.get_json(force=True, silent=True) or {}
    data = TicketPurchaseRequest(**payload)

    ticket = get_manager().purchase_ticket(principal.user_id, data.draw_id, data.numbers)
    current_app.logger.info("Ticket %s issued to %s", ticket.id, principal.user_id)
    return ok(TicketResponse(**ticket.to_dict()).model_dump(), "Ticket purchased successfully", 201)


@bp.get("/mine")
def my_tickets():
    principal = resolve_user(request.headers)
    tickets = get_manager().get_user_tickets(principal.user_id)
    return ok([TicketResponse(**ticket.to_dict()).model_dump() for ticket in tickets])
