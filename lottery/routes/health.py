from __future__ import annotations

from flask import Blueprint

from ..responses import ok

bp = Blueprint("health", __name__)


@bp.get("/health")
def health_check():
    return ok({"status": "ok"})
