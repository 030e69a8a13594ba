"""Helpers for the JSON envelope returned by every route."""

from __future__ import annotations

from typing import Any, Optional

from flask import jsonify


def ok(data: Any, message: Optional[str] = None, status_code: int = 200):
    return jsonify({"success": True, "data": data, "message": message, "error": None}), status_code


def fail(code: str, message: str, status_code: int, details: Any = None):
    return (
        jsonify(
            {
                "success": False,
                "data": None,
                "message": message,
                "error": {"code": code, "message": message, "details": details},
            }
        ),
        status_code,
    )
