"""Typed errors raised by the lottery core and its HTTP glue."""

from __future__ import annotations

from typing import Any, Optional


class LotteryError(Exception):
    """Base class for every caller-facing lottery error."""

    code = "lottery_error"
    default_message = "Lottery operation failed"

    def __init__(self, message: Optional[str] = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidParameters(LotteryError):
    code = "invalid_parameters"
    default_message = "Invalid draw parameters"


class InvalidNumbers(LotteryError):
    code = "invalid_numbers"
    default_message = "Invalid lottery numbers"


class DrawUnavailable(LotteryError):
    code = "draw_unavailable"
    default_message = "Draw not available for ticket purchases"


class DrawClosed(LotteryError):
    code = "draw_closed"
    default_message = "Draw is no longer accepting tickets"


class TicketLimitExceeded(LotteryError):
    code = "ticket_limit_exceeded"
    default_message = "Maximum tickets per draw exceeded"


class DrawNotFound(LotteryError):
    code = "draw_not_found"
    default_message = "Draw not found"


class AlreadyCompleted(LotteryError):
    code = "already_completed"
    default_message = "Draw already completed"


class AuthenticationError(LotteryError):
    code = "unauthenticated"
    default_message = "Authentication required"


class AuthorizationError(LotteryError):
    code = "forbidden"
    default_message = "Admin access required"


__all__ = [
    "AlreadyCompleted",
    "AuthenticationError",
    "AuthorizationError",
    "DrawClosed",
    "DrawNotFound",
    "DrawUnavailable",
    "InvalidNumbers",
    "InvalidParameters",
    "LotteryError",
    "TicketLimitExceeded",
]
