"""Resolve the calling principal from request headers.

Token issuance is handled upstream; by the time a request reaches this
service the gateway has put the verified user id into ``X-User-Id``.
Admin calls carry the shared ``X-Admin-Token``.
"""

from __future__ import annotations

from typing import Mapping, Optional

from .errors import AuthenticationError, AuthorizationError
from .types import Principal, Role

USER_HEADER = "X-User-Id"
ADMIN_HEADER = "X-Admin-Token"


def resolve_user(headers: Mapping[str, str]) -> Principal:
    user_id = (headers.get(USER_HEADER) or "").strip()
    if not user_id:
        raise AuthenticationError(f"{USER_HEADER} header required")
    return Principal(user_id=user_id, role=Role.USER)


def resolve_principal(headers: Mapping[str, str], admin_api_key: Optional[str]) -> Principal:
    """Admin when the token matches (or no key is configured), else the plain user."""
    user_id = (headers.get(USER_HEADER) or "").strip()
    if not admin_api_key or headers.get(ADMIN_HEADER) == admin_api_key:
        return Principal(user_id=user_id or "admin", role=Role.ADMIN)
    if not user_id:
        raise AuthenticationError("unauthorized")
    return Principal(user_id=user_id, role=Role.USER)


def require_admin(principal: Principal) -> Principal:
    if not principal.is_admin:
        raise AuthorizationError()
    return principal
