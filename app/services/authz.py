"""
Cookie guards.

FastAPI dependencies that read the auth cookies, verify the signed claims
and hand the route a typed AuthContext. They fail closed: a missing cookie
is 403, anything wrong with the token is 401.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.errors import ForbiddenError, UnauthorizedError
from app.services.sessions import ACCESS_COOKIE, REFRESH_COOKIE
from app.services.tokens import decode_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    user_id: uuid.UUID
    session_id: Optional[uuid.UUID] = None


def require_access_token(req: Request, settings: Settings = Depends(get_settings)) -> AuthContext:
    raw = req.cookies.get(ACCESS_COOKIE)
    if not raw:
        raise ForbiddenError("Data access not allowed")

    try:
        claims = decode_token(raw, settings.auth_token_secret)
    except jwt.InvalidTokenError as e:
        logger.debug("Access token rejected: %s", e)
        raise UnauthorizedError("Invalid token or session expired") from e

    return AuthContext(user_id=claims.user_id)


def require_refresh_token(req: Request, settings: Settings = Depends(get_settings)) -> AuthContext:
    raw = req.cookies.get(REFRESH_COOKIE)
    if not raw:
        raise ForbiddenError("Refresh token not found")

    try:
        claims = decode_token(raw, settings.auth_refresh_token_secret, require_session=True)
    except jwt.InvalidTokenError as e:
        logger.debug("Refresh token rejected: %s", e)
        raise UnauthorizedError("Invalid refresh token or session expired") from e

    return AuthContext(user_id=claims.user_id, session_id=claims.session_id)
