"""
Session store and token issuance.

A session row backs exactly one refresh token. Rotation marks the old row
invoked and mints a new row in the same transaction.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from fastapi import Response
from sqlalchemy import update
from sqlalchemy.orm import Session as DbSession

from app.config import Settings
from app.models.session import UserSession
from app.services.tokens import TokenClaims, expires_in, sign_token, utcnow

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "token"
REFRESH_COOKIE = "refreshToken"


@dataclass(frozen=True)
class TokenPair:
    token: str
    refresh_token: str
    session_id: uuid.UUID


def create_tokens(db: DbSession, user_id: uuid.UUID, settings: Settings) -> TokenPair:
    """Insert a fresh session for the user and sign an access/refresh pair for it."""
    refresh_lifetime = timedelta(days=settings.auth_refresh_token_expires_days)

    sess = UserSession(user_id=user_id, expires_at=expires_in(refresh_lifetime))
    db.add(sess)
    db.flush()
    logger.debug("New session %s created for user %s", sess.id, user_id)

    token = sign_token(
        TokenClaims(user_id=user_id),
        settings.auth_token_secret,
        timedelta(minutes=settings.auth_token_expires_minutes),
    )
    refresh_token = sign_token(
        TokenClaims(user_id=user_id, session_id=sess.id),
        settings.auth_refresh_token_secret,
        refresh_lifetime,
    )
    return TokenPair(token=token, refresh_token=refresh_token, session_id=sess.id)


def claim_session(db: DbSession, session_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """
    Mark a live session invoked. Returns False when it is missing, already
    invoked or expired.

    The check and the write are one UPDATE, so two rotations racing on the
    same refresh token cannot both succeed.
    """
    now = utcnow()
    res = db.execute(
        update(UserSession)
        .where(
            UserSession.id == session_id,
            UserSession.user_id == user_id,
            UserSession.invoked_at.is_(None),
            UserSession.expires_at > now,
        )
        .values(invoked_at=now)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


def set_auth_cookies(resp: Response, pair: TokenPair) -> None:
    # session cookies: lifetime is carried by the signed claims
    resp.set_cookie(key=ACCESS_COOKIE, value=pair.token, httponly=True, path="/")
    resp.set_cookie(key=REFRESH_COOKIE, value=pair.refresh_token, httponly=True, path="/")
