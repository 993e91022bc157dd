from __future__ import annotations

import hashlib
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

ALGORITHM = "HS256"


def new_token(nbytes: int = 32) -> str:
    # 32 random bytes -> 64 hex chars
    return secrets.token_hex(nbytes)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def utcnow() -> datetime:
    """Naive UTC, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def expires_in(delta: timedelta) -> datetime:
    return utcnow() + delta


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    session_id: Optional[uuid.UUID] = None


def sign_token(claims: TokenClaims, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(claims.user_id),
        "iat": now,
        "exp": now + lifetime,
        # distinct tokens even when minted within the same second
        "jti": uuid.uuid4().hex,
    }
    if claims.session_id is not None:
        payload["sid"] = str(claims.session_id)
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str, require_session: bool = False) -> TokenClaims:
    """
    Verify signature and expiry and return the claims.

    Raises jwt.InvalidTokenError (or a subclass) for anything that does not
    check out, including malformed ids.
    """
    required = ["sub", "exp"] + (["sid"] if require_session else [])
    payload = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": required})

    try:
        user_id = uuid.UUID(str(payload["sub"]))
        session_id = uuid.UUID(str(payload["sid"])) if require_session else None
    except ValueError as e:
        raise jwt.InvalidTokenError(f"Malformed token claims: {e}") from e

    return TokenClaims(user_id=user_id, session_id=session_id)
