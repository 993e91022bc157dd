from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session as DbSession

from app.models.verification_token import TokenPurpose, VerificationToken
from app.services.tokens import expires_in, hash_token, new_token, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    raw: str
    row: VerificationToken


def issue_token(
    db: DbSession,
    user_id: uuid.UUID,
    purpose: TokenPurpose,
    lifetime: timedelta,
) -> IssuedToken:
    raw = new_token()
    row = VerificationToken(
        token=hash_token(raw),
        user_id=user_id,
        purpose=purpose,
        expires_at=expires_in(lifetime),
    )
    db.add(row)
    db.flush()
    return IssuedToken(raw=raw, row=row)


def find_token(db: DbSession, raw: str, purpose: Optional[TokenPurpose] = None) -> Optional[VerificationToken]:
    q = select(VerificationToken).where(VerificationToken.token == hash_token(raw))
    if purpose is not None:
        q = q.where(VerificationToken.purpose == purpose)
    return db.execute(q).scalar_one_or_none()


def is_expired(row: VerificationToken) -> bool:
    return row.expires_at < utcnow()


def consume(db: DbSession, row: VerificationToken) -> bool:
    """Delete the token. False means another request already spent it."""
    res = db.execute(
        delete(VerificationToken)
        .where(VerificationToken.token == row.token)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


def purge_expired_tokens(db: DbSession) -> int:
    """Delete every expired token. Returns how many rows went away."""
    res = db.execute(delete(VerificationToken).where(VerificationToken.expires_at < utcnow()))
    logger.info("Purged %s expired verification tokens", res.rowcount)
    return res.rowcount or 0
