"""
Account lifecycle: registration, email verification, login, refresh
rotation and profile changes.

Each multi-table operation runs inside ``atomic(db)`` so a failure anywhere
(mail dispatch, token signing, a constraint) leaves nothing behind.
"""
from __future__ import annotations

import logging
import mimetypes
import uuid
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session as DbSession

from app.config import Settings
from app.database import atomic
from app.errors import ConflictError, ForbiddenError, UnprocessableEntityError
from app.models.verification_token import TokenPurpose
from app.services import users, verification
from app.services.mailer import Mailer
from app.services.passwords import hash_password, needs_rehash, verify_password
from app.services.sessions import TokenPair, claim_session, create_tokens
from app.services.storage import ObjectStorage
from app.utils.constants import AVATAR_MAX_BYTES, AVATAR_MIME_TYPES

logger = logging.getLogger(__name__)


def register(db: DbSession, *, email: str, password: str, mailer: Mailer, settings: Settings) -> None:
    email = users.normalize_email(email)
    logger.info("Starting registration for %s", email)

    with atomic(db):
        user = users.create_user(db, email=email, password_hash=hash_password(password))
        logger.debug("User created with id %s", user.id)

        issued = verification.issue_token(
            db,
            user.id,
            TokenPurpose.EMAIL_VERIFICATION,
            timedelta(hours=settings.auth_verify_email_expires_hours),
        )

        # last step: a mail failure rolls back the user and the token
        mailer.send_verification_email(user.email, issued.raw)

    logger.info("Registration for %s completed", email)


def verify_email(db: DbSession, *, token: str, settings: Settings) -> TokenPair:
    with atomic(db):
        row = verification.find_token(db, token, TokenPurpose.EMAIL_VERIFICATION)
        if not row:
            logger.warning("Verification failed: invalid token")
            raise ConflictError("Invalid token")

        if verification.is_expired(row):
            logger.warning("Verification failed for user %s: token expired", row.user_id)
            raise ConflictError("Token expired")

        user_id = row.user_id
        if not verification.consume(db, row):
            logger.warning("Verification failed for user %s: token already used", user_id)
            raise ConflictError("Invalid token")

        users.mark_verified(db, user_id)
        pair = create_tokens(db, user_id, settings)

    logger.info("Email verified for user %s", user_id)
    return pair


def login(db: DbSession, *, email: str, password: str, settings: Settings) -> TokenPair:
    logger.info("Login attempt for %s", email)

    user = users.find_by_email(db, email)
    if not user:
        logger.warning("Login failed: email not registered %s", email)
        raise UnprocessableEntityError(details={"email": "Email is not registered"})

    if not verify_password(password, user.password_hash):
        logger.warning("Login failed: wrong password for user %s", user.id)
        raise UnprocessableEntityError(details={"password": "Password is incorrect"})

    if user.is_suspended:
        logger.warning("Login failed: user %s is suspended", user.id)
        raise ForbiddenError("Your account has been suspended.")

    if not user.is_verified:
        logger.warning("Login failed: user %s is not verified", user.id)
        raise ForbiddenError("Please verify your email before logging in.")

    with atomic(db):
        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
        pair = create_tokens(db, user.id, settings)

    logger.info("Login successful for user %s", user.id)
    return pair


def refresh(db: DbSession, *, user_id: uuid.UUID, session_id: uuid.UUID, settings: Settings) -> TokenPair:
    logger.info("Token refresh requested for user %s, session %s", user_id, session_id)

    with atomic(db):
        if not claim_session(db, session_id, user_id):
            logger.warning(
                "Refresh rejected for user %s, session %s: missing, invoked or expired",
                user_id,
                session_id,
            )
            raise ForbiddenError("Invalid session. Please log in again.")

        pair = create_tokens(db, user_id, settings)

    logger.info("Session %s rotated to %s for user %s", session_id, pair.session_id, user_id)
    return pair


def setup(db: DbSession, *, user_id: uuid.UUID, name: str, username: str) -> None:
    logger.info("User %s is setting up their profile", user_id)
    with atomic(db):
        users.setup_account(db, user_id, name=name, username=username)


def get_profile(db: DbSession, user_id: uuid.UUID) -> dict[str, Any]:
    user = users.get_or_404(db, user_id)
    return {
        "username": user.username,
        "name": user.name,
        "email": user.email,
        "avatar": users.avatar_url(db, user),
    }


def update_username(db: DbSession, *, user_id: uuid.UUID, username: str) -> None:
    with atomic(db):
        users.update_username(db, user_id, username)


def update_name(db: DbSession, *, user_id: uuid.UUID, name: str) -> None:
    with atomic(db):
        users.update_name(db, user_id, name)


def check_avatar(size: int, content_type: str | None) -> None:
    if size > AVATAR_MAX_BYTES:
        raise UnprocessableEntityError("File size is too large. Only files up to 1MB are allowed.")
    if content_type not in AVATAR_MIME_TYPES:
        raise UnprocessableEntityError("Invalid file type. Only JPEG and PNG are allowed.")


def update_avatar(
    db: DbSession,
    *,
    user_id: uuid.UUID,
    content: bytes,
    content_type: str,
    storage: ObjectStorage,
) -> str:
    check_avatar(len(content), content_type)

    ext = (mimetypes.guess_extension(content_type) or ".bin").lstrip(".")
    key = f"avatars/{uuid.uuid4()}.{ext}"

    stored = None
    try:
        with atomic(db):
            users.get_or_404(db, user_id)
            stored = storage.upload_public(
                db,
                content=content,
                key=key,
                content_type=content_type,
                uploaded_by_id=user_id,
            )
            users.update_avatar(db, user_id, stored.id)
    except Exception:
        # the object is in the bucket but its file row was rolled back
        if stored is not None:
            storage.discard_public(key)
        raise

    logger.info("Avatar updated for user %s -> %s", user_id, stored.key)
    return stored.url or ""
