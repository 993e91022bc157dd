"""
User directory.

Every function takes the caller's SQLAlchemy session and only flushes, so
the caller decides the transaction boundary (see ``app.database.atomic``).
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DbSession

from app.errors import ConflictError, NotFoundError, UnprocessableEntityError
from app.models.file import StoredFile
from app.models.user import User
from app.services.tokens import utcnow

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email address has been used to register another account"
USERNAME_TAKEN = "Username already exists"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_by_email(db: DbSession, email: str) -> Optional[User]:
    return db.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()


def find_by_username(db: DbSession, username: str) -> Optional[User]:
    return db.execute(select(User).where(User.username == username)).scalar_one_or_none()


def find_by_id(db: DbSession, user_id: uuid.UUID) -> Optional[User]:
    return db.get(User, user_id)


def get_or_404(db: DbSession, user_id: uuid.UUID) -> User:
    user = find_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(db: DbSession, *, email: str, password_hash: str) -> User:
    email = normalize_email(email)
    if find_by_email(db, email):
        raise ConflictError(details={"email": EMAIL_TAKEN})

    user = User(email=email, password_hash=password_hash)
    db.add(user)
    try:
        db.flush()
    except IntegrityError as e:
        # lost a race against a concurrent registration
        raise ConflictError(details={"email": EMAIL_TAKEN}) from e
    return user


def _claim_username(db: DbSession, user: User, username: str) -> None:
    owner = find_by_username(db, username)
    if owner and owner.id != user.id:
        raise ConflictError(details={"username": USERNAME_TAKEN})
    user.username = username
    try:
        db.flush()
    except IntegrityError as e:
        raise ConflictError(details={"username": USERNAME_TAKEN}) from e


def setup_account(db: DbSession, user_id: uuid.UUID, *, name: str, username: str) -> User:
    user = get_or_404(db, user_id)

    if not username:
        raise UnprocessableEntityError(details={"username": "Username is required"})
    if not name:
        raise UnprocessableEntityError(details={"name": "Name is required"})

    if find_by_username(db, username):
        raise ConflictError(details={"username": USERNAME_TAKEN})

    user.name = name
    _claim_username(db, user, username)
    return user


def update_username(db: DbSession, user_id: uuid.UUID, username: str) -> User:
    user = get_or_404(db, user_id)
    if user.username == username:
        return user
    _claim_username(db, user, username)
    return user


def update_name(db: DbSession, user_id: uuid.UUID, name: str) -> User:
    user = get_or_404(db, user_id)
    user.name = name
    db.flush()
    return user


def update_avatar(db: DbSession, user_id: uuid.UUID, file_id: uuid.UUID) -> User:
    user = get_or_404(db, user_id)
    user.avatar_file_id = file_id
    db.flush()
    return user


def avatar_url(db: DbSession, user: User) -> Optional[str]:
    if user.avatar_file_id is None:
        return None
    return db.execute(
        select(StoredFile.url)
        .join(User, User.avatar_file_id == StoredFile.id)
        .where(User.id == user.id)
    ).scalar_one_or_none()


def mark_verified(db: DbSession, user_id: uuid.UUID) -> User:
    user = get_or_404(db, user_id)
    user.verified_at = utcnow()
    db.flush()
    return user


def suspend(db: DbSession, user_id: uuid.UUID) -> User:
    user = get_or_404(db, user_id)
    user.suspended_at = utcnow()
    db.flush()
    logger.info("User %s suspended", user.id)
    return user


def unsuspend(db: DbSession, user_id: uuid.UUID) -> User:
    user = get_or_404(db, user_id)
    user.suspended_at = None
    db.flush()
    logger.info("User %s unsuspended", user.id)
    return user


def update_password(db: DbSession, user_id: uuid.UUID, password_hash: str) -> User:
    user = get_or_404(db, user_id)
    user.password_hash = password_hash
    user.password_updated_at = utcnow()
    db.flush()
    return user
