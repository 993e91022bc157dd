from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.services.tokens import utcnow


class TokenPurpose(str, enum.Enum):
    EMAIL_VERIFICATION = "email_verification"
    RECOVERY_ACCOUNT = "recovery_account"
    CHANGE_PASSWORD = "change_password"
    CHANGE_EMAIL = "change_email"


class VerificationToken(Base):
    __tablename__ = "user_verification_tokens"

    # store HASHED token; the raw value only ever leaves in the email
    token: Mapped[str] = mapped_column(String(64), primary_key=True)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        index=True,
        nullable=False,
    )

    purpose: Mapped[TokenPurpose] = mapped_column(
        Enum(
            TokenPurpose,
            name="user_verification_token_purpose",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


Index("ix_verification_token_user_exp", VerificationToken.user_id, VerificationToken.expires_at)
