"""Verification token model - email ownership proofs.

Stores only the SHA-256 digest of each token. Single-use, time-limited.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lyricauth.models.base import Base

if TYPE_CHECKING:
    from lyricauth.models.account import Account


class VerificationToken(Base):
    """Email verification token.

    Attributes:
        id: UUID primary key.
        token_hash: SHA-256 hex digest of the raw token.
        expires_at: Absolute expiry timestamp fixed at creation.
        account_id: Owning account.
        created_at: Creation timestamp.
    """

    __tablename__ = "verification_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    token_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        nullable=False,
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )

    account: Mapped["Account"] = relationship(
        "Account",
        back_populates="verification_tokens",
    )
