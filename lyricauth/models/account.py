"""Account model - credential owner.

One row per registered email. The password is stored only as a bcrypt hash,
and is_verified moves from False to True once and never back.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from lyricauth.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from lyricauth.models.verification_token import VerificationToken


class Role(str, Enum):
    """Closed set of account roles.

    ADMIN gates privileged writes (global lyrics, genres).
    """

    USER = "USER"
    ADMIN = "ADMIN"


class Account(Base, TimestampMixin):
    """Registered account.

    Attributes:
        id: UUID primary key.
        email: Normalized (trimmed, lowercased) unique email address.
        password_hash: bcrypt hash. Never the raw password.
        role: USER or ADMIN.
        is_verified: Whether the email address has been confirmed.
        verification_tokens: Outstanding verification tokens.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("role IN ('USER', 'ADMIN')", name="ck_accounts_role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=Role.USER.value,
        server_default=Role.USER.value,
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    verification_tokens: Mapped[list["VerificationToken"]] = relationship(
        "VerificationToken",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("role")
    def _validate_role(self, _key: str, value: str | Role) -> str:
        """Coerce to a Role value; unknown strings raise ValueError."""
        return Role(value).value
