"""SQLAlchemy ORM models for lyricauth.

All models are exported from this module for convenient imports:
    from lyricauth.models import Account, VerificationToken

- account.py: Account, Role
- verification_token.py: VerificationToken (many-to-one with Account)
"""

from lyricauth.models.account import Account, Role
from lyricauth.models.base import Base, TimestampMixin
from lyricauth.models.verification_token import VerificationToken

__all__ = [
    "Base",
    "TimestampMixin",
    "Account",
    "Role",
    "VerificationToken",
]
