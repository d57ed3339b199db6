"""Repository for VerificationToken CRUD operations.

Single-use email verification tokens stored as SHA-256 digests with a
fixed expiry. consume() is the atomic compare-and-delete that makes
redemption single-use under concurrency.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lyricauth.models.account import Account
from lyricauth.models.verification_token import VerificationToken


class VerificationTokenRepository:
    """Stateless repository for VerificationToken table operations.

    All methods are static; no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        token_hash: str,
        expires_at: datetime,
        account_id: uuid.UUID,
    ) -> VerificationToken:
        """Store a new verification token.

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the raw token.
            expires_at: Token expiry timestamp.
            account_id: Owning account.

        Returns:
            Created VerificationToken.
        """
        vt = VerificationToken(
            token_hash=token_hash,
            expires_at=expires_at,
            account_id=account_id,
        )
        db.add(vt)
        await db.flush()
        return vt

    @staticmethod
    async def find_for_email(
        db: AsyncSession,
        *,
        token_hash: str,
        email: str,
    ) -> VerificationToken | None:
        """Look up a token by digest, restricted to the account owning email.

        The join means a token issued to one account can never be redeemed
        against another account's email.

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the raw token.
            email: Normalized email of the claimed owner.

        Returns:
            VerificationToken if found, None otherwise.
        """
        stmt = (
            select(VerificationToken)
            .join(Account, VerificationToken.account_id == Account.id)
            .where(
                VerificationToken.token_hash == token_hash,
                Account.email == email,
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def consume(db: AsyncSession, token_id: uuid.UUID) -> bool:
        """Delete a token by id, reporting whether this call removed it.

        Two concurrent callers racing on the same token both issue the
        DELETE; the database serializes them and only one sees a row.

        Args:
            db: Async database session.
            token_id: Primary key of the token.

        Returns:
            True if the row was deleted by this call, False if already gone.
        """
        stmt = (
            delete(VerificationToken)
            .where(VerificationToken.id == token_id)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count == 1

    @staticmethod
    async def delete_all_for_account(
        db: AsyncSession,
        account_id: uuid.UUID,
    ) -> int:
        """Delete every outstanding token of an account.

        Args:
            db: Async database session.
            account_id: Owning account.

        Returns:
            Number of deleted rows.
        """
        stmt = (
            delete(VerificationToken)
            .where(VerificationToken.account_id == account_id)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count

    @staticmethod
    async def delete_expired(db: AsyncSession, *, now: datetime | None = None) -> int:
        """Delete all expired tokens (periodic cleanup).

        Args:
            db: Async database session.
            now: Reference time. Defaults to the current UTC time.

        Returns:
            Number of deleted rows.
        """
        stmt = (
            delete(VerificationToken)
            .where(VerificationToken.expires_at < (now or datetime.now(UTC)))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
