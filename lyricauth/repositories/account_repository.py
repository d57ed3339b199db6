"""Repository for Account CRUD operations.

Provides database access for the accounts table. There is no generic
update(): mark_verified() and set_role() are the only mutations, and
nothing ever sets is_verified back to False.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lyricauth.models.account import Account, Role


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address (the uniqueness key)."""
    return email.strip().lower()


class AccountRepository:
    """Stateless repository for Account table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, account_id: uuid.UUID) -> Account | None:
        """Fetch an account by primary key.

        Used by mark_verified() and set_role(), and by tests.

        Args:
            db: Async database session.
            account_id: UUID primary key.

        Returns:
            Account if found, None otherwise.
        """
        return await db.get(Account, account_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Account | None:
        """Fetch an account by email address (normalized before lookup).

        Args:
            db: Async database session.
            email: Email address to look up.

        Returns:
            Account if found, None otherwise.
        """
        stmt = select(Account).where(Account.email == normalize_email(email))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        role: Role = Role.USER,
        is_verified: bool = False,
    ) -> Account:
        """Create a new account.

        Email is normalized before storage.

        Args:
            db: Async database session.
            email: Account email address.
            password_hash: bcrypt hash of the password.
            role: Account role.
            is_verified: Initial verification state.

        Returns:
            Created Account with database-generated fields populated.

        Raises:
            sqlalchemy.exc.IntegrityError: If the email already exists.
        """
        account = Account(
            email=normalize_email(email),
            password_hash=password_hash,
            role=role,
            is_verified=is_verified,
        )
        db.add(account)
        await db.flush()
        await db.refresh(account)
        return account

    @staticmethod
    async def mark_verified(db: AsyncSession, account_id: uuid.UUID) -> Account | None:
        """Set is_verified to True.

        Args:
            db: Async database session.
            account_id: UUID of the account.

        Returns:
            Updated Account if found, None if it does not exist.
        """
        account = await AccountRepository.get_by_id(db, account_id)
        if account is None:
            return None
        account.is_verified = True
        await db.flush()
        await db.refresh(account)
        return account

    @staticmethod
    async def set_role(
        db: AsyncSession, account_id: uuid.UUID, *, role: Role
    ) -> Account | None:
        """Set the role of an account.

        No request flow calls this: roles change only through an explicit
        call when seeding an admin account or in tests.

        Args:
            db: Async database session.
            account_id: UUID of the account.
            role: New role.

        Returns:
            Updated Account if found, None if it does not exist.
        """
        account = await AccountRepository.get_by_id(db, account_id)
        if account is None:
            return None
        account.role = role
        await db.flush()
        await db.refresh(account)
        return account
