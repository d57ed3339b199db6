"""Credential lifecycle service.

Registration, email verification, login, verification resend and expired
token cleanup. The request layer owns nothing but I/O; every rule about how
an account moves from unverified to authenticated lives here.

Flow summary:
- register: hash password -> insert account -> insert token digest ->
  commit -> best-effort email (failure logged, never fatal)
- verify_email: digest + email join lookup -> expiry check -> atomic
  consume -> mark verified
- login: lookup (dummy bcrypt on miss) -> password check -> verified
  check -> signed session credential
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lyricauth.core.auth import create_session_jwt
from lyricauth.core.config import Settings
from lyricauth.core.email import (
    VERIFICATION_SUBJECT,
    DeliveryFailed,
    DeliveryResult,
    Mailer,
    build_verification_link,
    verification_email_body,
)
from lyricauth.core.errors import (
    DuplicateAccountError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    ValidationError,
)
from lyricauth.core.passwords import burn_dummy_check, hash_password, verify_password
from lyricauth.core.tokens import digest_token, generate_token
from lyricauth.models.account import Account, Role
from lyricauth.repositories.account_repository import (
    AccountRepository,
    normalize_email,
)
from lyricauth.repositories.verification_token_repository import (
    VerificationTokenRepository,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class AccountPublic:
    """Account fields safe to return to the caller (no password hash)."""

    id: uuid.UUID
    email: str
    is_verified: bool
    role: Role

    @classmethod
    def from_model(cls, account: Account) -> "AccountPublic":
        return cls(
            id=account.id,
            email=account.email,
            is_verified=account.is_verified,
            role=Role(account.role),
        )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "is_verified": self.is_verified,
            "role": self.role.value,
        }


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a successful registration.

    Attributes:
        account: Public fields of the new account.
        verification_link: Link carrying the raw token. Returned whether or
            not the email went out, as a fallback channel.
        delivery: What happened to the verification email.
    """

    account: AccountPublic
    verification_link: str
    delivery: DeliveryResult


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    token: str
    account: AccountPublic


class AuthService:
    """Account registration, verification and session issuance.

    Args:
        db: Async database session. The service commits its own units of work.
        settings: Explicit configuration (signing secret, TTLs, link origin,
            bcrypt cost, mail timeout).
        mailer: Outbound mail collaborator.
        now: Clock returning an aware UTC datetime. Injectable for tests.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        settings: Settings,
        mailer: Mailer,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._db = db
        self._settings = settings
        self._mailer = mailer
        self._now = now

    # -----------------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------------

    async def register(self, email: str, password: str) -> RegistrationResult:
        """Create an unverified account and send its verification link.

        Args:
            email: Email address (normalized before storage).
            password: Plain-text password (only its hash is kept).

        Returns:
            RegistrationResult with the public account and verification link.

        Raises:
            ValidationError: If email or password is empty or unusable.
            DuplicateAccountError: If the normalized email is already taken.
        """
        clean_email = normalize_email(email or "")
        if not clean_email:
            raise ValidationError("Email is required")

        password_hash = hash_password(password, rounds=self._settings.bcrypt_rounds)

        try:
            account = await AccountRepository.create(
                self._db,
                email=clean_email,
                password_hash=password_hash,
                role=Role.USER,
                is_verified=False,
            )
        except IntegrityError as exc:
            await self._db.rollback()
            raise DuplicateAccountError() from exc

        public = AccountPublic.from_model(account)
        raw_token = await self._issue_verification_token(account.id)
        await self._db.commit()

        link = build_verification_link(
            app_origin=self._settings.app_origin,
            token=raw_token,
            email=public.email,
        )
        delivery = await self._deliver_verification(public.email, link)

        logger.info("Registered account %s", public.id)
        return RegistrationResult(
            account=public,
            verification_link=link,
            delivery=delivery,
        )

    async def _issue_verification_token(self, account_id: uuid.UUID) -> str:
        """Store a new token digest for the account and return the raw token."""
        raw_token, token_hash = generate_token()
        await VerificationTokenRepository.create(
            self._db,
            token_hash=token_hash,
            expires_at=self._now() + self._settings.verification_token_ttl,
            account_id=account_id,
        )
        return raw_token

    async def _deliver_verification(self, email: str, link: str) -> DeliveryResult:
        """Send the verification email; never raises."""
        body = verification_email_body(
            link, ttl_hours=self._settings.verification_token_ttl_hours
        )
        try:
            result = await asyncio.wait_for(
                self._mailer.send(to=email, subject=VERIFICATION_SUBJECT, body=body),
                timeout=self._settings.email_timeout_seconds,
            )
        except TimeoutError:
            result = DeliveryFailed("timed out")
        except Exception as exc:
            logger.warning("Mailer raised during verification send", exc_info=True)
            result = DeliveryFailed(f"mailer error: {type(exc).__name__}")

        if isinstance(result, DeliveryFailed):
            logger.warning(
                "Verification email to @%s not delivered: %s",
                email.rpartition("@")[2],
                result.reason,
            )
            if self._settings.environment != "production":
                logger.info("[DEV EMAIL FALLBACK] Verification link: %s", link)
        return result

    # -----------------------------------------------------------------------
    # Email verification
    # -----------------------------------------------------------------------

    async def verify_email(self, email: str, token: str) -> None:
        """Redeem a verification token and mark its account verified.

        Args:
            email: Email address the token was sent to.
            token: Raw token from the verification link.

        Raises:
            InvalidTokenError: Unknown token, token of another account, or
                token already consumed (including by a concurrent request).
            TokenExpiredError: Token matched but expired. The row is kept.
        """
        clean_email = normalize_email(email or "")
        if not clean_email or not token:
            raise InvalidTokenError()

        vt = await VerificationTokenRepository.find_for_email(
            self._db,
            token_hash=digest_token(token),
            email=clean_email,
        )
        if vt is None:
            raise InvalidTokenError()

        if vt.expires_at < self._now():
            raise TokenExpiredError()

        token_id, account_id = vt.id, vt.account_id

        # Single-use: whoever deletes the row wins; everyone else sees 0 rows
        if not await VerificationTokenRepository.consume(self._db, token_id):
            await self._db.rollback()
            raise InvalidTokenError()

        await AccountRepository.mark_verified(self._db, account_id)
        await self._db.commit()
        logger.info("Verified account %s", account_id)

    # -----------------------------------------------------------------------
    # Login
    # -----------------------------------------------------------------------

    async def login(self, email: str, password: str) -> LoginResult:
        """Check credentials and mint a session credential.

        Args:
            email: Account email.
            password: Plain-text password.

        Returns:
            LoginResult with the signed credential and public account fields.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
            EmailNotVerifiedError: Password matched but email not verified.
        """
        clean_email = normalize_email(email or "")
        password = password or ""

        account = (
            await AccountRepository.get_by_email(self._db, clean_email)
            if clean_email
            else None
        )
        if account is None:
            # Security: same bcrypt cost whether or not the account exists
            burn_dummy_check(password, rounds=self._settings.bcrypt_rounds)
            raise InvalidCredentialsError()

        if not verify_password(password, account.password_hash):
            raise InvalidCredentialsError()

        # Only checked after the password matched, so a wrong password never
        # reveals whether the email is verified
        if not account.is_verified:
            raise EmailNotVerifiedError()

        public = AccountPublic.from_model(account)
        token = create_session_jwt(
            account_id=public.id,
            email=public.email,
            role=public.role,
            settings=self._settings,
        )
        return LoginResult(token=token, account=public)

    # -----------------------------------------------------------------------
    # Resend + cleanup
    # -----------------------------------------------------------------------

    async def resend_verification(self, email: str) -> DeliveryResult | None:
        """Replace an unverified account's tokens and resend the link.

        Silent when the account does not exist or is already verified, so the
        caller can answer identically in every case.

        Args:
            email: Account email.

        Returns:
            DeliveryResult if an email was attempted, None otherwise.
        """
        clean_email = normalize_email(email or "")
        if not clean_email:
            return None

        account = await AccountRepository.get_by_email(self._db, clean_email)
        if account is None or account.is_verified:
            return None

        await VerificationTokenRepository.delete_all_for_account(self._db, account.id)
        raw_token = await self._issue_verification_token(account.id)
        await self._db.commit()

        link = build_verification_link(
            app_origin=self._settings.app_origin,
            token=raw_token,
            email=account.email,
        )
        return await self._deliver_verification(account.email, link)

    async def purge_expired_tokens(self, now: datetime | None = None) -> int:
        """Delete verification tokens past their expiry.

        Args:
            now: Reference time. Defaults to the service clock.

        Returns:
            Number of tokens deleted.
        """
        deleted = await VerificationTokenRepository.delete_expired(
            self._db, now=now or self._now()
        )
        await self._db.commit()
        logger.info("Purged %d expired verification tokens", deleted)
        return deleted
