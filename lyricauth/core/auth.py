"""Session credential issuance and validation.

Session credentials are HS256 JWTs carrying the account id, email and role.
They are stateless: nothing is stored server-side, so a credential stays
valid until its exp claim even if the account's role changes meanwhile.

Pipeline:
- create_session_jwt: mint a credential after a successful login
- decode_session_jwt: verify signature/exp/aud/iss and parse claims
- authenticate: "Bearer <token>" header value -> SessionClaims
- authorize_admin: claim-only ADMIN check
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from lyricauth.core.config import Settings
from lyricauth.core.errors import AdminRequiredError, UnauthorizedError
from lyricauth.models.account import Role

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"
_BEARER_PREFIX = "Bearer "
_REQUIRED_CLAIMS = ["sub", "email", "role", "exp", "iat", "aud", "iss"]


@dataclass(frozen=True)
class SessionClaims:
    """Decoded, validated session credential.

    Attributes:
        account_id: Account UUID from the sub claim.
        email: Account email at issuance time.
        role: Account role at issuance time.
        issued_at: iat claim.
        expires_at: exp claim.
    """

    account_id: uuid.UUID
    email: str
    role: Role
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def _signing_secret(settings: Settings) -> str:
    secret = settings.auth_secret.get_secret_value()
    if not secret:
        msg = "AUTH_SECRET is not configured; cannot sign or verify sessions"
        raise RuntimeError(msg)
    return secret


def create_session_jwt(
    *,
    account_id: uuid.UUID | str,
    email: str,
    role: Role,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session JWT.

    Args:
        account_id: Account UUID for the sub claim.
        email: Account email.
        role: Account role.
        settings: Supplies secret, issuer, audience and default TTL.
        expires_delta: Time until expiration. Defaults to settings.session_ttl.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(account_id),
        "email": email,
        "role": Role(role).value,
        "aud": settings.auth_audience,
        "iss": settings.auth_issuer,
        "exp": now + (expires_delta or settings.session_ttl),
        "iat": now,
    }
    return jwt.encode(payload, _signing_secret(settings), algorithm=_ALGORITHM)


def decode_session_jwt(token: str, *, settings: Settings) -> SessionClaims:
    """Verify a session JWT and return its claims.

    Args:
        token: Encoded JWT.
        settings: Supplies secret, issuer and audience.

    Returns:
        SessionClaims for a valid credential.

    Raises:
        UnauthorizedError: For any failure (bad signature, expired, wrong
            audience/issuer, missing claim, unknown role, malformed sub).
    """
    try:
        payload = jwt.decode(
            token,
            _signing_secret(settings),
            algorithms=[_ALGORITHM],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
            options={"require": _REQUIRED_CLAIMS},
        )
        return SessionClaims(
            account_id=uuid.UUID(payload["sub"]),
            email=str(payload["email"]),
            role=Role(payload["role"]),
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as exc:
        # Security: one generic error regardless of why validation failed
        logger.debug("Session credential rejected: %s", type(exc).__name__)
        raise UnauthorizedError() from exc


def authenticate(authorization: str | None, *, settings: Settings) -> SessionClaims:
    """Authenticate an Authorization header value.

    Args:
        authorization: Raw header value, expected as "Bearer <token>".
        settings: Session signing configuration.

    Returns:
        SessionClaims of the presented credential.

    Raises:
        UnauthorizedError: If the prefix is missing or the token is invalid.
    """
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        raise UnauthorizedError()
    token = authorization[len(_BEARER_PREFIX) :].strip()
    if not token:
        raise UnauthorizedError()
    return decode_session_jwt(token, settings=settings)


def authorize_admin(claims: SessionClaims) -> SessionClaims:
    """Require the ADMIN role on already-authenticated claims.

    Pure claim check: the store is not consulted.

    Raises:
        AdminRequiredError: If the role is not ADMIN.
    """
    if not claims.is_admin:
        raise AdminRequiredError()
    return claims
