"""Shared dependencies for API endpoints.

Wires the explicit Settings object, the mailer and a per-request
AuthService into routes, and turns the Authorization header into
SessionClaims.

WHY DEPENDENCY INJECTION:
- Routes never read configuration or environment directly
- Tests swap settings, mailer or database via app.dependency_overrides
"""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from lyricauth.core.auth import SessionClaims, authenticate, authorize_admin
from lyricauth.core.config import Settings, settings
from lyricauth.core.database import get_db
from lyricauth.core.email import Mailer, build_mailer
from lyricauth.services.auth_service import AuthService


def get_settings() -> Settings:
    """Return the process-wide Settings built at startup."""
    return settings


AppSettings = Annotated[Settings, Depends(get_settings)]
DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_mailer(app_settings: AppSettings) -> Mailer:
    """Return the mailer configured for this process."""
    return build_mailer(app_settings)


def get_auth_service(
    db: DbSession,
    app_settings: AppSettings,
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> AuthService:
    """Build an AuthService bound to the request's database session."""
    return AuthService(db, settings=app_settings, mailer=mailer)


def get_current_claims(
    app_settings: AppSettings,
    authorization: Annotated[str | None, Header()] = None,
) -> SessionClaims:
    """Authenticate the request's bearer credential.

    Raises:
        UnauthorizedError: Missing "Bearer " prefix, bad signature, expired
            or malformed credential. All render as the same 401.
    """
    return authenticate(authorization, settings=app_settings)


def require_admin(
    claims: Annotated[SessionClaims, Depends(get_current_claims)],
) -> SessionClaims:
    """Require ADMIN on the authenticated claims.

    Raises:
        AdminRequiredError: 403 for non-admin roles.
    """
    return authorize_admin(claims)


# Reusable type aliases for dependency injection
Auth = Annotated[AuthService, Depends(get_auth_service)]
CurrentClaims = Annotated[SessionClaims, Depends(get_current_claims)]
AdminClaims = Annotated[SessionClaims, Depends(require_admin)]
