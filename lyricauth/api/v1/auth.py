"""Authentication endpoints.

Endpoints:
- POST /auth/register: create account, return verification link
- POST /auth/verify: redeem a verification token
- POST /auth/login: exchange email + password for a bearer credential
- POST /auth/resend-verification: issue a fresh verification link
- GET /auth/me: decoded claims of the presented credential
- GET /auth/admin/ping: admin gate check

Security considerations:
- login: unknown email and wrong password are the same 401
- register: bcrypt cost from settings, email uniqueness after normalization
- resend-verification: same response whether or not the account exists
"""

from typing import Annotated

from email_validator import validate_email
from fastapi import APIRouter, Request
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from lyricauth.api.deps import AdminClaims, Auth, CurrentClaims
from lyricauth.core.rate_limiting import limiter
from lyricauth.core.responses import DataResponse

router = APIRouter()


# ===================================================================
# Request models
# ===================================================================


def _check_email_syntax(value: str) -> str:
    """Reject malformed addresses; the service normalizes the value itself.

    Deliverability is not checked, and .test domains are accepted for
    local development.
    """
    validate_email(value.strip(), check_deliverability=False, test_environment=True)
    return value


AccountEmail = Annotated[
    str,
    Field(min_length=3, max_length=255),
    AfterValidator(_check_email_syntax),
]


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    model_config = ConfigDict(extra="forbid")

    email: AccountEmail
    password: str = Field(min_length=1, max_length=128)


class VerifyRequest(BaseModel):
    """Request body for POST /auth/verify."""

    model_config = ConfigDict(extra="forbid")

    email: AccountEmail
    token: str = Field(min_length=1, max_length=256)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(extra="forbid")

    email: AccountEmail
    password: str = Field(min_length=1, max_length=128)


class ResendVerificationRequest(BaseModel):
    """Request body for POST /auth/resend-verification."""

    model_config = ConfigDict(extra="forbid")

    email: AccountEmail


# ===================================================================
# POST /auth/register
# ===================================================================


@router.post("/register", status_code=201)
@limiter.limit("3/hour")
async def register(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: RegisterRequest,
    auth: Auth,
) -> DataResponse[dict]:
    """Register a new account.

    The verification link is returned directly as well as emailed, so a
    missing mail provider never blocks sign-up.

    Rate limit: 3 per hour per IP.
    """
    result = await auth.register(body.email, body.password)
    return DataResponse(
        data={
            "user": result.account.to_dict(),
            "verify_url": result.verification_link,
            "email_sent": result.delivery.ok,
        }
    )


# ===================================================================
# POST /auth/verify
# ===================================================================


@router.post("/verify")
@limiter.limit("10/minute")
async def verify(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: VerifyRequest,
    auth: Auth,
) -> DataResponse[dict]:
    """Redeem a verification token. Does not sign the user in.

    Rate limit: 10 per minute per IP.
    """
    await auth.verify_email(body.email, body.token)
    return DataResponse(data={"ok": True})


# ===================================================================
# POST /auth/login
# ===================================================================


@router.post("/login")
@limiter.limit("5/15minute")
async def login(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: LoginRequest,
    auth: Auth,
) -> DataResponse[dict]:
    """Exchange email + password for a bearer session credential.

    Rate limit: 5 per 15 minutes per IP.
    """
    result = await auth.login(body.email, body.password)
    return DataResponse(
        data={
            "token": result.token,
            "user": {"email": result.account.email, "role": result.account.role.value},
        }
    )


# ===================================================================
# POST /auth/resend-verification
# ===================================================================


@router.post("/resend-verification")
@limiter.limit("5/hour")
async def resend_verification(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: ResendVerificationRequest,
    auth: Auth,
) -> DataResponse[dict]:
    """Send a fresh verification link to an unverified account.

    Always returns the same message (prevents email enumeration).

    Rate limit: 5 per hour per IP.
    """
    await auth.resend_verification(body.email)
    return DataResponse(
        data={
            "message": "If an unverified account exists, a new link has been sent"
        }
    )


# ===================================================================
# GET /auth/me, GET /auth/admin/ping
# ===================================================================


@router.get("/me")
async def get_me(claims: CurrentClaims) -> DataResponse[dict]:
    """Return the identity carried by the bearer credential."""
    return DataResponse(
        data={
            "id": str(claims.account_id),
            "email": claims.email,
            "role": claims.role.value,
            "expires_at": claims.expires_at.isoformat(),
        }
    )


@router.get("/admin/ping")
async def admin_ping(claims: AdminClaims) -> DataResponse[dict]:
    """Succeeds only for ADMIN credentials."""
    return DataResponse(data={"ok": True, "email": claims.email})
