"""API error classes.

Every failure a flow can report is an APIError subclass carrying a stable
machine-readable code, a user-safe message and the HTTP status the request
layer should answer with. Store exceptions (IntegrityError and friends) are
translated into these at the flow boundary and never leak out.

WHY CUSTOM ERROR CLASSES:
- Consistent error response format across all endpoints
- Easy to map to HTTP status codes in exception handlers
- Type-safe error handling in services and tests
"""


class APIError(Exception):
    """Base class for API errors.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_TOKEN").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400)."""

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
        *,
        code: str = "VALIDATION_ERROR",
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401).

    Raised for a missing, malformed, forged or expired session credential.
    The message never says which of those it was.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        *,
        code: str = "UNAUTHORIZED",
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=401,
        )


class ForbiddenError(APIError):
    """Authenticated but not allowed (403)."""

    def __init__(
        self,
        message: str = "Access denied",
        *,
        code: str = "FORBIDDEN",
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=403,
        )


class ConflictError(APIError):
    """Duplicate or conflicting resource (409)."""

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Never expose stack traces to clients.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )


# =============================================================================
# Credential lifecycle errors
# =============================================================================


class DuplicateAccountError(ConflictError):
    """Registration hit an email that is already registered (409).

    Keeps the original server's wording, which hints that the email may
    exist. Login failures stay fully generic.
    """

    def __init__(self) -> None:
        super().__init__(
            code="DUPLICATE_ACCOUNT",
            message="Registration failed (email may already exist)",
        )


class InvalidTokenError(ValidationError):
    """Verification token unknown, already used, or owned by another email."""

    def __init__(self) -> None:
        super().__init__("Invalid token", code="INVALID_TOKEN")


class TokenExpiredError(ValidationError):
    """Verification token matched but is past its expiry."""

    def __init__(self) -> None:
        super().__init__("Token expired", code="TOKEN_EXPIRED")


class InvalidCredentialsError(UnauthorizedError):
    """Unknown email or wrong password (401).

    Both cases raise this same error so callers cannot enumerate accounts.
    """

    def __init__(self) -> None:
        super().__init__("Invalid credentials", code="INVALID_CREDENTIALS")


class EmailNotVerifiedError(ForbiddenError):
    """Password matched but the email address is not verified yet (403)."""

    def __init__(self) -> None:
        super().__init__(
            "Email not verified. Check your inbox for the verification link.",
            code="EMAIL_NOT_VERIFIED",
        )


class AdminRequiredError(ForbiddenError):
    """Admin role required (403)."""

    def __init__(self) -> None:
        super().__init__("Admin only", code="ADMIN_REQUIRED")
