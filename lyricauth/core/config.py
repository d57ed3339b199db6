"""Application configuration loaded from environment variables.

Settings for the database, API, session signing, verification links and
email delivery. Uses pydantic-settings for validation and .env file support.

The module-level ``settings`` instance is built once at import time. Business
logic never reads it directly: AuthService receives a Settings object through
its constructor, and only the request layer (deps, main) touches the global.
"""

from datetime import timedelta
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
_INSECURE_DEFAULT_PASSWORD = "lyricauth_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32

# bcrypt accepts cost factors 4..31
_MIN_BCRYPT_ROUNDS = 4
_MAX_BCRYPT_ROUNDS = 31


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "lyricauth"
    database_user: str = "lyricauth_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    # Full SQLAlchemy URL; takes precedence over the individual fields above
    database_url_override: str = ""
    database_auto_create: bool = True

    # API
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8080

    # Application
    environment: Literal["development", "staging", "production", "test"] = (
        "development"
    )
    log_level: str = "INFO"

    # Session credentials
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "lyricauth"
    auth_audience: str = "lyricauth"
    session_ttl_days: int = 7

    # Password hashing
    bcrypt_rounds: int = 12

    # Email verification
    verification_token_ttl_hours: int = 24
    # Frontend origin that serves the /verify page
    app_origin: str = "http://localhost:5173"

    # Email delivery (Resend HTTP API)
    email_from: str = "noreply@lyrictrivia.local"
    resend_api_key: SecretStr = SecretStr("")
    email_timeout_seconds: float = 10.0

    # Rate limiting
    rate_limit_enabled: bool = True

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def session_ttl(self) -> timedelta:
        """Validity window of an issued session credential."""
        return timedelta(days=self.session_ttl_days)

    @property
    def verification_token_ttl(self) -> timedelta:
        """Lifetime of an email verification token."""
        return timedelta(hours=self.verification_token_ttl_hours)

    @model_validator(mode="after")
    def check_settings(self) -> "Settings":
        """Validate ranges and production security requirements.

        Checks:
        - bcrypt cost factor is within the range bcrypt accepts
        - Session and verification TTLs are positive
        - APP_ORIGIN is an http(s) origin (trailing slash stripped)
        - AUTH_SECRET set in every environment except test
        - In production: AUTH_SECRET >= 32 chars, no default DB password
        """
        if not _MIN_BCRYPT_ROUNDS <= self.bcrypt_rounds <= _MAX_BCRYPT_ROUNDS:
            msg = (
                f"BCRYPT_ROUNDS must be between {_MIN_BCRYPT_ROUNDS} and "
                f"{_MAX_BCRYPT_ROUNDS}. Got: {self.bcrypt_rounds}"
            )
            raise ValueError(msg)

        if self.session_ttl_days <= 0:
            msg = f"SESSION_TTL_DAYS must be positive. Got: {self.session_ttl_days}"
            raise ValueError(msg)
        if self.verification_token_ttl_hours <= 0:
            msg = (
                "VERIFICATION_TOKEN_TTL_HOURS must be positive. "
                f"Got: {self.verification_token_ttl_hours}"
            )
            raise ValueError(msg)

        if not self.app_origin.startswith(("http://", "https://")):
            msg = f"APP_ORIGIN must start with http:// or https://. Got: {self.app_origin}"
            raise ValueError(msg)
        self.app_origin = self.app_origin.rstrip("/")

        secret_value = self.auth_secret.get_secret_value()
        # Only the test environment may run without a signing secret
        if not secret_value and self.environment != "test":
            msg = (
                "AUTH_SECRET must be set. "
                'Generate with: python -c "import secrets; '
                'print(secrets.token_hex(32))"'
            )
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                msg = (
                    f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                    "characters for adequate security."
                )
                raise ValueError(msg)

        return self


settings = Settings()
