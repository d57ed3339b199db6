"""Tests for Settings validation and derived values."""

from datetime import timedelta

import pytest
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from tests.conftest import TEST_AUTH_SECRET, make_settings


class TestDerivedValues:
    def test_database_url_uses_override(self):
        settings = make_settings(database_url_override="sqlite+aiosqlite:///x.db")
        assert settings.database_url == "sqlite+aiosqlite:///x.db"

    def test_database_url_built_from_parts(self):
        settings = make_settings(
            database_url_override="",
            database_user="u",
            database_password="p",
            database_host="db",
            database_port=5433,
            database_name="auth",
        )
        assert settings.database_url == "postgresql+asyncpg://u:p@db:5433/auth"

    def test_default_ttls(self):
        settings = make_settings(session_ttl_days=7, verification_token_ttl_hours=24)
        assert settings.session_ttl == timedelta(days=7)
        assert settings.verification_token_ttl == timedelta(hours=24)

    def test_app_origin_trailing_slash_stripped(self):
        settings = make_settings(app_origin="https://trivia.example.com/")
        assert settings.app_origin == "https://trivia.example.com"


class TestValidation:
    @pytest.mark.parametrize("rounds", [3, 32])
    def test_bcrypt_rounds_out_of_range(self, rounds):
        with pytest.raises(PydanticValidationError, match="BCRYPT_ROUNDS"):
            make_settings(bcrypt_rounds=rounds)

    def test_non_positive_session_ttl_rejected(self):
        with pytest.raises(PydanticValidationError, match="SESSION_TTL_DAYS"):
            make_settings(session_ttl_days=0)

    def test_non_positive_token_ttl_rejected(self):
        with pytest.raises(
            PydanticValidationError, match="VERIFICATION_TOKEN_TTL_HOURS"
        ):
            make_settings(verification_token_ttl_hours=-1)

    def test_app_origin_requires_scheme(self):
        with pytest.raises(PydanticValidationError, match="APP_ORIGIN"):
            make_settings(app_origin="trivia.example.com")


class TestAuthSecretRequired:
    """An empty signing secret must fail at startup, not at first login."""

    @pytest.mark.parametrize("environment", ["development", "staging"])
    def test_empty_secret_rejected_outside_test(self, environment):
        with pytest.raises(PydanticValidationError, match="AUTH_SECRET must be set"):
            make_settings(environment=environment, auth_secret=SecretStr(""))

    def test_short_secret_allowed_in_development(self):
        settings = make_settings(
            environment="development", auth_secret=SecretStr("dev-secret")
        )
        assert settings.auth_secret.get_secret_value() == "dev-secret"

    def test_test_environment_may_omit_secret(self):
        settings = make_settings(environment="test", auth_secret=SecretStr(""))
        assert settings.auth_secret.get_secret_value() == ""


class TestProductionRequirements:
    def test_default_db_password_rejected(self):
        with pytest.raises(PydanticValidationError, match="default database password"):
            make_settings(environment="production")

    def test_missing_auth_secret_rejected(self):
        with pytest.raises(PydanticValidationError, match="AUTH_SECRET must be set"):
            make_settings(
                environment="production",
                database_password="a-real-password",
                auth_secret=SecretStr(""),
            )

    def test_short_auth_secret_rejected(self):
        with pytest.raises(PydanticValidationError, match="at least 32"):
            make_settings(
                environment="production",
                database_password="a-real-password",
                auth_secret=SecretStr("too-short"),
            )

    def test_valid_production_settings(self):
        settings = make_settings(
            environment="production",
            database_password="a-real-password",
            auth_secret=SecretStr(TEST_AUTH_SECRET),
        )
        assert settings.environment == "production"
