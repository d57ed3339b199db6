import os

# Must be set before any lyricauth import builds the global Settings/engine.
os.environ["AUTH_SECRET"] = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite://"
os.environ["DATABASE_AUTO_CREATE"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RESEND_API_KEY"] = ""

import asyncio  # noqa: E402
import uuid  # noqa: E402
from collections.abc import AsyncGenerator, Callable  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from pydantic import SecretStr  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lyricauth.core.config import Settings  # noqa: E402
from lyricauth.core.database import init_models  # noqa: E402
from lyricauth.core.email import Delivered, DeliveryFailed, DeliveryResult  # noqa: E402
from lyricauth.services.auth_service import AuthService  # noqa: E402

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow
TEST_APP_ORIGIN = "http://localhost:5173"
TEST_PASSWORD = "pw123456"  # nosec B105


def make_settings(**overrides) -> Settings:
    """Build Settings for tests (cheap bcrypt, fixed secret and origin)."""
    values = {
        "auth_secret": SecretStr(TEST_AUTH_SECRET),
        "bcrypt_rounds": 4,
        "app_origin": TEST_APP_ORIGIN,
        "environment": "test",
        "rate_limit_enabled": False,
        "email_timeout_seconds": 1.0,
    }
    values.update(overrides)
    return Settings(**values)


def create_test_jwt(
    account_id: uuid.UUID | None = None,
    *,
    email: str = "user@example.com",
    role: str = "USER",
    secret: str = TEST_AUTH_SECRET,
    expires_delta: timedelta | None = None,
    iat: datetime | None = None,
    **extra_claims,
) -> str:
    """Create a signed session JWT directly, bypassing the login flow."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(account_id or uuid.uuid4()),
        "email": email,
        "role": role,
        "aud": "lyricauth",
        "iss": "lyricauth",
        "exp": now + (expires_delta or timedelta(hours=1)),
        "iat": iat or now,
    }
    payload.update(extra_claims)
    return jwt.encode(payload, secret, algorithm="HS256")


class FakeMailer:
    """Records outgoing mail; result, exception and delay are configurable."""

    def __init__(
        self,
        result: DeliveryResult | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.result = result or Delivered()
        self.error = error
        self.delay = delay
        self.sent: list[dict] = []

    async def send(self, *, to: str, subject: str, body: str) -> DeliveryResult:
        self.sent.append({"to": to, "subject": subject, "body": body})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FrozenClock:
    """Mutable clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def failing_mailer() -> FakeMailer:
    return FakeMailer(DeliveryFailed("smtp unreachable"))


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine with all tables created.

    A file (not :memory:) so that separate sessions use separate
    connections, which the concurrency tests rely on.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'lyricauth_test.db'}",
        echo=False,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_service(
    test_settings: Settings, mailer: FakeMailer, clock: FrozenClock
) -> Callable[..., AuthService]:
    """Factory for AuthService bound to a given session."""

    def _make(session: AsyncSession, **kwargs) -> AuthService:
        kwargs.setdefault("settings", test_settings)
        kwargs.setdefault("mailer", mailer)
        kwargs.setdefault("now", clock)
        return AuthService(session, **kwargs)

    return _make


@pytest.fixture
def auth_service(db_session, make_service) -> AuthService:
    return make_service(db_session)


@pytest_asyncio.fixture
async def client(
    session_factory, test_settings, mailer
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with database, settings and mailer overridden."""
    from lyricauth.api.deps import get_mailer, get_settings
    from lyricauth.core.database import get_db
    from lyricauth.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
