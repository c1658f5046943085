import socket
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from email_token.core.config import Settings, settings
from email_token.models.base import Base
from email_token.services.service_state import ServiceState
from email_token.services.token_issuer import TokenIssuer
from email_token.services.token_store import InMemoryTokenStore
from email_token.services.token_verifier import TokenVerifier

# Use separate test database
TEST_DATABASE_URL = settings.database_url.replace(
    settings.database_name, f"{settings.database_name}_test"
)

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow

TEST_EMAIL = "a@b.com"
TEST_FRONTEND_URL = "http://frontend.test"


def make_test_settings(**overrides) -> Settings:
    """Build Settings for an enabled, memory-backed application.

    Args:
        **overrides: Field values replacing the test defaults.

    Returns:
        Settings instance independent of the process environment defaults.
    """
    values = {
        "email_token_enabled": True,
        "email_token_store": "memory",
        "auth_secret": SecretStr(TEST_AUTH_SECRET),
        "frontend_url": TEST_FRONTEND_URL,
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on port 5432, False otherwise.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("127.0.0.1", 5432))
        sock.close()
        return result == 0
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available.

    Called by fixtures that require database connection.
    """
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            "PostgreSQL not available on port 5432. "
            "Start database with: docker compose up -d"
        )


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# =============================================================================
# Token Protocol Fixtures
# =============================================================================


@pytest.fixture
def service_state() -> ServiceState:
    """Enabled ServiceState."""
    return ServiceState(enabled=True)


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    """Empty in-memory token store."""
    return InMemoryTokenStore()


@pytest.fixture
def token_issuer(
    service_state: ServiceState, token_store: InMemoryTokenStore
) -> TokenIssuer:
    """Issuer sharing state and store with token_verifier."""
    return TokenIssuer(service_state, token_store)


@pytest.fixture
def token_verifier(
    service_state: ServiceState, token_store: InMemoryTokenStore
) -> TokenVerifier:
    """Verifier sharing state and store with token_issuer."""
    return TokenVerifier(service_state, token_store)


# =============================================================================
# API Test Fixtures
# =============================================================================


@pytest.fixture
def test_app() -> FastAPI:
    """Application built from enabled, memory-backed test settings."""
    from email_token.main import create_app

    return create_app(make_test_settings())


@pytest_asyncio.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the test application.

    The memory token store never touches the database, so get_db is
    replaced with a session-less stub.

    Yields:
        AsyncClient that does not follow redirects.
    """
    from email_token.core.database import get_db

    async def override_get_db() -> AsyncGenerator[None, None]:
        yield None

    test_app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=test_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=False,
    ) as ac:
        yield ac

    test_app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Disable rate limiting during tests.

    Security: Rate limiting is tested separately; disable for other tests
    to avoid flaky failures from rate limit triggers.

    Yields:
        None (autouse fixture).
    """
    from email_token.core.rate_limiting import limiter

    original_enabled = limiter.enabled
    limiter.enabled = False

    yield

    limiter.enabled = original_enabled
