import inspect
import os
from unittest.mock import MagicMock

# Settings are read when opsdesk.db.engine is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin")

import anyio  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from opsdesk.auth.service import (  # noqa: E402
    FirebaseAuthService,
    FirebaseUserRecord,
    get_firebase_auth_service,
)
from opsdesk.core.constants import SESSION_COOKIE_NAME  # noqa: E402
from opsdesk.core.settings import Settings, get_settings  # noqa: E402
from opsdesk.db.engine import get_session  # noqa: E402
from opsdesk.main import app  # noqa: E402
from opsdesk.profile.models import Profile, ProfileRole  # noqa: E402
from tests.helpers import (  # noqa: E402
    TEST_EMAIL,
    TEST_UID,
    confirmed_claims,
    make_profile,
)


def pytest_configure(config: pytest.Config) -> None:
    # Tests use @pytest.mark.asyncio, but we intentionally rely on anyio.
    config.addinivalue_line(
        "markers",
        "asyncio: run async tests using anyio (project-local hook)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Run @pytest.mark.asyncio tests with anyio.

    This avoids adding an external pytest-asyncio dependency.
    """
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    funcargs = {
        name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
    }

    async def _run_async_test() -> None:
        await test_func(**funcargs)

    anyio.run(_run_async_test)
    return True


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="profile")
def profile_fixture(session: Session) -> Profile:
    """An approved staff profile for TEST_UID."""
    profile = make_profile()
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture(name="admin_profile")
def admin_profile_fixture(session: Session) -> Profile:
    """An approved admin profile for TEST_UID."""
    profile = make_profile(role=ProfileRole.admin.value)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture(name="mock_firebase_auth")
def mock_firebase_auth_fixture():
    """Create a mock FirebaseAuthService."""
    mock_service = MagicMock(spec=FirebaseAuthService)
    mock_service.verify_session_cookie.return_value = confirmed_claims()
    mock_service.verify_id_token.return_value = confirmed_claims()
    mock_service.get_user.return_value = FirebaseUserRecord(
        uid=TEST_UID, email=TEST_EMAIL, email_verified=True, provider="password"
    )
    mock_service.create_session_cookie.return_value = "new-session-cookie"
    return mock_service


@pytest.fixture(name="mock_settings")
def mock_settings_fixture():
    """Test settings with every guard and settle delay set to zero."""
    return Settings(
        ENV_NAME="test",
        DATABASE_URL="sqlite://",
        SESSION_SECRET_KEY="test-secret-key",
        ADMIN_USERNAME="admin",
        ADMIN_PASSWORD="admin",
        SESSION_EXPIRES_DAYS=5,
        FIREBASE_API_KEY="test-api-key",
        SESSION_SETTLE_DELAY_SECONDS=0,
        GUARD_SIGNED_IN_DELAY_SECONDS=0,
        GUARD_INITIAL_SESSION_DELAY_SECONDS=0,
        GUARD_REDIRECT_GRACE_SECONDS=0,
    )


@pytest.fixture(name="anonymous_client")
def anonymous_client_fixture(
    session: Session,
    mock_firebase_auth: MagicMock,
    mock_settings: Settings,
):
    """Test client without a session cookie."""

    def get_session_override():
        return session

    def get_firebase_auth_override():
        return mock_firebase_auth

    def get_settings_override():
        return mock_settings

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_firebase_auth_service] = get_firebase_auth_override
    app.dependency_overrides[get_settings] = get_settings_override

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(anonymous_client: TestClient):
    """Test client carrying a session cookie the mock provider accepts."""
    anonymous_client.cookies.set(SESSION_COOKIE_NAME, "valid-session-cookie")
    return anonymous_client
