"""
Shared test fixtures.

The environment is set before any ``app`` import so the application
settings (read once at import) point at SQLite and skip real email.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PYTHON_ENV"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("RESEND_API_KEY", None)

from collections.abc import AsyncIterator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import app.modules.auth.models  # noqa: E402,F401
import app.modules.registrations.models  # noqa: E402,F401
import app.modules.statuses.models  # noqa: E402,F401
from app.core.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from app.core.rate_limit import reset_rate_limits  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.main import app as api_app  # noqa: E402
from app.modules.registrations import service as registrations_service  # noqa: E402
from app.modules.registrations.models import Registration  # noqa: E402
from app.modules.registrations.schemas import RegistrationCreateRequest  # noqa: E402
from app.modules.statuses.service import seed_default_statuses  # noqa: E402
from app.modules.users.models import User, UserRole  # noqa: E402
from app.modules.users.repository import UserRepository  # noqa: E402

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def _clear_rate_limits():
    """Each test starts with empty in-memory rate limit counters."""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """
    File-backed SQLite engine with the full schema.

    A file (not ``:memory:``) so separate sessions use separate connections,
    as concurrent requests do.
    """
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    async with factory() as db:
        await seed_default_statuses(db)

    return factory


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    """A session on a database seeded with the default statuses."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def operator_password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def make_operator(session_factory):
    """Factory inserting an operator (password ``TEST_PASSWORD``) in its own session."""

    async def _make(
        email: str = "operator@kadima.org",
        role: UserRole = UserRole.ADMIN,
        is_active: bool = True,
    ) -> User:
        async with session_factory() as session:
            user = await UserRepository.create(
                session,
                email=email,
                password_hash=hash_password(TEST_PASSWORD),
                first_name="Test",
                last_name="Operator",
                role=role,
                is_active=is_active,
            )
            await session.commit()
            return user

    return _make


@pytest_asyncio.fixture
async def operator(make_operator) -> User:
    return await make_operator()


@pytest.fixture
def registration_form():
    """Factory for valid intake forms."""

    def _form(
        last_name: str = "Levy",
        first_name: str = "Sarah",
        email: str = "sarah.levy@example.com",
        **extra,
    ) -> RegistrationCreateRequest:
        return RegistrationCreateRequest(
            last_name=last_name,
            first_name=first_name,
            email=email,
            phone="+33 6 12 34 56 78",
            **extra,
        )

    return _form


@pytest.fixture
def make_registration(session_factory, registration_form):
    """Factory submitting a registration through the intake service."""

    async def _make(last_name: str = "Levy", **kwargs) -> Registration:
        async with session_factory() as session:
            return await registrations_service.submit_registration(
                session,
                registration_form(last_name=last_name, **kwargs),
                meta={"ip": "198.51.100.4"},
                session_year=2026,
            )

    return _make


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    """HTTP client on the in-process app, with ``get_db`` on the test database."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    api_app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=api_app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    api_app.dependency_overrides.clear()


@pytest.fixture
def login(client, make_operator, operator_password):
    """Create an operator, log in and return bearer headers."""

    async def _login(email: str = "operator@kadima.org", role: UserRole = UserRole.ADMIN):
        await make_operator(email=email, role=role)
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": operator_password},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
