"""Test fixtures: async in-memory DB, settings, and FastAPI test clients.

Every test gets a fresh in-memory SQLite database. SQLite's driver-level
transaction handling is replaced by explicit BEGIN so SAVEPOINTs (used by the
issuance collision retry) behave as they do on PostgreSQL.
"""

from collections.abc import AsyncGenerator, Callable
from datetime import date, datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import certification.models  # noqa: F401 - register with Base
from certification.certificates.schemas import (
    CourseRef,
    IssueCertificateRequest,
    PersonRef,
    ScoreIn,
)
from certification.config import Settings
from certification.database import get_db
from certification.dependencies import get_settings
from certification.main import app
from shared.auth.config import AuthSettings
from shared.auth.dependencies import get_auth_settings
from shared.constants import Role
from shared.database.postgres import Base, session_scope

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_ID = UUID("00000000-0000-4000-8000-0000000000ad")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        certification_database_url=TEST_DATABASE_URL,
        certificate_base_url="https://certs.example.com/verify",
        certificate_validity_years=2,
        certificate_code_max_attempts=3,
    )


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def issue_request() -> Callable[..., IssueCertificateRequest]:
    """Builder for a fully populated issuance request; keyword overrides win."""

    def _build(**overrides) -> IssueCertificateRequest:
        data = {
            "holder": PersonRef(
                id=uuid4(), first_name="Jane", last_name="Doe", email="jane@example.com",
            ),
            "course": CourseRef(id=uuid4(), title="Advanced Pastry"),
            "instructor": PersonRef(id=uuid4(), first_name="Marco", last_name="Rossi"),
            "issue_date": date(2024, 1, 10),
            "expiry_date": date(2027, 1, 10),
            "grade": "A",
            "certificate_type": "completion",
            "certificate_level": "advanced",
            "score": ScoreIn(obtained=45, total=50, percentage=90),
        }
        data.update(overrides)
        return IssueCertificateRequest(**data)

    return _build


def _override_db(session_factory):
    async def override_get_db():
        async for session in session_scope(session_factory):
            yield session

    return override_get_db


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(secret="test-secret")


@pytest.fixture
def auth_headers(auth_settings) -> Callable[..., dict[str, str]]:
    """Bearer headers for a signed token carrying ``user_id`` and ``roles``."""

    def _headers(user_id: UUID, *roles: Role) -> dict[str, str]:
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": str(user_id),
                "email": f"{user_id.hex[:8]}@example.com",
                "roles": [r.value for r in roles],
                "iss": auth_settings.issuer,
                "aud": auth_settings.audience,
                "iat": now,
                "exp": now + timedelta(hours=1),
            },
            auth_settings.secret,
            algorithm=auth_settings.algorithm,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def app_overrides(session_factory, settings, auth_settings) -> AsyncGenerator[None, None]:
    app.dependency_overrides[get_db] = _override_db(session_factory)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_auth_settings] = lambda: auth_settings
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anonymous_client(app_overrides) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def client(app_overrides, auth_headers) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as a certificate admin."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=auth_headers(ADMIN_ID, Role.ADMIN),
    ) as c:
        yield c
