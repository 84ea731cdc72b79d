"""Shared fixtures.

API tests run against an in-process SQLite database. PostgreSQL-specific
column types (JSONB, UUID) are compiled as SQLite-compatible types via
SQLAlchemy @compiles hooks registered before any model imports.
"""
import os

# Settings are read at import time; keep external services out of the tests
os.environ["REDIS_URL"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["GOOGLE_MAPS_API_KEY"] = ""

# Register PG→SQLite type compilers BEFORE any model imports
from sqlalchemy.dialects.postgresql import JSONB, UUID  # noqa: E402
from sqlalchemy.ext.compiler import compiles  # noqa: E402


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "TEXT"


@compiles(UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "VARCHAR(36)"


import uuid  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.auth import create_access_token, hash_password  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.job import Job, JobStatus, UrgencyLevel  # noqa: E402
from app.models.user import User, UserRole, UserSkill  # noqa: E402
from app.schemas.map import JobPin  # noqa: E402

# ---------------------------------------------------------------------------
# Test DB setup (async SQLite)
# ---------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"

engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def _override_get_db():
    async with TestSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = _override_get_db

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def setup_db():
    """Create tables before the test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # The in-memory database lives on one pooled connection bound to this test's loop
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(setup_db):
    async with TestSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client(setup_db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def create_user(
    db: AsyncSession,
    role: str = UserRole.CUSTOMER,
    email: str | None = None,
    skills: list[str] | None = None,
    **kwargs,
) -> User:
    user = User(
        id=uuid.uuid4(),
        email=email or f"{role}-{uuid.uuid4().hex[:8]}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        first_name=kwargs.pop("first_name", "Test"),
        last_name=kwargs.pop("last_name", role.title()),
        role=role,
        **kwargs,
    )
    db.add(user)
    await db.flush()
    for name in skills or []:
        db.add(UserSkill(user_id=user.id, name=name))
    await db.commit()
    await db.refresh(user)
    return user


async def create_job(db: AsyncSession, customer: User, title: str = "Fix leaking sink", **kwargs) -> Job:
    job = Job(
        id=uuid.uuid4(),
        customer_id=customer.id,
        title=title,
        description=kwargs.pop("description", "Kitchen sink drips under the cabinet."),
        lat=kwargs.pop("lat", 37.7749),
        lng=kwargs.pop("lng", -122.4194),
        city=kwargs.pop("city", "San Francisco"),
        category_id=kwargs.pop("category_id", "handy-man"),
        status=kwargs.pop("status", JobStatus.NEW),
        **kwargs,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return job


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest_asyncio.fixture
async def customer(db_session) -> User:
    return await create_user(db_session, UserRole.CUSTOMER, email="customer@example.com")


@pytest_asyncio.fixture
async def specialist(db_session) -> User:
    return await create_user(
        db_session, UserRole.SPECIALIST, email="specialist@example.com", skills=["plumbing", "handy-man"]
    )


@pytest_asyncio.fixture
async def open_job(db_session, customer) -> Job:
    return await create_job(db_session, customer)


# ---------------------------------------------------------------------------
# In-memory map data
# ---------------------------------------------------------------------------


def make_pin(**overrides) -> JobPin:
    fields = {
        "id": uuid.uuid4(),
        "title": "Job",
        "status": JobStatus.NEW,
        "lat": 37.7749,
        "lng": -122.4194,
        "category_id": "handy-man",
        "urgency_level": UrgencyLevel.MEDIUM,
        "budget_min": None,
        "is_verified_payment": False,
        "is_neighbor_posted": False,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return JobPin(**fields)


@pytest.fixture
def pin_factory():
    return make_pin


# ---------------------------------------------------------------------------
# Fake Anthropic client
# ---------------------------------------------------------------------------


class FakeMessages:
    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)])


class FakeAnthropic:
    def __init__(self, text: str = "", error: Exception | None = None):
        self.messages = FakeMessages(text, error)
