"""
tests/conftest.py

Test fixtures for API integration and service tests.
Includes async clients, fake users, dependency overrides and a throwaway
SQLite database for the service-layer tests.
"""
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# --- Imports ---
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from main import app
from cleanconnect.cleaning import schemas as cleaning_schemas
from cleanconnect.cleaning.models import BookingFrequency, ServiceType
from cleanconnect.core.dependencies import get_current_user
from cleanconnect.core.limiter import limiter
from cleanconnect.database.base import Base
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import Property, User
from cleanconnect.database.session import get_db

limiter.enabled = False


# --- Core Test Fixtures ---


@pytest.fixture(scope="session")
def transport() -> ASGITransport:
    """Fixture for ASGI transport."""
    return ASGITransport(app=app)


@pytest_asyncio.fixture(scope="function")
async def async_client(transport: ASGITransport) -> AsyncGenerator[AsyncClient, None]:
    """Fixture for HTTP async client."""
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# --- Fake User Fixtures ---


def _fake_user(role: UserRole, email: str, first_name: str) -> User:
    return User(
        id=uuid4(),
        email=email,
        role=role,
        first_name=first_name,
        last_name="Test",
        balance=Decimal("100.00"),
        has_a_streak=False,
        average_rating=0.0,
        number_of_reviews=0,
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def fake_admin_user() -> User:
    """Fixture for a fake admin user."""
    return _fake_user(UserRole.ADMIN, "admin.test@example.com", "Admin")


@pytest.fixture
def fake_requesting_user() -> User:
    """Fixture for a fake requesting user."""
    return _fake_user(UserRole.USER, "user.test@example.com", "Requester")


@pytest.fixture
def fake_cleaner_user() -> User:
    """Fixture for a fake cleaner."""
    return _fake_user(UserRole.CLEANER, "cleaner.test@example.com", "Cleaner")


# --- Dependency Override Fixtures ---


@pytest_asyncio.fixture
async def override_get_db() -> AsyncGenerator[None, None]:
    """Override for the database dependency."""

    async def _override() -> AsyncGenerator[AsyncMock, None]:
        yield AsyncMock()

    app.dependency_overrides[get_db] = _override
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def mock_current_admin_user(fake_admin_user: User) -> AsyncGenerator[User, None]:
    """Mock the current user as an admin."""
    app.dependency_overrides[get_current_user] = lambda: fake_admin_user
    yield fake_admin_user
    app.dependency_overrides.pop(get_current_user, None)


@pytest_asyncio.fixture
async def mock_current_requesting_user(
    fake_requesting_user: User,
) -> AsyncGenerator[User, None]:
    """Mock the current user as a requesting user."""
    app.dependency_overrides[get_current_user] = lambda: fake_requesting_user
    yield fake_requesting_user
    app.dependency_overrides.pop(get_current_user, None)


@pytest_asyncio.fixture
async def mock_current_cleaner_user(fake_cleaner_user: User) -> AsyncGenerator[User, None]:
    """Mock the current user as a cleaner."""
    app.dependency_overrides[get_current_user] = lambda: fake_cleaner_user
    yield fake_cleaner_user
    app.dependency_overrides.pop(get_current_user, None)


# --- Database Fixtures (service-layer tests) ---


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """A fresh SQLite database file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cleanconnect.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=db_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[User]]:
    """Persist a user in its own session and return it detached."""

    async def _make(role: UserRole = UserRole.USER, balance: str = "0.00") -> User:
        user = User(
            email=f"{role.value}.{uuid4().hex[:8]}@example.com",
            first_name=role.value.capitalize(),
            last_name="Test",
            role=role,
            balance=Decimal(balance),
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _make


@pytest.fixture
def make_property(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[User], Awaitable[Property]]:
    async def _make(owner: User) -> Property:
        prop = Property(
            owner_id=owner.id,
            street="12 Long Street",
            city="Cape Town",
            province="Western Cape",
            postal_code="8001",
            number_of_bedrooms=2,
            number_of_bathrooms=1,
        )
        async with session_factory() as session:
            session.add(prop)
            await session.commit()
        return prop

    return _make


@pytest.fixture
def weekly_booking() -> Callable[..., cleaning_schemas.ServiceCreate]:
    """Base 50, one extra of 10, weekly: fee 54 after the 10% discount."""

    def _build(property_id, days_ahead: int = 7, **overrides) -> cleaning_schemas.ServiceCreate:
        data = {
            "property_id": property_id,
            "service_type": ServiceType.STANDARD,
            "base_fee": Decimal("50"),
            "extras": [{"name": "Inside oven", "fee": Decimal("10")}],
            "booking_frequency": BookingFrequency.WEEKLY,
            "requested_dates": [
                {"visit_date": date.today() + timedelta(days=days_ahead), "time_of_arrival": "09:00"}
            ],
        }
        data.update(overrides)
        return cleaning_schemas.ServiceCreate(**data)

    return _build


@pytest.fixture(autouse=True)
def clear_overrides() -> Generator[None, None, None]:
    yield
    app.dependency_overrides.clear()
