"""
PyTest configuration and fixtures for the Fire Alarm Checklist Tracker tests
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.dependencies import get_gateway
from app.models.base import Base
from app.services.change_feed import ChangeFeed, get_change_feed
from app.services.gateway import ChecklistGateway
from app.services.local_mirror import InMemoryMirror


# Test database setup - Using async SQLite with aiosqlite
SQLALCHEMY_TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def session_factory():
    """
    Create a fresh in-memory database for each test.
    """
    engine = create_async_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def change_feed():
    return ChangeFeed()


@pytest_asyncio.fixture
async def gateway(session_factory, change_feed):
    return ChecklistGateway(session_factory, change_feed)


@pytest.fixture
def mirror():
    return InMemoryMirror()


@pytest_asyncio.fixture
async def checklist(gateway):
    """
    Acme / Fire Inspection with three devices.
    """
    company = await gateway.get_or_create_company("Acme")
    checklist = await gateway.create_checklist(company.id, "Fire Inspection", 2026)
    await gateway.insert_devices(checklist.id, [
        {"loop": 1, "address": 2, "model": "PS", "device_type": "Smoke Verified",
         "serial_number": "S2", "messages": "Lobby smoke"},
        {"loop": 1, "address": 10, "model": "HRS", "device_type": "Heat ROR",
         "serial_number": "S10", "messages": "Basement heat"},
        {"loop": 1, "address": 1, "model": "PS", "device_type": "Smoke Verified",
         "serial_number": "S1", "messages": "Attic smoke"},
    ])
    return checklist


@pytest_asyncio.fixture
async def client(gateway, change_feed):
    """
    Async HTTP client against the app with the test gateway injected.
    """
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_change_feed] = lambda: change_feed

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
