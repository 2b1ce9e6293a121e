"""
Centralized Test Configuration.
"""

import itertools
from datetime import date, timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from fleetflow.app.main import app
from fleetflow.app.db.session import get_db, Base
from fleetflow.app.core.jwt import create_access_token, token_payload_for
from fleetflow.app.core.security import get_password_hash
from fleetflow.app.models.user import User
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.enums import UserRole
from fleetflow.app.models.fleet_enums import VehicleType, VehicleStatus, DriverStatus
import fleetflow.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret123"


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        if ex:
            self.ttls[key] = ex
        return True

    async def setex(self, key, seconds, value):
        self.store[key] = value
        self.ttls[key] = seconds
        return True

    async def incr(self, key):
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    async def expire(self, key, seconds):
        if key not in self.store:
            return False
        self.ttls[key] = seconds
        return True

    async def delete(self, key):
        self.ttls.pop(key, None)
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}
        self.ttls = {}


@pytest.fixture(autouse=True)
def mock_redis(monkeypatch):
    """Swap the module-level Redis client for an in-process fake."""
    fake = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", fake)
    return fake


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Shared session for fixture data creation and service-level tests
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Async client for testing, bound to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create_user(db, role: UserRole, email: str, name: str) -> User:
    user = User(
        email=email,
        name=name,
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role,
        is_active=True
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def manager(db_session):
    return await _create_user(db_session, UserRole.MANAGER, "manager@fleetflow.io", "Morgan Manager")


@pytest.fixture
async def dispatcher(db_session):
    return await _create_user(db_session, UserRole.DISPATCHER, "dispatcher@fleetflow.io", "Dana Dispatcher")


@pytest.fixture
async def safety_officer(db_session):
    return await _create_user(db_session, UserRole.SAFETY_OFFICER, "safety@fleetflow.io", "Sasha Safety")


@pytest.fixture
async def analyst(db_session):
    return await _create_user(db_session, UserRole.ANALYST, "analyst@fleetflow.io", "Alex Analyst")


@pytest.fixture(autouse=True)
def _prefetch_role_fixture(request):
    """Resolve a parametrized ``role_fixture`` during setup, outside the running
    event loop, so the test's ``request.getfixturevalue`` hits the cache."""
    callspec = getattr(request.node, "callspec", None)
    name = callspec.params.get("role_fixture") if callspec else None
    if name:
        request.getfixturevalue(name)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(token_payload_for(user))}"}


def actor(user: User) -> dict:
    """Token payload as produced by get_current_user, for service-level calls."""
    payload = token_payload_for(user)
    payload["token"] = "test-token"
    return payload


@pytest.fixture
def make_vehicle(db_session):
    counter = itertools.count(1)

    async def _make(**overrides) -> Vehicle:
        n = next(counter)
        fields = dict(
            name=f"Truck {n}",
            model="Volvo FH",
            license_plate=f"TST-{n:04d}",
            type=VehicleType.TRUCK,
            max_capacity=1000,
            odometer=5000,
            acquisition_cost=50000,
            region="North",
            status=VehicleStatus.AVAILABLE,
        )
        fields.update(overrides)
        vehicle = Vehicle(**fields)
        db_session.add(vehicle)
        await db_session.commit()
        await db_session.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture
def make_driver(db_session):
    counter = itertools.count(1)

    async def _make(**overrides) -> Driver:
        n = next(counter)
        fields = dict(
            name=f"Driver {n}",
            email=f"driver{n}@fleetflow.io",
            phone="+1 555 0100",
            license_number=f"DL-{n:05d}",
            license_category=["Truck", "Van"],
            license_expiry=date.today() + timedelta(days=365),
            status=DriverStatus.OFF_DUTY,
            safety_score=100,
        )
        fields.update(overrides)
        driver = Driver(**fields)
        db_session.add(driver)
        await db_session.commit()
        await db_session.refresh(driver)
        return driver

    return _make


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def actor_for():
    return actor
