"""
Centralized Test Configuration.
"""

import itertools

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from inventory_backend.app.main import app
from inventory_backend.app.db.session import get_db, Base
from inventory_backend.app.core.config import settings
from inventory_backend.app.core.jwt import create_access_token
from inventory_backend.app.models.enums import Role
from inventory_backend.app.models.product import Product
from inventory_backend.app.models.user import User
from inventory_backend.app.services.users import save_user
import inventory_backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def override_get_db():
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
def mock_redis(monkeypatch):
    """Swap the module-level Redis client for an in-memory fake."""
    fake = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", fake)
    return fake


@pytest.fixture(autouse=True)
async def setup_database(mock_redis):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Anonymous async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def create_user(db_session):
    """Factory persisting a user with the given role."""
    counter = itertools.count(1)

    async def _create(role: Role = Role.CUSTOMER, name=None, email=None, password="password123") -> User:
        n = next(counter)
        user = User(
            name=name or f"{role.value.title()} {n}",
            email=email or f"{role.value}{n}@example.com",
            role=role,
        )
        return await save_user(db_session, user, password=password)

    return _create


@pytest.fixture
async def client_for():
    """Factory returning a client whose session cookie authenticates as ``user``."""
    clients = []

    def _client(user: User) -> AsyncClient:
        token = create_access_token(data={
            "sub": user.email,
            "user_id": user.id,
            "role": user.role.value,
        })
        ac = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={settings.cookie_name: token},
        )
        clients.append(ac)
        return ac

    yield _client

    for ac in clients:
        await ac.aclose()


@pytest.fixture
def create_product(db_session):
    """Factory persisting an active product owned by ``owner``."""
    async def _create(owner: User, name="Widget", price=29.99, quantity=10, category="Tools") -> Product:
        product = Product(
            user_id=owner.id,
            name=name,
            sku=f"SKU-{name.upper()}",
            category=category,
            quantity=quantity,
            price=price,
            description=f"{name} description",
        )
        db_session.add(product)
        await db_session.commit()
        await db_session.refresh(product)
        return product

    return _create


@pytest.fixture
async def admin(create_user):
    return await create_user(Role.ADMIN)


@pytest.fixture
async def manager(create_user):
    return await create_user(Role.MANAGER)


@pytest.fixture
async def employee(create_user):
    return await create_user(Role.EMPLOYEE)


@pytest.fixture
async def customer(create_user):
    return await create_user(Role.CUSTOMER)


@pytest.fixture
async def place_order(client_for):
    """Create an order through the API as ``customer`` and return its JSON."""
    async def _place(customer: User, items) -> dict:
        response = await client_for(customer).post("/api/orders", json={"items": items})
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _place
