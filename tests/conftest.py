import pytest
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event

from main import app
from app.core.config import settings
from app.core.database import Database, get_async_session
from app.core.security import get_password_hash
from app.models.auth.user import User
from app.models.logistics.shipment import Shipment
from app.models.shared.enums import Role, ShipmentPriority, ShipmentStatus
from app.services.auth.auth_service import AuthService

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Cheap bcrypt cost keeps the suite fast"""
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh in-memory database per test"""
    db = Database(TEST_DATABASE_URL)
    await db.init()
    await db.create_all()

    yield db

    await db.drop_all()
    await db.teardown()


@pytest.fixture
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """Create test client"""

    async def override_get_db():
        async with database.session() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    app.state.db = database

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def graphql(client: AsyncClient):
    """POST a GraphQL document and return the decoded response body"""

    async def execute(query: str, variables: Optional[dict] = None, token: Optional[str] = None) -> dict:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = await client.post(
            "/graphql",
            json={"query": query, "variables": variables or {}},
            headers=headers,
        )
        return response.json()

    return execute


async def create_user(database: Database, email: str, password: str, name: str, role: Role) -> User:
    async with database.session() as session:
        user = User(email=email, hashed_password=get_password_hash(password), name=name, role=role)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def token_for(user: User) -> str:
    return AuthService(None).create_token(user)


@pytest.fixture
async def admin_user(database: Database) -> User:
    return await create_user(database, "admin@tms.com", "admin123", "Admin User", Role.ADMIN)


@pytest.fixture
async def employee_user(database: Database) -> User:
    return await create_user(database, "employee@tms.com", "employee123", "Employee User", Role.EMPLOYEE)


@pytest.fixture
def admin_token(admin_user: User) -> str:
    return token_for(admin_user)


@pytest.fixture
def employee_token(employee_user: User) -> str:
    return token_for(employee_user)


@pytest.fixture
def shipment_factory(database: Database):
    """Insert shipments straight through the ORM; returns the stored row"""
    counter = {"n": 0}

    async def create(**overrides) -> Shipment:
        counter["n"] += 1
        data = {
            "shipper_name": "ABC Corp",
            "carrier_name": "UPS",
            "pickup_location": "Chicago, IL",
            "pickup_date": date(2024, 3, 1),
            "delivery_location": "Dallas, TX",
            "delivery_date": date(2024, 3, 5),
            "status": ShipmentStatus.PENDING,
            "priority": ShipmentPriority.MEDIUM,
            "tracking_number": f"TRKTEST{counter['n']:04d}",
            "rate": Decimal("100.00"),
            "weight": Decimal("25.50"),
            "dimensions": "10x10x10 cm",
            "flagged": False,
        }
        data.update(overrides)
        async with database.session() as session:
            shipment = Shipment(**data)
            session.add(shipment)
            await session.commit()
            await session.refresh(shipment)
            return shipment

    return create


@pytest.fixture
def sql_log(database: Database):
    """SQL statements sent to the database while the test runs"""
    statements = []

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(database.engine.sync_engine, "before_cursor_execute", before_cursor_execute)
    yield statements
    event.remove(database.engine.sync_engine, "before_cursor_execute", before_cursor_execute)
