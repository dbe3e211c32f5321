"""Pytest configuration and fixtures for FreightBid tests.

Provides an in-memory SQLite database per test, an HTTP client bound to
it, record factories and bearer-token headers.
"""

import itertools
from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.jwt import create_access_token
from app.auth.principal import Role
from app.database import Base, get_db
from app.main import app
from app.models import (
    Bid,
    BidStatus,
    Capacity,
    Carrier,
    CarrierLoadInteraction,
    IndustryType,
    InteractionStatus,
    Load,
    LoadStatus,
    Location,
    Shipper,
    Vehicle,
    VehicleStatus,
    VehicleType,
)
from app.utils.clock import utcnow

_seq = itertools.count(1)


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session used directly by service tests and factories."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database dependency."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def now():
    return utcnow().replace(microsecond=0)


@pytest.fixture
def reload(db_session: AsyncSession):
    """Re-read a row from the database, discarding the cached copy."""
    async def _reload(model, ident):
        return await db_session.get(model, ident, populate_existing=True)

    return _reload


# ── Test Data Fixtures ───────────────────────────────────────────

def _address(n: int) -> Location:
    return Location(street=f"{n} Industrial Estate", city="Pune", state="Maharashtra", pincode="411001")


@pytest.fixture
def make_carrier(db_session: AsyncSession):
    async def _make(**overrides) -> Carrier:
        n = next(_seq)
        fields = dict(
            owner_name=f"Owner {n}",
            company_name=f"Roadways {n}",
            contact_email=f"carrier{n}@example.com",
            contact_number=f"98{n:08d}",
            gst_number=f"27AAAAA{n:04d}A1Z5",
            address=_address(n),
        )
        fields.update(overrides)
        carrier = Carrier(**fields)
        db_session.add(carrier)
        await db_session.commit()
        return carrier

    return _make


@pytest.fixture
def make_shipper(db_session: AsyncSession):
    async def _make(**overrides) -> Shipper:
        n = next(_seq)
        fields = dict(
            owner_name=f"Owner {n}",
            company_name=f"Traders {n}",
            contact_email=f"shipper{n}@example.com",
            contact_number=f"97{n:08d}",
            gst_number=f"29BBBBB{n:04d}B1Z5",
            industry_type=IndustryType.FMCG,
            address=_address(n),
        )
        fields.update(overrides)
        shipper = Shipper(**fields)
        db_session.add(shipper)
        await db_session.commit()
        return shipper

    return _make


@pytest.fixture
def make_vehicle(db_session: AsyncSession):
    async def _make(
        carrier: Carrier,
        vehicle_type: VehicleType = VehicleType.OPEN_BODY,
        capacity: Capacity | None = None,
        status: VehicleStatus = VehicleStatus.AVAILABLE,
        **overrides,
    ) -> Vehicle:
        n = next(_seq)
        if capacity is None:
            capacity = (
                Capacity.litres(20000) if vehicle_type == VehicleType.TANKER else Capacity.tons(10)
            )
        fields = dict(
            carrier_id=carrier.id,
            vehicle_number=f"MH12AB{n:04d}",
            vehicle_type=vehicle_type,
            capacity=capacity,
            length_ft=0 if vehicle_type == VehicleType.TANKER else 20,
            width_ft=0 if vehicle_type == VehicleType.TANKER else 8,
            height_ft=8 if vehicle_type not in (VehicleType.TANKER, VehicleType.TRAILER_FLATBED) else 0,
            manufacturing_year=2020,
            status=status,
        )
        fields.update(overrides)
        vehicle = Vehicle(**fields)
        db_session.add(vehicle)
        carrier.fleet_size += 1
        await db_session.commit()
        return vehicle

    return _make


@pytest.fixture
def make_load(db_session: AsyncSession):
    async def _make(
        shipper: Shipper,
        required_vehicle_types: list[VehicleType] | None = None,
        requirement: Capacity | None = None,
        bidding_deadline=None,
        pickup_date=None,
        expected_delivery_date=None,
        **overrides,
    ) -> Load:
        n = next(_seq)
        base = utcnow().replace(microsecond=0)
        bidding_deadline = bidding_deadline or base + timedelta(days=1)
        pickup_date = pickup_date or bidding_deadline + timedelta(days=1)
        expected_delivery_date = expected_delivery_date or pickup_date + timedelta(days=2)
        types = required_vehicle_types or [VehicleType.OPEN_BODY]
        fields = dict(
            shipper_id=shipper.id,
            pickup_location=Location(f"{n} MIDC Road", "Pune", "Maharashtra", "411019"),
            delivery_location=Location(f"{n} Port Road", "Mumbai", "Maharashtra", "400001"),
            material="Steel coils",
            requirement=requirement or Capacity.tons(5),
            required_vehicle_types=[t.value for t in types],
            budget_price=50000.0,
            bidding_deadline=bidding_deadline,
            pickup_date=pickup_date,
            expected_delivery_date=expected_delivery_date,
            status=LoadStatus.CREATED,
        )
        fields.update(overrides)
        load = Load(**fields)
        db_session.add(load)
        await db_session.commit()
        return load

    return _make


@pytest.fixture
def make_bid(db_session: AsyncSession):
    """Insert a pending bid directly, marking its vehicle BIDDED."""
    async def _make(load: Load, vehicle: Vehicle, amount: float = 40000.0) -> Bid:
        bid = Bid(
            load_id=load.id,
            carrier_id=vehicle.carrier_id,
            vehicle_id=vehicle.id,
            bid_amount=amount,
            estimated_transit_time_hours=24.0,
            status=BidStatus.PENDING,
        )
        db_session.add(bid)
        db_session.add(CarrierLoadInteraction(
            carrier_id=vehicle.carrier_id,
            load_id=load.id,
            status=InteractionStatus.BIDDED,
        ))
        vehicle.status = VehicleStatus.BIDDED
        await db_session.commit()
        return bid

    return _make


# ── Auth Fixtures ────────────────────────────────────────────────

@pytest.fixture
def auth_headers():
    """Build bearer headers for an account id and role."""
    def _headers(account_id: str, role: Role) -> dict:
        token = create_access_token(account_id, role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP tests through the FastAPI app")
    config.addinivalue_line("markers", "auth: Authentication and role checks")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
