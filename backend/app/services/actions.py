"""Role capabilities: what an authenticated carrier or shipper can do.

The role is checked once, when the capability object is built from the
principal; every method afterwards acts for that account only:

    actions = await actions_for(principal, db)
    await actions.place_bid(load_id, body)      # CarrierActions
    await actions.accept_bid(bid_id)            # ShipperActions

Routers receive these objects through ``get_carrier_actions`` /
``get_shipper_actions`` in app/auth/deps.py.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.principal import Principal, Role
from app.middleware.exceptions import PermissionDeniedError, UnauthorizedError
from app.models.bid import BidStatus
from app.models.carrier import Carrier
from app.models.load import LoadStatus
from app.models.shipper import Shipper
from app.models.vehicle import VehicleStatus
from app.schemas.bid import BidCreate
from app.schemas.load import LoadCreate
from app.schemas.validators import parse_status_filter
from app.schemas.vehicle import VehicleCreate, VehicleUpdate
from app.services import assignment, bidding, eligibility, fleet, loads, transit


class CarrierActions:
    """Operations available to a carrier, bound to its account and session."""

    role = Role.CARRIER

    def __init__(self, principal: Principal, db: AsyncSession, carrier: Carrier):
        self.principal = principal
        self.db = db
        self.carrier = carrier

    @property
    def carrier_id(self) -> str:
        return self.carrier.id

    @property
    def profile(self) -> Carrier:
        return self.carrier

    # ── Load feed ────────────────────────────────────────────

    async def eligible_loads(self, now: datetime | None = None):
        return await eligibility.list_eligible_loads(self.db, self.carrier_id, now)

    async def load_detail(self, load_id: str, now: datetime | None = None):
        return await eligibility.get_carrier_load_detail(self.db, self.carrier_id, load_id, now)

    async def eligible_vehicles(self, load_id: str, now: datetime | None = None):
        return await eligibility.list_eligible_vehicles(self.db, self.carrier_id, load_id, now)

    # ── Bidding ──────────────────────────────────────────────

    async def place_bid(self, load_id: str, body: BidCreate, now: datetime | None = None):
        return await bidding.place_bid(
            self.db,
            self.carrier_id,
            load_id,
            body.vehicle_id,
            body.bid_amount,
            body.estimated_transit_time_hours,
            now,
        )

    async def mark_not_interested(self, load_id: str, now: datetime | None = None):
        return await bidding.mark_not_interested(self.db, self.carrier_id, load_id, now)

    async def bids(self, status: str | None = None):
        return await bidding.list_carrier_bids(
            self.db, self.carrier_id, parse_status_filter(BidStatus, status)
        )

    async def bid_detail(self, bid_id: str, now: datetime | None = None):
        return await bidding.get_carrier_bid_detail(self.db, self.carrier_id, bid_id, now)

    # ── Transit ──────────────────────────────────────────────

    async def start_transit(
        self,
        load_id: str,
        driver_name: str | None = None,
        driver_phone: str | None = None,
        now: datetime | None = None,
    ):
        return await transit.start_transit(
            self.db, self.carrier_id, load_id, driver_name, driver_phone, now
        )

    async def mark_delivered(self, load_id: str):
        return await transit.mark_delivered(self.db, self.carrier_id, load_id)

    # ── Fleet ────────────────────────────────────────────────

    async def add_vehicle(self, body: VehicleCreate, today: datetime | None = None):
        return await fleet.add_vehicle(self.db, self.carrier_id, body, today)

    async def vehicles(self, status: str | None = None, include_retired: bool = False):
        return await fleet.list_vehicles(
            self.db,
            self.carrier_id,
            parse_status_filter(VehicleStatus, status),
            include_retired,
        )

    async def vehicle(self, vehicle_id: str):
        return await fleet.get_vehicle(self.db, self.carrier_id, vehicle_id)

    async def update_vehicle(
        self, vehicle_id: str, body: VehicleUpdate, today: datetime | None = None
    ):
        return await fleet.update_vehicle(self.db, self.carrier_id, vehicle_id, body, today)

    async def update_vehicle_status(self, vehicle_id: str, status: VehicleStatus):
        return await fleet.update_vehicle_status(self.db, self.carrier_id, vehicle_id, status)

    async def mark_maintenance(self, vehicle_id: str):
        return await fleet.mark_maintenance(self.db, self.carrier_id, vehicle_id)

    async def remove_vehicle(self, vehicle_id: str) -> str:
        return await fleet.remove_vehicle(self.db, self.carrier_id, vehicle_id)


class ShipperActions:
    """Operations available to a shipper, bound to its account and session."""

    role = Role.SHIPPER

    def __init__(self, principal: Principal, db: AsyncSession, shipper: Shipper):
        self.principal = principal
        self.db = db
        self.shipper = shipper

    @property
    def shipper_id(self) -> str:
        return self.shipper.id

    @property
    def profile(self) -> Shipper:
        return self.shipper

    async def create_load(self, body: LoadCreate, now: datetime | None = None):
        return await loads.create_load(self.db, self.shipper_id, body, now)

    async def loads(self, status: str | None = None):
        return await loads.list_shipper_loads(
            self.db, self.shipper_id, parse_status_filter(LoadStatus, status)
        )

    async def load_detail(self, load_id: str):
        return await loads.get_shipper_load_detail(self.db, self.shipper_id, load_id)

    async def bids_for_load(self, load_id: str):
        return await assignment.list_bids_for_load(self.db, self.shipper_id, load_id)

    async def bid_detail(self, bid_id: str, now: datetime | None = None):
        return await assignment.get_shipper_bid_detail(self.db, self.shipper_id, bid_id, now)

    async def accept_bid(self, bid_id: str, now: datetime | None = None) -> dict:
        return await assignment.accept_bid(self.db, self.shipper_id, bid_id, now)

    async def rate_carrier(self, load_id: str, rating: int | None) -> dict:
        return await transit.rate_carrier(self.db, self.shipper_id, load_id, rating)


# ── Factories ───────────────────────────────────────────────

async def carrier_actions(principal: Principal, db: AsyncSession) -> CarrierActions:
    if principal.role != Role.CARRIER:
        raise PermissionDeniedError("Carrier access required")
    carrier = await db.get(Carrier, principal.id)
    if not carrier:
        raise UnauthorizedError("Account not found")
    return CarrierActions(principal, db, carrier)


async def shipper_actions(principal: Principal, db: AsyncSession) -> ShipperActions:
    if principal.role != Role.SHIPPER:
        raise PermissionDeniedError("Shipper access required")
    shipper = await db.get(Shipper, principal.id)
    if not shipper:
        raise UnauthorizedError("Account not found")
    return ShipperActions(principal, db, shipper)


async def actions_for(principal: Principal, db: AsyncSession) -> CarrierActions | ShipperActions:
    """Pick the capability object for the principal's role."""
    if principal.role == Role.CARRIER:
        return await carrier_actions(principal, db)
    return await shipper_actions(principal, db)
