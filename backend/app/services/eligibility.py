"""Eligibility filter: what a carrier may see and bid with.

  list_eligible_loads     open loads the carrier has not acted on yet
  list_eligible_vehicles  the carrier's free vehicles that fit a load
  check_load_visibility   whether a carrier may open a load's detail

The bid engine reuses ``ensure_open_for_bidding`` and
``check_vehicle_fits_load`` so listing and bidding apply the same rules.
"""

from datetime import datetime

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import (
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models.interaction import CarrierLoadInteraction, InteractionStatus
from app.models.load import Load, LoadStatus
from app.models.vehicle import Vehicle, VehicleStatus, VehicleType
from app.utils.clock import utcnow


def ensure_open_for_bidding(
    load: Load,
    now: datetime,
    closed_message: str = "Bidding is not allowed on this load",
) -> None:
    """Raise unless the load is CREATED and its bidding deadline is ahead."""
    if load.status != LoadStatus.CREATED:
        raise InvalidStateError(closed_message)
    if now >= load.bidding_deadline:
        raise InvalidStateError("Bidding deadline has passed")


def required_types(load: Load) -> list[VehicleType]:
    return [VehicleType(value) for value in load.required_vehicle_types]


def check_vehicle_fits_load(vehicle: Vehicle, load: Load) -> None:
    """Raise if the vehicle's type or capacity does not suit the load."""
    if vehicle.vehicle_type not in required_types(load):
        raise InvalidStateError("Vehicle type is not suitable for this load")
    if not vehicle.capacity.covers(load.requirement):
        raise InvalidStateError("Vehicle capacity is insufficient for this load")


async def get_load(db: AsyncSession, load_id: str) -> Load:
    load = await db.get(Load, load_id)
    if not load:
        raise ResourceNotFoundError("Load not found")
    return load


async def has_interaction(
    db: AsyncSession,
    carrier_id: str,
    load_id: str,
    status: InteractionStatus | None = None,
) -> bool:
    stmt = select(CarrierLoadInteraction.id).where(
        CarrierLoadInteraction.carrier_id == carrier_id,
        CarrierLoadInteraction.load_id == load_id,
    )
    if status is not None:
        stmt = stmt.where(CarrierLoadInteraction.status == status)
    return (await db.execute(stmt.limit(1))).first() is not None


# ── Loads ─────────────────────────────────────────────────────

async def list_eligible_loads(
    db: AsyncSession,
    carrier_id: str,
    now: datetime | None = None,
) -> list[Load]:
    """Open loads this carrier has neither bid on nor declined, soonest deadline first."""
    now = now or utcnow()

    already_acted = exists().where(
        CarrierLoadInteraction.load_id == Load.id,
        CarrierLoadInteraction.carrier_id == carrier_id,
    )
    result = await db.execute(
        select(Load)
        .where(
            Load.status == LoadStatus.CREATED,
            Load.bidding_deadline > now,
            ~already_acted,
        )
        .order_by(Load.bidding_deadline.asc())
    )
    return list(result.scalars().all())


def check_load_visibility(load: Load, has_bidded: bool, now: datetime) -> None:
    """Decide whether a carrier may see a load's full detail.

    Open loads are visible to everyone until pickup.  A load still
    CREATED after its pickup date has expired and is hidden.  Once a load
    leaves CREATED only carriers that bid on it can open it.
    """
    if load.status == LoadStatus.CREATED:
        if now >= load.pickup_date:
            raise PermissionDeniedError("Load expired and details are no longer accessible")
        return

    if not has_bidded:
        raise PermissionDeniedError("You are not authorized to view this load")


async def get_carrier_load_detail(
    db: AsyncSession,
    carrier_id: str,
    load_id: str,
    now: datetime | None = None,
) -> Load:
    now = now or utcnow()
    load = await get_load(db, load_id)

    has_bidded = False
    if load.status != LoadStatus.CREATED:
        has_bidded = await has_interaction(db, carrier_id, load_id, InteractionStatus.BIDDED)

    check_load_visibility(load, has_bidded, now)
    return load


# ── Vehicles ──────────────────────────────────────────────────

async def list_eligible_vehicles(
    db: AsyncSession,
    carrier_id: str,
    load_id: str,
    now: datetime | None = None,
) -> list[Vehicle]:
    """The carrier's AVAILABLE vehicles whose type and capacity suit the load."""
    now = now or utcnow()
    load = await get_load(db, load_id)
    ensure_open_for_bidding(load, now, "Vehicles cannot be selected for this load")

    required = load.requirement
    result = await db.execute(
        select(Vehicle)
        .where(
            Vehicle.carrier_id == carrier_id,
            Vehicle.status == VehicleStatus.AVAILABLE,
            Vehicle.vehicle_type.in_(required_types(load)),
            Vehicle.capacity_unit == required.unit,
            Vehicle.capacity_value >= required.value,
        )
        .order_by(Vehicle.capacity_value.asc())
    )
    return list(result.scalars().all())
