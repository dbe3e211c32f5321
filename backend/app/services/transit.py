"""Transit and rating workflow for assigned loads.

  start_transit   ASSIGNED → IN_TRANSIT  (load and vehicle together)
  mark_delivered  IN_TRANSIT → DELIVERED (vehicle freed, trip counted)
  rate_carrier    one 1–5 rating per delivered load, folded into the
                  carrier's running mean
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import (
    ConflictError,
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models.carrier import Carrier
from app.models.load import Load, LoadStatus
from app.models.rating import CarrierRating
from app.models.vehicle import Vehicle, VehicleStatus
from app.schemas.validators import validate_phone
from app.services.fleet import transition_vehicle
from app.services.unit_of_work import UnitOfWork, locked_one
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

ALREADY_RATED_MESSAGE = "This load has already been rated"


async def _load_for_carrier(db: AsyncSession, carrier_id: str, load_id: str) -> Load:
    load = await locked_one(db, select(Load).where(Load.id == load_id))
    if not load:
        raise ResourceNotFoundError("Load not found")
    if load.selected_carrier_id != carrier_id:
        raise PermissionDeniedError("You are not the assigned carrier for this load")
    return load


async def _assigned_vehicle(db: AsyncSession, load: Load) -> Vehicle:
    vehicle = await locked_one(db, select(Vehicle).where(Vehicle.id == load.assigned_vehicle_id))
    if not vehicle:
        raise ResourceNotFoundError("Assigned vehicle not found")
    return vehicle


def new_rating_mean(current: float, count: int, rating: int) -> float:
    """Fold one more rating into a running mean, rounded to 2 decimals."""
    return round((current * count + rating) / (count + 1), 2)


async def start_transit(
    db: AsyncSession,
    carrier_id: str,
    load_id: str,
    driver_name: str | None = None,
    driver_phone: str | None = None,
    now: datetime | None = None,
) -> Load:
    """Put an assigned load and its vehicle on the road."""
    now = now or utcnow()

    if driver_phone:
        try:
            driver_phone = validate_phone(driver_phone)
        except ValueError as exc:
            raise InvalidStateError(f"Driver phone: {exc}") from exc

    async with UnitOfWork(db, "start_transit"):
        load = await _load_for_carrier(db, carrier_id, load_id)
        if load.status != LoadStatus.ASSIGNED:
            raise InvalidStateError("Only assigned loads can start transit")
        if now < load.bidding_deadline:
            raise InvalidStateError("Transit cannot start before the bidding deadline")

        vehicle = await _assigned_vehicle(db, load)
        transition_vehicle(vehicle, VehicleStatus.IN_TRANSIT)
        load.advance_to(LoadStatus.IN_TRANSIT)
        if driver_name:
            load.driver_name = driver_name.strip()
        if driver_phone:
            load.driver_phone = driver_phone

    logger.info("Load %s in transit with vehicle %s", load.id, vehicle.id)
    return load


async def mark_delivered(db: AsyncSession, carrier_id: str, load_id: str) -> Load:
    """Close the trip: load delivered, vehicle free, carrier trip count +1."""
    async with UnitOfWork(db, "mark_delivered"):
        load = await _load_for_carrier(db, carrier_id, load_id)
        if load.status != LoadStatus.IN_TRANSIT:
            raise InvalidStateError("Only loads in transit can be marked delivered")

        vehicle = await _assigned_vehicle(db, load)
        carrier = await locked_one(db, select(Carrier).where(Carrier.id == carrier_id))

        transition_vehicle(vehicle, VehicleStatus.AVAILABLE)
        load.advance_to(LoadStatus.DELIVERED)
        carrier.total_trips += 1

    logger.info("Load %s delivered by carrier %s", load.id, carrier_id)
    return load


async def rate_carrier(
    db: AsyncSession,
    shipper_id: str,
    load_id: str,
    rating: int | None,
) -> dict:
    """Record the shipper's rating of the carrier that delivered a load.

    Returns:
        {"load_id", "carrier_id", "rating", "carrier_rating", "carrier_rating_count"}
    """
    if rating is None or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise InvalidStateError("Rating must be an integer between 1 and 5")

    async with UnitOfWork(db, "rate_carrier", conflict_message=ALREADY_RATED_MESSAGE) as uow:
        load = await locked_one(db, select(Load).where(Load.id == load_id))
        if not load:
            raise ResourceNotFoundError("Load not found")
        if load.shipper_id != shipper_id:
            raise PermissionDeniedError("You do not own this load")
        if load.status != LoadStatus.DELIVERED:
            raise InvalidStateError("Only delivered loads can be rated")

        existing = await db.execute(
            select(CarrierRating.id).where(CarrierRating.load_id == load_id)
        )
        if existing.first() is not None:
            raise ConflictError(ALREADY_RATED_MESSAGE)

        carrier = await locked_one(
            db, select(Carrier).where(Carrier.id == load.selected_carrier_id)
        )
        if not carrier:
            raise ResourceNotFoundError("Carrier not found")

        db.add(CarrierRating(
            load_id=load_id,
            shipper_id=shipper_id,
            carrier_id=carrier.id,
            rating=rating,
        ))
        carrier.rating = new_rating_mean(carrier.rating, carrier.rating_count, rating)
        carrier.rating_count += 1
        await uow.flush()

    logger.info("Carrier %s rated %d for load %s", carrier.id, rating, load_id)
    return {
        "load_id": load_id,
        "carrier_id": carrier.id,
        "rating": rating,
        "carrier_rating": carrier.rating,
        "carrier_rating_count": carrier.rating_count,
    }
