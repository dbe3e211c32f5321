"""Bid engine: carriers bidding on, or declining, open loads.

A carrier gets exactly one decision per load.  ``place_bid`` writes the
bid, flips the offered vehicle to BIDDED and records a BIDDED interaction
in one transaction; ``mark_not_interested`` records a NOT_INTERESTED
interaction only.  The unique (carrier, load) interaction row turns a
lost race into a ConflictError.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.middleware.exceptions import (
    ConflictError,
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models.bid import Bid, BidStatus
from app.models.interaction import CarrierLoadInteraction, InteractionStatus
from app.models.load import Load, LoadStatus
from app.models.vehicle import Vehicle, VehicleStatus
from app.schemas.validators import is_positive
from app.services.eligibility import (
    check_vehicle_fits_load,
    ensure_open_for_bidding,
    get_load,
    has_interaction,
)
from app.services.fleet import transition_vehicle
from app.services.unit_of_work import UnitOfWork, locked_one
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

ALREADY_DECIDED_MESSAGE = "You have already responded to this load"


async def _ensure_no_interaction(db: AsyncSession, carrier_id: str, load_id: str) -> None:
    if await has_interaction(db, carrier_id, load_id):
        raise ConflictError(ALREADY_DECIDED_MESSAGE)


def _check_vehicle_can_bid(vehicle: Vehicle | None, carrier_id: str) -> Vehicle:
    if not vehicle:
        raise ResourceNotFoundError("Vehicle not found")
    if vehicle.carrier_id != carrier_id:
        raise PermissionDeniedError("You do not own this vehicle")
    if vehicle.status == VehicleStatus.RETIRED:
        raise InvalidStateError("Retired vehicles cannot be used for bidding")
    if vehicle.status != VehicleStatus.AVAILABLE:
        raise InvalidStateError("Vehicle is not available for bidding")
    return vehicle


async def place_bid(
    db: AsyncSession,
    carrier_id: str,
    load_id: str,
    vehicle_id: str,
    bid_amount: float | None,
    estimated_transit_time_hours: float | None,
    now: datetime | None = None,
) -> Bid:
    """Offer a vehicle for a load at a price.

    Preconditions are checked in a fixed order and the first failure is
    raised: load state, deadline, prior decision, vehicle ownership and
    status, vehicle fit, then the amount and transit time.
    """
    now = now or utcnow()

    load = await get_load(db, load_id)
    ensure_open_for_bidding(load, now)
    await _ensure_no_interaction(db, carrier_id, load_id)

    vehicle = _check_vehicle_can_bid(await db.get(Vehicle, vehicle_id), carrier_id)
    check_vehicle_fits_load(vehicle, load)

    if not is_positive(bid_amount):
        raise InvalidStateError("Bid amount must be greater than 0")
    if not is_positive(estimated_transit_time_hours):
        raise InvalidStateError("Estimated transit time must be greater than 0")

    async with UnitOfWork(db, "place_bid", conflict_message=ALREADY_DECIDED_MESSAGE) as uow:
        # Re-read the contended rows; another request may have used the
        # vehicle or closed the load since the checks above.
        load = await locked_one(db, select(Load).where(Load.id == load_id))
        ensure_open_for_bidding(load, now)
        vehicle = _check_vehicle_can_bid(
            await locked_one(db, select(Vehicle).where(Vehicle.id == vehicle_id)),
            carrier_id,
        )

        db.add(CarrierLoadInteraction(
            carrier_id=carrier_id,
            load_id=load_id,
            status=InteractionStatus.BIDDED,
        ))
        bid = Bid(
            load_id=load_id,
            carrier_id=carrier_id,
            vehicle_id=vehicle_id,
            bid_amount=float(bid_amount),
            estimated_transit_time_hours=float(estimated_transit_time_hours),
            status=BidStatus.PENDING,
        )
        db.add(bid)
        transition_vehicle(vehicle, VehicleStatus.BIDDED)
        await uow.flush()

    logger.info(
        "Bid %s placed by carrier %s on load %s (amount=%.2f)",
        bid.id, carrier_id, load_id, bid.bid_amount,
    )
    return bid


async def mark_not_interested(
    db: AsyncSession,
    carrier_id: str,
    load_id: str,
    now: datetime | None = None,
) -> CarrierLoadInteraction:
    """Record that the carrier declines the load; it leaves their feed."""
    now = now or utcnow()

    load = await get_load(db, load_id)
    ensure_open_for_bidding(load, now, "This load is no longer open")
    await _ensure_no_interaction(db, carrier_id, load_id)

    async with UnitOfWork(db, "mark_not_interested", conflict_message=ALREADY_DECIDED_MESSAGE) as uow:
        interaction = CarrierLoadInteraction(
            carrier_id=carrier_id,
            load_id=load_id,
            status=InteractionStatus.NOT_INTERESTED,
        )
        db.add(interaction)
        await uow.flush()

    return interaction


# ── Carrier bid views ───────────────────────────────────────

async def list_carrier_bids(
    db: AsyncSession,
    carrier_id: str,
    status: BidStatus | None = None,
) -> list[Bid]:
    """The carrier's bids, newest first, with load, shipper and vehicle loaded."""
    stmt = (
        select(Bid)
        .options(
            joinedload(Bid.load).joinedload(Load.shipper),
            joinedload(Bid.vehicle),
        )
        .where(Bid.carrier_id == carrier_id)
    )
    if status is not None:
        stmt = stmt.where(Bid.status == status)
    result = await db.execute(stmt.order_by(Bid.created_at.desc()))
    return list(result.scalars().unique().all())


async def get_carrier_bid_detail(
    db: AsyncSession,
    carrier_id: str,
    bid_id: str,
    now: datetime | None = None,
) -> Bid:
    """A live bid of this carrier.

    Rejected bids, bids on delivered loads and bids on loads whose pickup
    passed without an assignment are reported as not found.
    """
    now = now or utcnow()
    result = await db.execute(
        select(Bid)
        .options(
            joinedload(Bid.load).joinedload(Load.shipper),
            joinedload(Bid.vehicle),
        )
        .where(
            Bid.id == bid_id,
            Bid.carrier_id == carrier_id,
            Bid.status.in_([BidStatus.PENDING, BidStatus.ACCEPTED]),
        )
    )
    bid = result.scalars().unique().one_or_none()
    if not bid:
        raise ResourceNotFoundError("Bid not found")

    load = bid.load
    if load.status == LoadStatus.DELIVERED:
        raise ResourceNotFoundError("Bid not found")
    if load.status == LoadStatus.CREATED and now >= load.pickup_date:
        raise ResourceNotFoundError("Bid not found")
    return bid
