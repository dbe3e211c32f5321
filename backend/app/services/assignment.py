"""Assignment transaction: a shipper accepting one bid on a load.

Accepting a bid is the one place where five kinds of change must land
together or not at all:

  1. the winning bid → ACCEPTED
  2. every other PENDING bid on the load → REJECTED
  3. the load → ASSIGNED, with carrier and vehicle recorded
  4. the winning vehicle → BOOKED
  5. every vehicle of a rejected bid → AVAILABLE

All rows are re-read with ``SELECT … FOR UPDATE`` inside the unit of
work.  The load's version counter makes the slower of two racing
accepts fail at flush time; that failure is reported as InvalidStateError.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.middleware.exceptions import (
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models.bid import Bid, BidStatus
from app.models.carrier import Carrier
from app.models.load import Load, LoadStatus
from app.models.vehicle import Vehicle, VehicleStatus
from app.services.fleet import release_vehicle, transition_vehicle
from app.services.unit_of_work import UnitOfWork, locked_all, locked_one
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

ALREADY_ASSIGNED_MESSAGE = "Load is already assigned"


def _check_acceptance_window(load: Load, now: datetime) -> None:
    if now < load.bidding_deadline:
        raise InvalidStateError("Bids can only be accepted after the bidding deadline")
    if now >= load.pickup_date:
        raise InvalidStateError("Pickup date has passed; bids can no longer be accepted")


def _check_bid_and_load(bid: Bid | None, load: Load | None, shipper_id: str) -> None:
    if not bid:
        raise ResourceNotFoundError("Bid not found")
    if bid.status != BidStatus.PENDING:
        raise InvalidStateError("Only pending bids can be accepted")
    if not load:
        raise ResourceNotFoundError("Load not found")
    if load.shipper_id != shipper_id:
        raise PermissionDeniedError("You do not own this load")
    if load.status != LoadStatus.CREATED:
        raise InvalidStateError(ALREADY_ASSIGNED_MESSAGE)


async def accept_bid(
    db: AsyncSession,
    shipper_id: str,
    bid_id: str,
    now: datetime | None = None,
) -> dict:
    """Accept ``bid_id`` and resolve every competing bid on its load.

    Returns:
        {
            "load_id", "bid_id", "selected_carrier_id", "assigned_vehicle_id",
            "rejected_bid_ids": [...], "released_vehicle_ids": [...],
        }
    """
    now = now or utcnow()

    # ── Fast checks on the current view ──────────────────────
    bid = await db.get(Bid, bid_id)
    load = await db.get(Load, bid.load_id) if bid else None
    _check_bid_and_load(bid, load, shipper_id)
    _check_acceptance_window(load, now)

    async with UnitOfWork(db, "accept_bid", stale_message=ALREADY_ASSIGNED_MESSAGE) as uow:
        # ── Re-read everything under row locks ───────────────
        load = await locked_one(db, select(Load).where(Load.id == bid.load_id))
        bid = await locked_one(db, select(Bid).where(Bid.id == bid_id))
        _check_bid_and_load(bid, load, shipper_id)

        pending = await locked_all(
            db,
            select(Bid)
            .where(Bid.load_id == load.id, Bid.status == BidStatus.PENDING)
            .order_by(Bid.id),
        )
        losers = [other for other in pending if other.id != bid.id]

        vehicle_ids = [bid.vehicle_id] + [other.vehicle_id for other in losers]
        vehicles = {
            vehicle.id: vehicle
            for vehicle in await locked_all(
                db,
                select(Vehicle).where(Vehicle.id.in_(vehicle_ids)).order_by(Vehicle.id),
            )
        }

        winner_vehicle = vehicles.get(bid.vehicle_id)
        if winner_vehicle is None:
            raise ResourceNotFoundError("Vehicle not found")

        # ── Apply ────────────────────────────────────────────
        bid.status = BidStatus.ACCEPTED
        for other in losers:
            other.status = BidStatus.REJECTED

        load.selected_carrier_id = bid.carrier_id
        load.assigned_vehicle_id = bid.vehicle_id
        load.advance_to(LoadStatus.ASSIGNED)

        transition_vehicle(winner_vehicle, VehicleStatus.BOOKED)

        released = []
        for other in losers:
            vehicle = vehicles.get(other.vehicle_id)
            if vehicle is None or vehicle.status != VehicleStatus.BIDDED:
                logger.warning(
                    "Vehicle %s of rejected bid %s was not BIDDED; left unchanged",
                    other.vehicle_id, other.id,
                )
                continue
            release_vehicle(vehicle)
            released.append(vehicle.id)

        await uow.flush()

    logger.info(
        "Bid %s accepted on load %s; %d competing bids rejected",
        bid.id, load.id, len(losers),
    )
    return {
        "load_id": load.id,
        "bid_id": bid.id,
        "selected_carrier_id": bid.carrier_id,
        "assigned_vehicle_id": bid.vehicle_id,
        "rejected_bid_ids": [other.id for other in losers],
        "released_vehicle_ids": released,
    }


# ── Shipper bid views ───────────────────────────────────────

async def list_bids_for_load(db: AsyncSession, shipper_id: str, load_id: str) -> list[Bid]:
    """Pending bids on an open load, cheapest first, best-rated carrier on ties."""
    load = await db.get(Load, load_id)
    if not load:
        raise ResourceNotFoundError("Load not found")
    if load.shipper_id != shipper_id:
        raise PermissionDeniedError("You do not own this load")
    if load.status != LoadStatus.CREATED:
        raise InvalidStateError("Bids are no longer visible after assignment")

    result = await db.execute(
        select(Bid)
        .join(Carrier, Carrier.id == Bid.carrier_id)
        .options(joinedload(Bid.carrier), joinedload(Bid.vehicle))
        .where(Bid.load_id == load_id, Bid.status == BidStatus.PENDING)
        .order_by(Bid.bid_amount.asc(), Carrier.rating.desc())
    )
    return list(result.scalars().unique().all())


async def get_shipper_bid_detail(
    db: AsyncSession,
    shipper_id: str,
    bid_id: str,
    now: datetime | None = None,
) -> Bid:
    """A pending bid on one of the shipper's open, not yet expired loads."""
    now = now or utcnow()
    result = await db.execute(
        select(Bid)
        .join(Load, Load.id == Bid.load_id)
        .options(
            joinedload(Bid.load),
            joinedload(Bid.carrier),
            joinedload(Bid.vehicle),
        )
        .where(
            Bid.id == bid_id,
            Bid.status == BidStatus.PENDING,
            Load.shipper_id == shipper_id,
            Load.status == LoadStatus.CREATED,
            Load.pickup_date > now,
        )
    )
    bid = result.scalars().unique().one_or_none()
    if not bid:
        raise ResourceNotFoundError("Bid not found")
    return bid
