"""Load intake and the shipper's views of their loads."""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.config import settings
from app.middleware.exceptions import PermissionDeniedError, ResourceNotFoundError
from app.models.bid import Bid, BidStatus
from app.models.load import Load, LoadStatus
from app.models.rating import CarrierRating
from app.models.values import Capacity
from app.models.vehicle import VehicleType
from app.schemas.load import LoadCreate
from app.schemas.validators import (
    ErrorCollector,
    clean_location,
    is_positive,
    validate_load_dates,
    validate_location,
)
from app.services.unit_of_work import UnitOfWork
from app.utils.clock import to_naive_utc

logger = logging.getLogger(__name__)


def _clean_vehicle_types(raw: list[str], errors: ErrorCollector) -> list[VehicleType]:
    """Upper-case, de-duplicate (keeping order) and check against VehicleType."""
    cleaned: list[VehicleType] = []
    for value in raw or []:
        name = str(value).strip().upper()
        try:
            vehicle_type = VehicleType(name)
        except ValueError:
            errors.add(f"Invalid vehicle type '{value}'")
            continue
        if vehicle_type not in cleaned:
            cleaned.append(vehicle_type)

    if not raw:
        errors.add("At least one vehicle type is required")
    return cleaned


def _requirement_for(
    types: list[VehicleType],
    weight_in_tons: float,
    volume_in_litres: float,
    errors: ErrorCollector,
) -> Capacity | None:
    if not types:
        return None

    if VehicleType.TANKER in types:
        if len(types) > 1:
            errors.add("TANKER cannot be combined with other vehicle types")
            return None
        if not is_positive(volume_in_litres):
            errors.add("TANKER loads must specify volume in litres greater than 0")
            return None
        return Capacity.litres(volume_in_litres)

    if not is_positive(weight_in_tons):
        errors.add("Weight in tons must be greater than 0")
        return None
    lcv_max = settings.lcv_max_capacity_tons
    if VehicleType.LCV in types and weight_in_tons > lcv_max:
        errors.add(f"LCV loads cannot exceed {lcv_max:g} tons")
        return None
    return Capacity.tons(weight_in_tons)


async def create_load(
    db: AsyncSession,
    shipper_id: str,
    body: LoadCreate,
    now: datetime | None = None,
) -> Load:
    """Validate a new load (all field problems reported together) and post it."""
    errors = ErrorCollector()

    material = (body.material or "").strip()
    if not material:
        errors.add("Material is required")

    types = _clean_vehicle_types(body.required_vehicle_types, errors)
    requirement = _requirement_for(types, body.weight_in_tons, body.volume_in_litres, errors)

    if not is_positive(body.budget_price):
        errors.add("Budget price must be greater than 0")

    pickup_errors = validate_location(body.pickup_location, "Pickup location")
    delivery_errors = validate_location(body.delivery_location, "Delivery location")
    for message in pickup_errors + delivery_errors:
        errors.add(message)

    pickup = delivery = None
    if not pickup_errors and not delivery_errors:
        pickup = clean_location(body.pickup_location)
        delivery = clean_location(body.delivery_location)
        if pickup.street.lower() == delivery.street.lower() and pickup.pincode == delivery.pincode:
            errors.add("Pickup and delivery locations cannot be the same")

    dates = {
        "Bidding deadline": body.bidding_deadline,
        "Pickup date": body.pickup_date,
        "Expected delivery date": body.expected_delivery_date,
    }
    missing = [label for label, value in dates.items() if value is None]
    for label in missing:
        errors.add(f"{label} is required")
    if not missing:
        for message in validate_load_dates(
            body.bidding_deadline, body.pickup_date, body.expected_delivery_date, now
        ):
            errors.add(message)

    errors.raise_if_any()

    async with UnitOfWork(db, "create_load") as uow:
        load = Load(
            shipper_id=shipper_id,
            pickup_location=pickup,
            delivery_location=delivery,
            material=material,
            description=(body.description or "").strip() or None,
            requirement=requirement,
            required_vehicle_types=[t.value for t in types],
            budget_price=float(body.budget_price),
            bidding_deadline=to_naive_utc(body.bidding_deadline),
            pickup_date=to_naive_utc(body.pickup_date),
            expected_delivery_date=to_naive_utc(body.expected_delivery_date),
            status=LoadStatus.CREATED,
        )
        db.add(load)
        await uow.flush()

    logger.info("Load %s posted by shipper %s", load.id, shipper_id)
    return load


async def list_shipper_loads(
    db: AsyncSession,
    shipper_id: str,
    status: LoadStatus | None = None,
) -> list[dict]:
    """The shipper's loads, newest first.

    Returns:
        [{"load": Load, "bid_count": int, "is_rated": bool}, ...]
        ``bid_count`` counts pending bids and is 0 once the load leaves CREATED.
    """
    stmt = (
        select(Load)
        .options(joinedload(Load.selected_carrier), joinedload(Load.assigned_vehicle))
        .where(Load.shipper_id == shipper_id)
    )
    if status is not None:
        stmt = stmt.where(Load.status == status)
    loads = list((await db.execute(stmt.order_by(Load.created_at.desc()))).scalars().unique().all())
    if not loads:
        return []

    load_ids = [load.id for load in loads]
    count_rows = await db.execute(
        select(Bid.load_id, func.count(Bid.id))
        .where(Bid.load_id.in_(load_ids), Bid.status == BidStatus.PENDING)
        .group_by(Bid.load_id)
    )
    bid_counts = {load_id: count for load_id, count in count_rows.all()}

    rated_rows = await db.execute(
        select(CarrierRating.load_id).where(CarrierRating.load_id.in_(load_ids))
    )
    rated = {row[0] for row in rated_rows.all()}

    return [
        {
            "load": load,
            "bid_count": bid_counts.get(load.id, 0) if load.status == LoadStatus.CREATED else 0,
            "is_rated": load.id in rated,
        }
        for load in loads
    ]


async def get_shipper_load_detail(db: AsyncSession, shipper_id: str, load_id: str) -> Load:
    """An assigned or in-transit load with its carrier and vehicle loaded."""
    result = await db.execute(
        select(Load)
        .options(joinedload(Load.selected_carrier), joinedload(Load.assigned_vehicle))
        .where(Load.id == load_id)
    )
    load = result.scalars().unique().one_or_none()
    if not load:
        raise ResourceNotFoundError("Load not found")
    if load.shipper_id != shipper_id:
        raise PermissionDeniedError("You do not own this load")
    if load.status not in (LoadStatus.ASSIGNED, LoadStatus.IN_TRANSIT):
        raise ResourceNotFoundError("Load not found")
    return load
