"""Vehicle lifecycle and fleet management for carriers.

Handles:
  - Registering vehicles (all field problems reported together)
  - Editing vehicles, with physical fields locked while a load depends on them
  - The vehicle status machine (``transition_vehicle``)
  - Removal: hard delete for a vehicle with no history, RETIRED otherwise

``carrier.fleet_size`` moves in the same transaction as the vehicle row.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.middleware.exceptions import (
    ConflictError,
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models.bid import Bid
from app.models.carrier import Carrier
from app.models.load import Load
from app.models.values import Capacity, CapacityUnit
from app.models.vehicle import (
    ACTIVE_VEHICLE_STATUSES,
    Vehicle,
    VehicleStatus,
    VehicleType,
)
from app.schemas.validators import (
    ErrorCollector,
    is_positive,
    normalize_vehicle_number,
    validate_manufacturing_year,
)
from app.schemas.vehicle import VehicleCreate, VehicleUpdate
from app.services.unit_of_work import UnitOfWork, locked_one
from app.utils.locks import get_vehicle_locks

logger = logging.getLogger(__name__)

DUPLICATE_NUMBER_MESSAGE = "A vehicle with this number is already registered"


# ── Status machine ──────────────────────────────────────────

VEHICLE_TRANSITIONS: dict[VehicleStatus, frozenset[VehicleStatus]] = {
    VehicleStatus.AVAILABLE: frozenset({VehicleStatus.BIDDED, VehicleStatus.MAINTENANCE}),
    VehicleStatus.MAINTENANCE: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.BIDDED: frozenset({VehicleStatus.BOOKED}),
    VehicleStatus.BOOKED: frozenset({VehicleStatus.IN_TRANSIT}),
    VehicleStatus.IN_TRANSIT: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.RETIRED: frozenset(),
}

# Statuses a carrier may set by hand; the rest follow bids and loads
MANUAL_VEHICLE_STATUSES = frozenset({VehicleStatus.AVAILABLE, VehicleStatus.MAINTENANCE})


def transition_vehicle(vehicle: Vehicle, target: VehicleStatus) -> None:
    """Apply one edge of the vehicle status machine."""
    if target not in VEHICLE_TRANSITIONS[vehicle.status]:
        raise InvalidStateError(
            f"Vehicle cannot move from {vehicle.status.value} to {target.value}"
        )
    vehicle.status = target


def release_vehicle(vehicle: Vehicle) -> None:
    """BIDDED → AVAILABLE, used only when a competing bid wins the load."""
    if vehicle.status != VehicleStatus.BIDDED:
        raise InvalidStateError(
            f"Vehicle cannot be released from {vehicle.status.value}"
        )
    vehicle.status = VehicleStatus.AVAILABLE


# ── Field rules ─────────────────────────────────────────────

@dataclass
class VehicleFields:
    vehicle_type: VehicleType
    vehicle_number: str
    capacity: Capacity
    length_ft: float
    width_ft: float
    height_ft: float
    manufacturing_year: int


def validate_vehicle_fields(
    vehicle_type: VehicleType | None,
    vehicle_number: str | None,
    capacity_tons: float,
    capacity_litres: float,
    length_ft: float,
    width_ft: float,
    height_ft: float,
    manufacturing_year,
    today: datetime | None = None,
) -> VehicleFields:
    """Check a complete set of vehicle fields and return them cleaned.

    Raises:
        InvalidStateError listing every problem found
    """
    errors = ErrorCollector()

    if vehicle_type is None:
        errors.add("Vehicle type is required")
    number = errors.check(normalize_vehicle_number, vehicle_number)
    year = errors.check(validate_manufacturing_year, manufacturing_year, today)

    capacity = None
    lcv_max = settings.lcv_max_capacity_tons

    if vehicle_type == VehicleType.TANKER:
        if not is_positive(capacity_litres):
            errors.add("TANKER vehicles must have capacity in litres greater than 0")
        else:
            capacity = Capacity.litres(capacity_litres)
        # Tankers are described by volume only
        length_ft = width_ft = height_ft = 0.0

    elif vehicle_type is not None:
        if not is_positive(capacity_tons):
            errors.add(f"{vehicle_type.value} vehicles must have capacity in tons greater than 0")
        elif vehicle_type == VehicleType.LCV and capacity_tons > lcv_max:
            errors.add(f"LCV capacity cannot exceed {lcv_max:g} tons")
        elif vehicle_type != VehicleType.LCV and capacity_tons <= lcv_max:
            errors.add(
                f"{vehicle_type.value} capacity must be greater than {lcv_max:g} tons; "
                f"register smaller vehicles as LCV"
            )
        else:
            capacity = Capacity.tons(capacity_tons)

        if vehicle_type == VehicleType.TRAILER_FLATBED:
            height_ft = 0.0
            required_dims = (("Length", length_ft), ("Width", width_ft))
        else:
            required_dims = (("Length", length_ft), ("Width", width_ft), ("Height", height_ft))
        for label, value in required_dims:
            if not is_positive(value):
                errors.add(f"{label} must be greater than 0")

    errors.raise_if_any()
    return VehicleFields(
        vehicle_type=vehicle_type,
        vehicle_number=number,
        capacity=capacity,
        length_ft=float(length_ft or 0),
        width_ft=float(width_ft or 0),
        height_ft=float(height_ft or 0),
        manufacturing_year=year,
    )


async def _number_taken(db: AsyncSession, number: str, exclude_id: str | None = None) -> bool:
    stmt = select(Vehicle.id).where(Vehicle.vehicle_number == number)
    if exclude_id:
        stmt = stmt.where(Vehicle.id != exclude_id)
    return (await db.execute(stmt.limit(1))).first() is not None


def _apply_fields(vehicle: Vehicle, fields: VehicleFields) -> None:
    vehicle.vehicle_type = fields.vehicle_type
    vehicle.vehicle_number = fields.vehicle_number
    vehicle.capacity = fields.capacity
    vehicle.length_ft = fields.length_ft
    vehicle.width_ft = fields.width_ft
    vehicle.height_ft = fields.height_ft
    vehicle.manufacturing_year = fields.manufacturing_year


# ── Queries ─────────────────────────────────────────────────

async def get_vehicle(db: AsyncSession, carrier_id: str, vehicle_id: str) -> Vehicle:
    """Return a vehicle owned by ``carrier_id``."""
    vehicle = await db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise ResourceNotFoundError("Vehicle not found")
    if vehicle.carrier_id != carrier_id:
        raise PermissionDeniedError("You do not own this vehicle")
    return vehicle


async def _get_owned_for_update(db: AsyncSession, carrier_id: str, vehicle_id: str) -> Vehicle:
    vehicle = await locked_one(db, select(Vehicle).where(Vehicle.id == vehicle_id))
    if not vehicle:
        raise ResourceNotFoundError("Vehicle not found")
    if vehicle.carrier_id != carrier_id:
        raise PermissionDeniedError("You do not own this vehicle")
    return vehicle


async def list_vehicles(
    db: AsyncSession,
    carrier_id: str,
    status: VehicleStatus | None = None,
    include_retired: bool = False,
) -> list[Vehicle]:
    stmt = select(Vehicle).where(Vehicle.carrier_id == carrier_id)
    if status is not None:
        stmt = stmt.where(Vehicle.status == status)
    elif not include_retired:
        stmt = stmt.where(Vehicle.status != VehicleStatus.RETIRED)
    result = await db.execute(stmt.order_by(Vehicle.created_at.desc()))
    return list(result.scalars().all())


# ── Commands ────────────────────────────────────────────────

async def add_vehicle(
    db: AsyncSession,
    carrier_id: str,
    body: VehicleCreate,
    today: datetime | None = None,
) -> Vehicle:
    """Register a vehicle and grow the carrier's fleet by one."""
    fields = validate_vehicle_fields(
        body.vehicle_type,
        body.vehicle_number,
        body.capacity_tons,
        body.capacity_litres,
        body.length_ft,
        body.width_ft,
        body.height_ft,
        body.manufacturing_year,
        today,
    )

    if await _number_taken(db, fields.vehicle_number):
        raise ConflictError(DUPLICATE_NUMBER_MESSAGE)

    async with UnitOfWork(db, "add_vehicle", conflict_message=DUPLICATE_NUMBER_MESSAGE) as uow:
        carrier = await locked_one(db, select(Carrier).where(Carrier.id == carrier_id))
        if not carrier:
            raise ResourceNotFoundError("Carrier not found")

        vehicle = Vehicle(carrier_id=carrier_id, status=VehicleStatus.AVAILABLE)
        _apply_fields(vehicle, fields)
        db.add(vehicle)
        carrier.fleet_size += 1
        await uow.flush()

    logger.info("Vehicle %s registered for carrier %s", vehicle.vehicle_number, carrier_id)
    return vehicle


async def update_vehicle(
    db: AsyncSession,
    carrier_id: str,
    vehicle_id: str,
    body: VehicleUpdate,
    today: datetime | None = None,
) -> Vehicle:
    """Edit a vehicle's registration, type, capacity, dimensions or year.

    The merged record must satisfy the same rules as a new vehicle.
    """
    vehicle = await get_vehicle(db, carrier_id, vehicle_id)
    if vehicle.status == VehicleStatus.RETIRED:
        raise InvalidStateError("Retired vehicles cannot be edited")

    updates = body.model_dump(exclude_unset=True)

    lock_info = await get_vehicle_locks(db, vehicle)
    if lock_info.is_locked:
        conflict = lock_info.check_update(set(updates.keys()))
        if conflict:
            blocked = [
                lock_info.locked_fields[name].reason
                for name in sorted(updates) if name in lock_info.locked_fields
            ]
            raise InvalidStateError(f"{conflict.reason}. {conflict.unlock_hint}", errors=blocked)

    current = vehicle.capacity
    tons = current.value if current.unit == CapacityUnit.TONS else 0.0
    litres = current.value if current.unit == CapacityUnit.LITRES else 0.0

    fields = validate_vehicle_fields(
        updates.get("vehicle_type") or vehicle.vehicle_type,
        updates.get("vehicle_number") or vehicle.vehicle_number,
        updates.get("capacity_tons", tons),
        updates.get("capacity_litres", litres),
        updates.get("length_ft", vehicle.length_ft),
        updates.get("width_ft", vehicle.width_ft),
        updates.get("height_ft", vehicle.height_ft),
        updates.get("manufacturing_year", vehicle.manufacturing_year),
        today,
    )

    if fields.vehicle_number != vehicle.vehicle_number and await _number_taken(
        db, fields.vehicle_number, exclude_id=vehicle.id
    ):
        raise ConflictError(DUPLICATE_NUMBER_MESSAGE)

    async with UnitOfWork(db, "update_vehicle", conflict_message=DUPLICATE_NUMBER_MESSAGE) as uow:
        _apply_fields(vehicle, fields)
        await uow.flush()

    return vehicle


async def update_vehicle_status(
    db: AsyncSession,
    carrier_id: str,
    vehicle_id: str,
    target: VehicleStatus,
) -> Vehicle:
    """Toggle a vehicle between AVAILABLE and MAINTENANCE.

    BIDDED, BOOKED and IN_TRANSIT are driven by bidding, acceptance and
    transit only, so a vehicle committed to a load cannot be freed here.
    """
    if target == VehicleStatus.RETIRED:
        raise InvalidStateError("Vehicles are retired by removing them from the fleet")
    if target not in MANUAL_VEHICLE_STATUSES:
        raise InvalidStateError(f"Vehicle status cannot be set to {target.value} directly")

    async with UnitOfWork(db, "update_vehicle_status"):
        vehicle = await _get_owned_for_update(db, carrier_id, vehicle_id)
        if vehicle.status not in MANUAL_VEHICLE_STATUSES:
            raise InvalidStateError(
                f"Vehicle is {vehicle.status.value} and its status is managed by its load"
            )
        transition_vehicle(vehicle, target)

    return vehicle


async def mark_maintenance(db: AsyncSession, carrier_id: str, vehicle_id: str) -> Vehicle:
    return await update_vehicle_status(db, carrier_id, vehicle_id, VehicleStatus.MAINTENANCE)


async def remove_vehicle(db: AsyncSession, carrier_id: str, vehicle_id: str) -> str:
    """Delete or retire a vehicle and shrink the fleet by one.

    Returns:
        "deleted" when the row was removed, "retired" when it was kept
        as RETIRED because bids or loads reference it.
    """
    async with UnitOfWork(db, "remove_vehicle"):
        vehicle = await _get_owned_for_update(db, carrier_id, vehicle_id)

        if vehicle.status in ACTIVE_VEHICLE_STATUSES:
            raise InvalidStateError(
                f"Vehicle is {vehicle.status.value} and cannot be removed"
            )
        if vehicle.status == VehicleStatus.RETIRED:
            raise InvalidStateError("Vehicle is already retired")

        history = await db.execute(
            select(
                or_(
                    exists().where(Bid.vehicle_id == vehicle.id),
                    exists().where(Load.assigned_vehicle_id == vehicle.id),
                )
            )
        )
        has_history = bool(history.scalar())

        carrier = await locked_one(db, select(Carrier).where(Carrier.id == carrier_id))
        carrier.fleet_size = max(carrier.fleet_size - 1, 0)

        if not has_history and vehicle.status == VehicleStatus.AVAILABLE:
            await db.delete(vehicle)
            outcome = "deleted"
        else:
            vehicle.status = VehicleStatus.RETIRED
            outcome = "retired"

    logger.info("Vehicle %s %s by carrier %s", vehicle_id, outcome, carrier_id)
    return outcome
