"""Field locking: prevent edits to vehicle fields a live load depends on.

Each check function returns a LockInfo describing which fields are locked
and why, without raising exceptions.  The caller (fleet service) decides
whether to block the request based on which fields are being updated.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.bid import Bid, BidStatus
from app.models.load import Load, LoadStatus
from app.models.vehicle import Vehicle, VehicleStatus


# ── Data structures ────────────────────────────────────────────


@dataclass
class FieldLock:
    """A single locked field with reason and unlock instructions."""
    field: str
    reason: str
    blocker_type: str   # "bid", "load"
    blocker_ref: str    # id of the bid or load holding the vehicle
    unlock_hint: str    # "Wait for the shipper to decide on the bid."


@dataclass
class LockInfo:
    """Lock state for an entity.  Empty locked_fields means nothing locked."""
    locked_fields: dict[str, FieldLock] = field(default_factory=dict)

    @property
    def is_locked(self) -> bool:
        return len(self.locked_fields) > 0

    def check_update(self, updating_fields: set[str]) -> FieldLock | None:
        """Return the first FieldLock that conflicts, or None."""
        for f in sorted(updating_fields):
            if f in self.locked_fields:
                return self.locked_fields[f]
        return None


def _add_locks(
    info: LockInfo,
    field_names: list[str],
    reason: str,
    blocker_type: str,
    blocker_ref: str,
    unlock_hint: str,
) -> None:
    for name in field_names:
        info.locked_fields[name] = FieldLock(
            field=name,
            reason=f"Cannot edit {name}: {reason}",
            blocker_type=blocker_type,
            blocker_ref=blocker_ref,
            unlock_hint=unlock_hint,
        )


# ── Vehicle locks (downstream: pending bid or assigned load) ───


VEHICLE_PHYSICAL_FIELDS = [
    "vehicle_number", "vehicle_type",
    "capacity_tons", "capacity_litres",
    "length_ft", "width_ft", "height_ft",
    "manufacturing_year",
]


async def get_vehicle_locks(db: AsyncSession, vehicle: Vehicle) -> LockInfo:
    """Check if a vehicle is committed to a bid or an assigned load."""
    info = LockInfo()

    if vehicle.status == VehicleStatus.BIDDED:
        bid_result = await db.execute(
            select(Bid.id).where(
                Bid.vehicle_id == vehicle.id,
                Bid.status == BidStatus.PENDING,
            ).limit(1)
        )
        bid_ref = bid_result.scalar() or "unknown"
        _add_locks(
            info,
            VEHICLE_PHYSICAL_FIELDS,
            reason=f"vehicle is offered in pending bid {bid_ref}",
            blocker_type="bid",
            blocker_ref=bid_ref,
            unlock_hint="Wait for the shipper to decide on the bid.",
        )
        return info

    if vehicle.status in (VehicleStatus.BOOKED, VehicleStatus.IN_TRANSIT):
        load_result = await db.execute(
            select(Load.id).where(
                Load.assigned_vehicle_id == vehicle.id,
                Load.status.in_([LoadStatus.ASSIGNED, LoadStatus.IN_TRANSIT]),
            ).limit(1)
        )
        load_ref = load_result.scalar() or "unknown"
        _add_locks(
            info,
            VEHICLE_PHYSICAL_FIELDS,
            reason=f"vehicle is {vehicle.status.value.lower()} for load {load_ref}",
            blocker_type="load",
            blocker_ref=load_ref,
            unlock_hint="Edit the vehicle after the load is delivered.",
        )
    return info
