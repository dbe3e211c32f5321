"""Vehicle: a truck registered to exactly one carrier.

Capacity is a ``Capacity`` composite: TANKER vehicles carry litres, every
other type carries tons.  Flatbed trailers have no height.

Lifecycle (caller-requested edges):
    AVAILABLE → BIDDED | MAINTENANCE
    MAINTENANCE → AVAILABLE
    BIDDED → BOOKED → IN_TRANSIT → AVAILABLE

BIDDED → AVAILABLE only happens when a competing bid is accepted, and
RETIRED is reached only through removal of a vehicle with history.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint, DateTime, Enum as SAEnum, Float,
    ForeignKey, Integer, String,
)
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from app.database import Base
from app.models.values import Capacity, CapacityUnit
from app.utils.clock import utcnow


class VehicleType(str, enum.Enum):
    TRAILER_FLATBED = "TRAILER_FLATBED"
    OPEN_BODY = "OPEN_BODY"
    CLOSED_CONTAINER = "CLOSED_CONTAINER"
    TANKER = "TANKER"
    REFRIGERATED = "REFRIGERATED"
    LCV = "LCV"


class VehicleStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    BIDDED = "BIDDED"
    BOOKED = "BOOKED"
    IN_TRANSIT = "IN_TRANSIT"
    MAINTENANCE = "MAINTENANCE"
    RETIRED = "RETIRED"


ACTIVE_VEHICLE_STATUSES = frozenset({
    VehicleStatus.BIDDED, VehicleStatus.BOOKED, VehicleStatus.IN_TRANSIT,
})


class Vehicle(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        CheckConstraint("capacity_value > 0", name="ck_vehicles_capacity_positive"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    carrier_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("carriers.id"), nullable=False, index=True
    )
    # Normalised national registration, e.g. MH12AB1234
    vehicle_number: Mapped[str] = mapped_column(
        String(15), unique=True, nullable=False, index=True
    )
    vehicle_type: Mapped[VehicleType] = mapped_column(
        SAEnum(VehicleType, native_enum=False, length=30), nullable=False
    )

    # ── Capacity (tons XOR litres) ───────────────────────────
    capacity_unit: Mapped[CapacityUnit] = mapped_column(
        SAEnum(CapacityUnit, native_enum=False, length=10), nullable=False
    )
    capacity_value: Mapped[float] = mapped_column(Float, nullable=False)
    capacity: Mapped[Capacity] = composite("capacity_unit", "capacity_value")

    # ── Dimensions (feet) ────────────────────────────────────
    length_ft: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    width_ft: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    height_ft: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    manufacturing_year: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[VehicleStatus] = mapped_column(
        SAEnum(VehicleStatus, native_enum=False, length=20),
        default=VehicleStatus.AVAILABLE, nullable=False, index=True,
    )
    # Bumped on every UPDATE; a racing writer holding an older version fails
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    __mapper_args__ = {"version_id_col": version_id}

    carrier = relationship("Carrier", back_populates="vehicles")
