"""Load: a shipment posted by a shipper for carriers to bid on.

The requirement is a ``Capacity``: litres when the only required type is
TANKER, tons otherwise.  The three dates are strictly ordered:

    bidding_deadline < pickup_date < expected_delivery_date

Lifecycle:  CREATED → ASSIGNED → IN_TRANSIT → DELIVERED  (forward only)

``selected_carrier_id`` and ``assigned_vehicle_id`` are written exactly
once, when the load becomes ASSIGNED.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint, DateTime, Enum as SAEnum, Float,
    ForeignKey, Integer, JSON, String, Text,
)
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from app.database import Base
from app.models.values import Capacity, CapacityUnit, Location
from app.utils.clock import utcnow


class LoadStatus(str, enum.Enum):
    CREATED = "CREATED"
    ASSIGNED = "ASSIGNED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


# Position of each status in the forward-only lifecycle
LOAD_STATUS_ORDER = {
    LoadStatus.CREATED: 0,
    LoadStatus.ASSIGNED: 1,
    LoadStatus.IN_TRANSIT: 2,
    LoadStatus.DELIVERED: 3,
}


class Load(Base):
    __tablename__ = "loads"
    __table_args__ = (
        CheckConstraint("budget_price > 0", name="ck_loads_budget_positive"),
        CheckConstraint("requirement_value > 0", name="ck_loads_requirement_positive"),
        CheckConstraint(
            "bidding_deadline < pickup_date AND pickup_date < expected_delivery_date",
            name="ck_loads_date_order",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    shipper_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shippers.id"), nullable=False, index=True
    )

    # ── Route ────────────────────────────────────────────────
    pickup_street: Mapped[str] = mapped_column(String(255), nullable=False)
    pickup_city: Mapped[str] = mapped_column(String(100), nullable=False)
    pickup_state: Mapped[str] = mapped_column(String(100), nullable=False)
    pickup_pincode: Mapped[str] = mapped_column(String(6), nullable=False)
    pickup_location: Mapped[Location] = composite(
        "pickup_street", "pickup_city", "pickup_state", "pickup_pincode"
    )
    delivery_street: Mapped[str] = mapped_column(String(255), nullable=False)
    delivery_city: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_state: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_pincode: Mapped[str] = mapped_column(String(6), nullable=False)
    delivery_location: Mapped[Location] = composite(
        "delivery_street", "delivery_city", "delivery_state", "delivery_pincode"
    )

    # ── Cargo ────────────────────────────────────────────────
    material: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    requirement_unit: Mapped[CapacityUnit] = mapped_column(
        SAEnum(CapacityUnit, native_enum=False, length=10), nullable=False
    )
    requirement_value: Mapped[float] = mapped_column(Float, nullable=False)
    requirement: Mapped[Capacity] = composite("requirement_unit", "requirement_value")
    # JSON list of VehicleType values, de-duplicated, never empty
    required_vehicle_types: Mapped[list] = mapped_column(JSON, nullable=False)
    budget_price: Mapped[float] = mapped_column(Float, nullable=False)

    # ── Schedule ─────────────────────────────────────────────
    bidding_deadline: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    pickup_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expected_delivery_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # ── Assignment (set once, at ASSIGNED) ───────────────────
    selected_carrier_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("carriers.id"), index=True
    )
    assigned_vehicle_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("vehicles.id"), index=True
    )
    driver_name: Mapped[str | None] = mapped_column(String(100))
    driver_phone: Mapped[str | None] = mapped_column(String(20))

    status: Mapped[LoadStatus] = mapped_column(
        SAEnum(LoadStatus, native_enum=False, length=20),
        default=LoadStatus.CREATED, nullable=False, index=True,
    )
    # Optimistic concurrency: two accepts racing on one load cannot both commit
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    __mapper_args__ = {"version_id_col": version_id}

    # ── Relationships ────────────────────────────────────────
    # Default lazy loading; queries use explicit selectinload()/joinedload()
    shipper = relationship("Shipper", back_populates="loads")
    selected_carrier = relationship("Carrier", foreign_keys=[selected_carrier_id])
    assigned_vehicle = relationship("Vehicle", foreign_keys=[assigned_vehicle_id])
    bids = relationship("Bid", back_populates="load")

    def advance_to(self, target: LoadStatus) -> None:
        """Move one step forward in the lifecycle; anything else is refused."""
        if LOAD_STATUS_ORDER[target] != LOAD_STATUS_ORDER[self.status] + 1:
            raise ValueError(f"Load cannot move from {self.status.value} to {target.value}")
        self.status = target
