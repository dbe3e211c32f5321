"""Pydantic schemas for fleet management."""

from datetime import datetime

from pydantic import BaseModel

from app.models.vehicle import VehicleStatus, VehicleType
from app.schemas.common import CapacityOut


# ── Create ───────────────────────────────────────────────────

class VehicleCreate(BaseModel):
    """Payload for POST /api/vehicles.

    Only the capacity matching the type is used: ``capacity_litres`` for
    TANKER, ``capacity_tons`` for everything else.  Business rules are
    checked in the fleet service so all problems are reported together.
    """
    vehicle_type: VehicleType | None = None
    vehicle_number: str | None = None
    capacity_tons: float = 0.0
    capacity_litres: float = 0.0
    length_ft: float = 0.0
    width_ft: float = 0.0
    height_ft: float = 0.0
    manufacturing_year: int | str | None = None

    model_config = {"allow_inf_nan": False}


# ── Update (partial) ─────────────────────────────────────────

class VehicleUpdate(BaseModel):
    vehicle_type: VehicleType | None = None
    vehicle_number: str | None = None
    capacity_tons: float | None = None
    capacity_litres: float | None = None
    length_ft: float | None = None
    width_ft: float | None = None
    height_ft: float | None = None
    manufacturing_year: int | str | None = None

    model_config = {"allow_inf_nan": False}


class VehicleStatusUpdate(BaseModel):
    status: VehicleStatus


# ── Response ─────────────────────────────────────────────────

class VehicleOut(BaseModel):
    id: str
    carrier_id: str
    vehicle_number: str
    vehicle_type: VehicleType
    capacity: CapacityOut
    length_ft: float
    width_ft: float
    height_ft: float
    manufacturing_year: int
    status: VehicleStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VehicleSummary(BaseModel):
    """Compact vehicle view used inside bid and load listings."""
    id: str
    vehicle_number: str
    vehicle_type: VehicleType
    capacity: CapacityOut

    model_config = {"from_attributes": True}


class VehicleRemovalOut(BaseModel):
    vehicle_id: str
    outcome: str  # "deleted" | "retired"
