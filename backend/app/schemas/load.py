"""Pydantic schemas for loads."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.load import LoadStatus
from app.models.vehicle import VehicleType
from app.schemas.account import CarrierContact, CarrierSummary
from app.schemas.common import CapacityOut, CityState, LocationIn, LocationOut
from app.schemas.vehicle import VehicleOut


# ── Create ───────────────────────────────────────────────────

class LoadCreate(BaseModel):
    """Payload for POST /api/shipper/loads.

    Send ``volume_in_litres`` for a TANKER load and ``weight_in_tons``
    for every other type; the unused one is ignored.  Vehicle types are
    accepted in any case and de-duplicated.
    """
    pickup_location: LocationIn | None = None
    delivery_location: LocationIn | None = None
    material: str | None = None
    description: str | None = Field(None, max_length=500)
    weight_in_tons: float = 0.0
    volume_in_litres: float = 0.0
    required_vehicle_types: list[str] = Field(default_factory=list)
    budget_price: float | None = None
    bidding_deadline: datetime | None = None
    pickup_date: datetime | None = None
    expected_delivery_date: datetime | None = None

    model_config = {"allow_inf_nan": False}


# ── Response ─────────────────────────────────────────────────

class LoadPublicOut(BaseModel):
    """Load as listed to carriers: assignment and driver details removed."""
    id: str
    shipper_id: str
    pickup_location: LocationOut
    delivery_location: LocationOut
    material: str
    description: str | None
    requirement: CapacityOut
    required_vehicle_types: list[VehicleType]
    budget_price: float
    bidding_deadline: datetime
    pickup_date: datetime
    expected_delivery_date: datetime
    status: LoadStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class LoadOut(LoadPublicOut):
    selected_carrier_id: str | None
    assigned_vehicle_id: str | None
    driver_name: str | None
    driver_phone: str | None
    updated_at: datetime


class AssignedVehicleSummary(BaseModel):
    id: str
    vehicle_number: str
    vehicle_type: VehicleType

    model_config = {"from_attributes": True}


class ShipperLoadSummary(BaseModel):
    """One row of GET /api/shipper/loads."""
    id: str
    material: str
    status: LoadStatus
    budget_price: float
    requirement: CapacityOut
    required_vehicle_types: list[VehicleType]
    pickup_location: CityState
    delivery_location: CityState
    bidding_deadline: datetime
    pickup_date: datetime
    created_at: datetime
    bid_count: int
    selected_carrier: CarrierSummary | None = None
    assigned_vehicle: AssignedVehicleSummary | None = None
    is_rated: bool


class ShipperLoadDetail(BaseModel):
    """An assigned or in-transit load with its carrier and vehicle."""
    load: LoadOut
    selected_carrier: CarrierContact
    assigned_vehicle: VehicleOut


class TransitStart(BaseModel):
    driver_name: str | None = Field(None, max_length=100)
    driver_phone: str | None = Field(None, max_length=20)


class LoadStatusOut(BaseModel):
    load_id: str
    status: LoadStatus


class RatingCreate(BaseModel):
    rating: int | None = None


class RatingOut(BaseModel):
    load_id: str
    carrier_id: str
    rating: int
    carrier_rating: float
    carrier_rating_count: int
