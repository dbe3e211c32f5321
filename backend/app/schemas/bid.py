"""Pydantic schemas for bids."""

from datetime import datetime

from pydantic import BaseModel

from app.models.bid import BidStatus
from app.models.load import LoadStatus
from app.models.vehicle import VehicleType
from app.schemas.account import CarrierContact, CarrierSummary, ShipperContact
from app.schemas.common import CapacityOut, CityState
from app.schemas.load import LoadOut
from app.schemas.vehicle import VehicleOut, VehicleSummary


class BidCreate(BaseModel):
    """Payload for POST /api/carrier/loads/{load_id}/bid.

    Amount and transit time are validated by the bid engine after the
    load and vehicle checks, so the first failing rule is reported.
    """
    vehicle_id: str
    bid_amount: float
    estimated_transit_time_hours: float

    model_config = {"allow_inf_nan": False}


class BidOut(BaseModel):
    id: str
    load_id: str
    carrier_id: str
    vehicle_id: str
    bid_amount: float
    estimated_transit_time_hours: float
    status: BidStatus
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Carrier views ────────────────────────────────────────────

class BidLoadSummary(BaseModel):
    id: str
    material: str
    status: LoadStatus
    pickup_location: CityState
    delivery_location: CityState
    requirement: CapacityOut
    required_vehicle_types: list[VehicleType]
    budget_price: float

    model_config = {"from_attributes": True}


class CarrierBidSummary(BaseModel):
    """One row of GET /api/carrier/bids."""
    id: str
    bid_amount: float
    status: BidStatus
    created_at: datetime
    shipper_company_name: str
    vehicle: VehicleSummary
    load: BidLoadSummary


class CarrierBidDetail(BaseModel):
    bid: BidOut
    load: LoadOut
    shipper: ShipperContact
    vehicle: VehicleOut


# ── Shipper views ────────────────────────────────────────────

class LoadBidSummary(BaseModel):
    """One row of GET /api/shipper/loads/{load_id}/bids."""
    id: str
    bid_amount: float
    estimated_transit_time_hours: float
    carrier: CarrierSummary
    vehicle: VehicleSummary


class ShipperBidDetail(BaseModel):
    bid: BidOut
    carrier: CarrierContact
    vehicle: VehicleOut


class AcceptBidOut(BaseModel):
    load_id: str
    bid_id: str
    selected_carrier_id: str
    assigned_vehicle_id: str
    rejected_bid_ids: list[str]
    released_vehicle_ids: list[str]
