"""Pydantic schemas for carrier and shipper profiles."""

from datetime import datetime

from pydantic import BaseModel

from app.models.shipper import IndustryType
from app.schemas.common import LocationIn, LocationOut


class AccountRegister(BaseModel):
    owner_name: str | None = None
    company_name: str | None = None
    contact_email: str | None = None
    contact_number: str | None = None
    gst_number: str | None = None
    address: LocationIn | None = None


class CarrierRegister(AccountRegister):
    pass


class ShipperRegister(AccountRegister):
    industry_type: IndustryType | None = None


class CarrierOut(BaseModel):
    id: str
    owner_name: str
    company_name: str
    contact_email: str
    contact_number: str
    gst_number: str
    address: LocationOut
    fleet_size: int
    rating: float
    rating_count: int
    total_trips: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ShipperOut(BaseModel):
    id: str
    owner_name: str
    company_name: str
    contact_email: str
    contact_number: str
    gst_number: str
    industry_type: IndustryType
    address: LocationOut
    created_at: datetime

    model_config = {"from_attributes": True}


class CarrierSummary(BaseModel):
    """What a shipper sees about a bidding or assigned carrier."""
    id: str
    company_name: str
    rating: float
    rating_count: int
    fleet_size: int

    model_config = {"from_attributes": True}


class CarrierContact(CarrierSummary):
    owner_name: str
    contact_email: str
    contact_number: str
    gst_number: str
    address: LocationOut
    total_trips: int


class ShipperContact(BaseModel):
    id: str
    company_name: str
    owner_name: str
    contact_email: str
    contact_number: str
    gst_number: str
    address: LocationOut

    model_config = {"from_attributes": True}
