"""Common schemas used across the application."""

from pydantic import BaseModel

from app.models.values import CapacityUnit


class LocationIn(BaseModel):
    """Street address as submitted.  Checked by ``validate_location``."""
    street: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | int | None = None


class LocationOut(BaseModel):
    street: str
    city: str
    state: str
    pincode: str

    model_config = {"from_attributes": True}


class CityState(BaseModel):
    city: str
    state: str

    model_config = {"from_attributes": True}


class CapacityOut(BaseModel):
    """Tagged quantity: ``{"unit": "TONS", "value": 12.0}``."""
    unit: CapacityUnit
    value: float

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    message: str
