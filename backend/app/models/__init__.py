"""Aggregate model imports for Alembic auto-detection."""

from app.models.carrier import Carrier  # noqa: F401
from app.models.shipper import IndustryType, Shipper  # noqa: F401
from app.models.vehicle import Vehicle, VehicleStatus, VehicleType  # noqa: F401
from app.models.load import Load, LoadStatus  # noqa: F401
from app.models.bid import Bid, BidStatus  # noqa: F401
from app.models.interaction import CarrierLoadInteraction, InteractionStatus  # noqa: F401
from app.models.rating import CarrierRating  # noqa: F401
from app.models.values import Capacity, CapacityUnit, Location  # noqa: F401
