"""Fleet management router (carriers only).

Endpoints:
    POST   /api/vehicles/                     Register a vehicle
    GET    /api/vehicles/                     List my vehicles
    GET    /api/vehicles/{id}                 Vehicle detail
    PATCH  /api/vehicles/{id}                 Edit vehicle details
    PATCH  /api/vehicles/{id}/status          Change status
    PATCH  /api/vehicles/{id}/maintenance     AVAILABLE → MAINTENANCE
    DELETE /api/vehicles/{id}                 Delete (no history) or retire
"""

from fastapi import APIRouter, Depends

from app.auth.deps import get_carrier_actions
from app.schemas.vehicle import (
    VehicleCreate,
    VehicleOut,
    VehicleRemovalOut,
    VehicleStatusUpdate,
    VehicleUpdate,
)
from app.services.actions import CarrierActions

router = APIRouter()


@router.post("/", response_model=VehicleOut, status_code=201)
async def add_vehicle(body: VehicleCreate, actions: CarrierActions = Depends(get_carrier_actions)):
    vehicle = await actions.add_vehicle(body)
    return VehicleOut.model_validate(vehicle)


@router.get("/", response_model=list[VehicleOut])
async def list_vehicles(
    status: str | None = None,
    include_retired: bool = False,
    actions: CarrierActions = Depends(get_carrier_actions),
):
    """List vehicles, newest first (retired hidden unless requested)."""
    vehicles = await actions.vehicles(status, include_retired)
    return [VehicleOut.model_validate(v) for v in vehicles]


@router.get("/{vehicle_id}", response_model=VehicleOut)
async def get_vehicle(vehicle_id: str, actions: CarrierActions = Depends(get_carrier_actions)):
    vehicle = await actions.vehicle(vehicle_id)
    return VehicleOut.model_validate(vehicle)


@router.patch("/{vehicle_id}", response_model=VehicleOut)
async def update_vehicle(
    vehicle_id: str,
    body: VehicleUpdate,
    actions: CarrierActions = Depends(get_carrier_actions),
):
    vehicle = await actions.update_vehicle(vehicle_id, body)
    return VehicleOut.model_validate(vehicle)


@router.patch("/{vehicle_id}/status", response_model=VehicleOut)
async def update_vehicle_status(
    vehicle_id: str,
    body: VehicleStatusUpdate,
    actions: CarrierActions = Depends(get_carrier_actions),
):
    vehicle = await actions.update_vehicle_status(vehicle_id, body.status)
    return VehicleOut.model_validate(vehicle)


@router.patch("/{vehicle_id}/maintenance", response_model=VehicleOut)
async def mark_maintenance(vehicle_id: str, actions: CarrierActions = Depends(get_carrier_actions)):
    vehicle = await actions.mark_maintenance(vehicle_id)
    return VehicleOut.model_validate(vehicle)


@router.delete("/{vehicle_id}", response_model=VehicleRemovalOut)
async def remove_vehicle(vehicle_id: str, actions: CarrierActions = Depends(get_carrier_actions)):
    outcome = await actions.remove_vehicle(vehicle_id)
    return VehicleRemovalOut(vehicle_id=vehicle_id, outcome=outcome)
