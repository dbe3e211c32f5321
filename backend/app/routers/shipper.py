"""Shipper marketplace router.

Endpoints:
    POST   /api/shipper/loads                 Post a load
    GET    /api/shipper/loads                 My loads (optional ?status=)
    GET    /api/shipper/loads/{id}            Assigned / in-transit load detail
    GET    /api/shipper/loads/{id}/bids       Pending bids, cheapest first
    POST   /api/shipper/loads/{id}/rate       Rate the carrier of a delivered load
    GET    /api/shipper/bids/{id}             Pending bid detail
    PATCH  /api/shipper/bids/{id}/accept      Accept a bid
"""

from fastapi import APIRouter, Depends

from app.auth.deps import get_shipper_actions
from app.schemas.account import CarrierContact, CarrierSummary
from app.schemas.bid import AcceptBidOut, BidOut, LoadBidSummary, ShipperBidDetail
from app.schemas.common import CapacityOut, CityState
from app.schemas.load import (
    AssignedVehicleSummary,
    LoadCreate,
    LoadOut,
    RatingCreate,
    RatingOut,
    ShipperLoadDetail,
    ShipperLoadSummary,
)
from app.schemas.vehicle import VehicleOut, VehicleSummary
from app.services.actions import ShipperActions

router = APIRouter()


# ── Loads ────────────────────────────────────────────────────

@router.post("/loads", response_model=LoadOut, status_code=201)
async def create_load(body: LoadCreate, actions: ShipperActions = Depends(get_shipper_actions)):
    load = await actions.create_load(body)
    return LoadOut.model_validate(load)


@router.get("/loads", response_model=list[ShipperLoadSummary])
async def list_loads(
    status: str | None = None,
    actions: ShipperActions = Depends(get_shipper_actions),
):
    """My loads, newest first, with pending bid counts and assignment summary."""
    rows = await actions.loads(status)
    result = []
    for row in rows:
        load = row["load"]
        result.append(ShipperLoadSummary(
            id=load.id,
            material=load.material,
            status=load.status,
            budget_price=load.budget_price,
            requirement=CapacityOut.model_validate(load.requirement),
            required_vehicle_types=load.required_vehicle_types,
            pickup_location=CityState.model_validate(load.pickup_location),
            delivery_location=CityState.model_validate(load.delivery_location),
            bidding_deadline=load.bidding_deadline,
            pickup_date=load.pickup_date,
            created_at=load.created_at,
            bid_count=row["bid_count"],
            selected_carrier=(
                CarrierSummary.model_validate(load.selected_carrier)
                if load.selected_carrier else None
            ),
            assigned_vehicle=(
                AssignedVehicleSummary.model_validate(load.assigned_vehicle)
                if load.assigned_vehicle else None
            ),
            is_rated=row["is_rated"],
        ))
    return result


@router.get("/loads/{load_id}", response_model=ShipperLoadDetail)
async def get_load(load_id: str, actions: ShipperActions = Depends(get_shipper_actions)):
    load = await actions.load_detail(load_id)
    return ShipperLoadDetail(
        load=LoadOut.model_validate(load),
        selected_carrier=CarrierContact.model_validate(load.selected_carrier),
        assigned_vehicle=VehicleOut.model_validate(load.assigned_vehicle),
    )


@router.get("/loads/{load_id}/bids", response_model=list[LoadBidSummary])
async def list_load_bids(load_id: str, actions: ShipperActions = Depends(get_shipper_actions)):
    bids = await actions.bids_for_load(load_id)
    return [
        LoadBidSummary(
            id=bid.id,
            bid_amount=bid.bid_amount,
            estimated_transit_time_hours=bid.estimated_transit_time_hours,
            carrier=CarrierSummary.model_validate(bid.carrier),
            vehicle=VehicleSummary.model_validate(bid.vehicle),
        )
        for bid in bids
    ]


@router.post("/loads/{load_id}/rate", response_model=RatingOut, status_code=201)
async def rate_carrier(
    load_id: str,
    body: RatingCreate,
    actions: ShipperActions = Depends(get_shipper_actions),
):
    result = await actions.rate_carrier(load_id, body.rating)
    return RatingOut(**result)


# ── Bids ─────────────────────────────────────────────────────

@router.get("/bids/{bid_id}", response_model=ShipperBidDetail)
async def get_bid(bid_id: str, actions: ShipperActions = Depends(get_shipper_actions)):
    bid = await actions.bid_detail(bid_id)
    return ShipperBidDetail(
        bid=BidOut.model_validate(bid),
        carrier=CarrierContact.model_validate(bid.carrier),
        vehicle=VehicleOut.model_validate(bid.vehicle),
    )


@router.patch("/bids/{bid_id}/accept", response_model=AcceptBidOut)
async def accept_bid(bid_id: str, actions: ShipperActions = Depends(get_shipper_actions)):
    result = await actions.accept_bid(bid_id)
    return AcceptBidOut(**result)
