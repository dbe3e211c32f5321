"""Carrier marketplace router.

Endpoints:
    GET    /api/carrier/loads                            Open loads to bid on
    GET    /api/carrier/loads/{id}                       Load detail
    POST   /api/carrier/loads/{id}/not-interested        Decline a load
    GET    /api/carrier/loads/{id}/eligible-vehicles     Vehicles that fit the load
    POST   /api/carrier/loads/{id}/bid                   Place a bid
    PATCH  /api/carrier/loads/{id}/start-transit         ASSIGNED → IN_TRANSIT
    PATCH  /api/carrier/loads/{id}/delivered             IN_TRANSIT → DELIVERED
    GET    /api/carrier/bids                             My bids (optional ?status=)
    GET    /api/carrier/bids/{id}                        Bid detail
"""

from fastapi import APIRouter, Depends

from app.auth.deps import get_carrier_actions
from app.models.bid import Bid
from app.schemas.account import ShipperContact
from app.schemas.bid import (
    BidCreate,
    BidLoadSummary,
    BidOut,
    CarrierBidDetail,
    CarrierBidSummary,
)
from app.schemas.common import MessageResponse
from app.schemas.load import LoadOut, LoadPublicOut, LoadStatusOut, TransitStart
from app.schemas.vehicle import VehicleOut, VehicleSummary
from app.services.actions import CarrierActions

router = APIRouter()


def _bid_summary(bid: Bid) -> CarrierBidSummary:
    return CarrierBidSummary(
        id=bid.id,
        bid_amount=bid.bid_amount,
        status=bid.status,
        created_at=bid.created_at,
        shipper_company_name=bid.load.shipper.company_name,
        vehicle=VehicleSummary.model_validate(bid.vehicle),
        load=BidLoadSummary.model_validate(bid.load),
    )


# ── Loads ────────────────────────────────────────────────────

@router.get("/loads", response_model=list[LoadPublicOut])
async def list_loads(actions: CarrierActions = Depends(get_carrier_actions)):
    """Open loads this carrier has not bid on or declined, soonest deadline first."""
    loads = await actions.eligible_loads()
    return [LoadPublicOut.model_validate(load) for load in loads]


@router.get("/loads/{load_id}", response_model=LoadPublicOut)
async def get_load(load_id: str, actions: CarrierActions = Depends(get_carrier_actions)):
    load = await actions.load_detail(load_id)
    return LoadPublicOut.model_validate(load)


@router.post("/loads/{load_id}/not-interested", response_model=MessageResponse, status_code=201)
async def not_interested(load_id: str, actions: CarrierActions = Depends(get_carrier_actions)):
    await actions.mark_not_interested(load_id)
    return MessageResponse(message="Load marked as not interested")


@router.get("/loads/{load_id}/eligible-vehicles", response_model=list[VehicleOut])
async def eligible_vehicles(load_id: str, actions: CarrierActions = Depends(get_carrier_actions)):
    vehicles = await actions.eligible_vehicles(load_id)
    return [VehicleOut.model_validate(v) for v in vehicles]


@router.post("/loads/{load_id}/bid", response_model=BidOut, status_code=201)
async def place_bid(
    load_id: str,
    body: BidCreate,
    actions: CarrierActions = Depends(get_carrier_actions),
):
    bid = await actions.place_bid(load_id, body)
    return BidOut.model_validate(bid)


# ── Transit ──────────────────────────────────────────────────

@router.patch("/loads/{load_id}/start-transit", response_model=LoadStatusOut)
async def start_transit(
    load_id: str,
    body: TransitStart | None = None,
    actions: CarrierActions = Depends(get_carrier_actions),
):
    body = body or TransitStart()
    load = await actions.start_transit(load_id, body.driver_name, body.driver_phone)
    return LoadStatusOut(load_id=load.id, status=load.status)


@router.patch("/loads/{load_id}/delivered", response_model=LoadStatusOut)
async def mark_delivered(load_id: str, actions: CarrierActions = Depends(get_carrier_actions)):
    load = await actions.mark_delivered(load_id)
    return LoadStatusOut(load_id=load.id, status=load.status)


# ── Bids ─────────────────────────────────────────────────────

@router.get("/bids", response_model=list[CarrierBidSummary])
async def list_bids(
    status: str | None = None,
    actions: CarrierActions = Depends(get_carrier_actions),
):
    """My bids, newest first.  ``status`` is PENDING, ACCEPTED or REJECTED."""
    bids = await actions.bids(status)
    return [_bid_summary(bid) for bid in bids]


@router.get("/bids/{bid_id}", response_model=CarrierBidDetail)
async def get_bid(bid_id: str, actions: CarrierActions = Depends(get_carrier_actions)):
    bid = await actions.bid_detail(bid_id)
    return CarrierBidDetail(
        bid=BidOut.model_validate(bid),
        load=LoadOut.model_validate(bid.load),
        shipper=ShipperContact.model_validate(bid.load.shipper),
        vehicle=VehicleOut.model_validate(bid.vehicle),
    )
