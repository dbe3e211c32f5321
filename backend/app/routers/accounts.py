"""Account profile router.

Endpoints:
    POST   /api/accounts/carriers     Register a carrier profile
    POST   /api/accounts/shippers     Register a shipper profile
    GET    /api/accounts/me           The caller's own profile
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_principal
from app.auth.principal import Principal
from app.database import get_db
from app.schemas.account import CarrierOut, CarrierRegister, ShipperOut, ShipperRegister
from app.services import accounts
from app.services.actions import CarrierActions, actions_for

router = APIRouter()


@router.post("/carriers", response_model=CarrierOut, status_code=201)
async def register_carrier(body: CarrierRegister, db: AsyncSession = Depends(get_db)):
    carrier = await accounts.register_carrier(db, body)
    return CarrierOut.model_validate(carrier)


@router.post("/shippers", response_model=ShipperOut, status_code=201)
async def register_shipper(body: ShipperRegister, db: AsyncSession = Depends(get_db)):
    shipper = await accounts.register_shipper(db, body)
    return ShipperOut.model_validate(shipper)


@router.get("/me", response_model=CarrierOut | ShipperOut)
async def get_profile(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Return the profile of whoever holds the token."""
    actions = await actions_for(principal, db)
    if isinstance(actions, CarrierActions):
        return CarrierOut.model_validate(actions.profile)
    return ShipperOut.model_validate(actions.profile)
