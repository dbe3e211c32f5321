"""FastAPI dependencies for authentication and role dispatch.

Dependencies:
  get_principal          → decode the bearer token into a Principal
  get_carrier_actions    → CarrierActions for a carrier principal (403 otherwise)
  get_shipper_actions    → ShipperActions for a shipper principal (403 otherwise)
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import decode_token
from app.auth.principal import Principal, Role
from app.database import get_db
from app.middleware.exceptions import UnauthorizedError
from app.services.actions import CarrierActions, ShipperActions, carrier_actions, shipper_actions

bearer_scheme = HTTPBearer(auto_error=False)


# ── Core principal dependency ───────────────────────────────

async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """Decode the JWT and return the caller's identity and role."""
    if credentials is None:
        raise UnauthorizedError("Unauthorized")

    payload = decode_token(credentials.credentials)
    account_id: str | None = payload.get("sub")
    if not account_id or payload.get("type") != "access":
        raise UnauthorizedError("Invalid or expired token")

    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise UnauthorizedError("Invalid or expired token")

    return Principal(id=account_id, role=role)


# ── Role capabilities ───────────────────────────────────────

async def get_carrier_actions(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> CarrierActions:
    return await carrier_actions(principal, db)


async def get_shipper_actions(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> ShipperActions:
    return await shipper_actions(principal, db)
