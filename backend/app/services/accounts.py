"""Carrier and shipper profile registration.

Credentials live with the external identity provider; these records hold
the business profile a token's ``sub`` points at.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import ConflictError
from app.models.carrier import Carrier
from app.models.shipper import Shipper
from app.schemas.account import AccountRegister, CarrierRegister, ShipperRegister
from app.schemas.validators import (
    ErrorCollector,
    clean_location,
    validate_email,
    validate_gst,
    validate_location,
    validate_phone,
)
from app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def _validate_profile(body: AccountRegister, errors: ErrorCollector) -> dict:
    owner_name = (body.owner_name or "").strip()
    company_name = (body.company_name or "").strip()
    if not owner_name:
        errors.add("Owner name is required")
    if not company_name:
        errors.add("Company name is required")

    fields = {
        "owner_name": owner_name,
        "company_name": company_name,
        "contact_email": errors.check(validate_email, body.contact_email or ""),
        "contact_number": errors.check(validate_phone, body.contact_number or ""),
        "gst_number": errors.check(validate_gst, body.gst_number or ""),
        "address": None,
    }

    address_errors = validate_location(body.address, "Address")
    for message in address_errors:
        errors.add(message)
    if not address_errors:
        fields["address"] = clean_location(body.address)
    return fields


async def _ensure_unique(db: AsyncSession, model, fields: dict, label: str) -> None:
    """Report which contact detail is already registered."""
    result = await db.execute(
        select(model.contact_email, model.contact_number, model.gst_number).where(
            or_(
                model.contact_email == fields["contact_email"],
                model.contact_number == fields["contact_number"],
                model.gst_number == fields["gst_number"],
            )
        )
    )
    for email, number, gst in result.all():
        if email == fields["contact_email"]:
            raise ConflictError(f"A {label} with this email already exists")
        if number == fields["contact_number"]:
            raise ConflictError(f"A {label} with this contact number already exists")
        if gst == fields["gst_number"]:
            raise ConflictError(f"A {label} with this GST number already exists")


async def register_carrier(db: AsyncSession, body: CarrierRegister) -> Carrier:
    errors = ErrorCollector()
    fields = _validate_profile(body, errors)
    errors.raise_if_any()

    await _ensure_unique(db, Carrier, fields, "carrier")

    async with UnitOfWork(
        db, "register_carrier", conflict_message="A carrier with these details already exists"
    ) as uow:
        carrier = Carrier(**fields)
        db.add(carrier)
        await uow.flush()

    logger.info("Carrier %s registered (%s)", carrier.id, carrier.company_name)
    return carrier


async def register_shipper(db: AsyncSession, body: ShipperRegister) -> Shipper:
    errors = ErrorCollector()
    fields = _validate_profile(body, errors)
    if body.industry_type is None:
        errors.add("Industry type is required")
    errors.raise_if_any()

    await _ensure_unique(db, Shipper, fields, "shipper")

    async with UnitOfWork(
        db, "register_shipper", conflict_message="A shipper with these details already exists"
    ) as uow:
        shipper = Shipper(industry_type=body.industry_type, **fields)
        db.add(shipper)
        await uow.flush()

    logger.info("Shipper %s registered (%s)", shipper.id, shipper.company_name)
    return shipper
