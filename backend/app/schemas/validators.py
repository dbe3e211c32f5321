"""Reusable field validators for marketplace input.

Provides validators for:
- Indian vehicle registration numbers
- Manufacturing year (rolling window)
- Postal addresses (6-digit pincode)
- Load schedule dates
- Email, phone and GSTIN
- Positive finite amounts and measurements

Each validator returns the cleaned value or raises ``ValueError`` with a
user-facing message.  Services run them through ``ErrorCollector`` so
that several bad fields are reported together.
"""

import math
import re
from datetime import datetime, timedelta

from app.config import settings
from app.middleware.exceptions import InvalidStateError
from app.models.values import Location
from app.utils.clock import to_naive_utc, utcnow


# Regex patterns
EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_REGEX = re.compile(r"^\d{10}$")
GST_REGEX = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
VEHICLE_NUMBER_REGEX = re.compile(r"^[A-Z]{2}\d{2}[A-Z]{1,2}\d{4}$")
PINCODE_REGEX = re.compile(r"^[1-9][0-9]{5}$")


class ErrorCollector:
    """Accumulates field errors so they can be raised as one message.

    Usage:
        errors = ErrorCollector()
        number = errors.check(normalize_vehicle_number, body.vehicle_number)
        if body.capacity_tons <= 0:
            errors.add("Capacity in tons must be greater than 0")
        errors.raise_if_any()
    """

    def __init__(self):
        self.messages: list[str] = []

    def add(self, message: str) -> None:
        self.messages.append(message)

    def check(self, validator, *args, **kwargs):
        """Run ``validator``; record its ValueError and return None on failure."""
        try:
            return validator(*args, **kwargs)
        except ValueError as exc:
            self.add(str(exc))
            return None

    def __bool__(self) -> bool:
        return bool(self.messages)

    def raise_if_any(self) -> None:
        if self.messages:
            raise InvalidStateError.from_errors(self.messages)


def is_positive(value) -> bool:
    """True for a finite number greater than zero; NaN and infinity fail."""
    return value is not None and math.isfinite(value) and value > 0


def normalize_vehicle_number(value: str | None) -> str:
    """Validate and normalise an Indian registration number.

    Args:
        value: Raw number, e.g. "mh-12 ab 1234"

    Returns:
        Upper-case number without separators, e.g. "MH12AB1234"

    Raises:
        ValueError: If the number is missing or malformed
    """
    if not value or not str(value).strip():
        raise ValueError("Vehicle number is required")

    cleaned = re.sub(r"[\s\-.]", "", str(value)).upper()
    if not VEHICLE_NUMBER_REGEX.match(cleaned):
        raise ValueError("Vehicle number must be a valid Indian registration number (e.g. MH12AB1234)")
    return cleaned


def validate_manufacturing_year(value: int | str | None, today: datetime | None = None) -> int:
    """Validate a manufacturing year against the rolling registration window.

    Raises:
        ValueError: If missing, not four digits, in the future, or too old
    """
    if value is None or str(value).strip() == "":
        raise ValueError("Manufacturing year is required")

    year_str = str(value).strip()
    if not re.fullmatch(r"\d{4}", year_str):
        raise ValueError("Manufacturing year must be a valid 4-digit year (e.g., 2022)")

    year = int(year_str)
    current_year = (today or utcnow()).year
    oldest = current_year - settings.vehicle_max_age_years

    if year > current_year:
        raise ValueError(f"Manufacturing year cannot be in the future ({year})")
    if year < oldest:
        raise ValueError(f"Vehicle is too old to be registered (older than {oldest})")
    return year


def validate_location(value, label: str = "Location") -> list[str]:
    """Return the list of problems with an address (empty when valid).

    Unlike the single-field validators this reports every missing part,
    because an address is one form section.
    """
    if value is None:
        return [f"{label} is required"]

    errors = []
    for part in ("street", "city", "state"):
        text = getattr(value, part, None)
        if not text or not str(text).strip():
            errors.append(f"{label} {part} is required")

    pincode = getattr(value, "pincode", None)
    if not pincode or not PINCODE_REGEX.match(str(pincode)):
        errors.append(f"{label} pincode must be a valid 6-digit number")
    return errors


def clean_location(value) -> Location:
    """Build a trimmed ``Location`` from an already validated address."""
    return Location(
        street=value.street.strip(),
        city=value.city.strip(),
        state=value.state.strip(),
        pincode=str(value.pincode),
    )


def validate_load_dates(
    bidding_deadline: datetime,
    pickup_date: datetime,
    expected_delivery_date: datetime,
    now: datetime | None = None,
) -> list[str]:
    """Return schedule problems for a new load (empty when valid).

    Dates may be up to ``settings.date_tolerance_minutes`` in the past to
    absorb client clock skew; they must be strictly ordered
    deadline < pickup < delivery.
    """
    errors = []
    floor = (now or utcnow()) - timedelta(minutes=settings.date_tolerance_minutes)

    bidding = to_naive_utc(bidding_deadline)
    pickup = to_naive_utc(pickup_date)
    delivery = to_naive_utc(expected_delivery_date)

    if bidding < floor:
        errors.append("Bidding deadline cannot be in the past")
    if pickup < floor:
        errors.append("Pickup date cannot be in the past")
    if delivery < floor:
        errors.append("Delivery date cannot be in the past")
    if bidding >= pickup:
        errors.append("Bidding deadline must be before pickup date")
    if pickup >= delivery:
        errors.append("Pickup date must be before delivery date")
    return errors


def validate_email(value: str) -> str:
    """Validate and lower-case an email address."""
    if not value or not value.strip():
        raise ValueError("Email is required")

    value = value.strip().lower()

    if len(value) > 254:  # RFC 5321
        raise ValueError("Email address too long")
    if not EMAIL_REGEX.match(value):
        raise ValueError("Invalid email address format")
    return value


def validate_phone(value: str) -> str:
    """Validate a 10-digit Indian mobile number."""
    if not value:
        raise ValueError("Contact number is required")

    value = value.replace(" ", "").replace("-", "")
    if not PHONE_REGEX.match(value):
        raise ValueError("Contact number must be a valid 10-digit number")
    return value


def validate_gst(value: str) -> str:
    """Validate a GSTIN (15 characters, state code + PAN + entity + checksum)."""
    if not value:
        raise ValueError("GST number is required")

    value = value.strip().upper()
    if not GST_REGEX.match(value):
        raise ValueError("Invalid GST number format")
    return value


def parse_status_filter(enum_cls, value: str | None, label: str = "status"):
    """Turn an optional query-string filter into an enum member.

    Raises InvalidStateError (not ValueError) because a bad filter is
    reported on its own, never aggregated with field errors.
    """
    if value is None or value == "":
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidStateError(f"Invalid {label} filter '{value}'. Allowed: {allowed}")
