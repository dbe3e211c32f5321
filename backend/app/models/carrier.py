"""Carrier: a transport company that bids on loads with its vehicles.

The aggregates ``fleet_size``, ``rating``, ``rating_count`` and
``total_trips`` are never recomputed in batch; each one is adjusted in
the same transaction as the vehicle, rating or delivery change that
moves it.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from app.database import Base
from app.models.values import Location
from app.utils.clock import utcnow


class Carrier(Base):
    __tablename__ = "carriers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    owner_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    contact_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    gst_number: Mapped[str] = mapped_column(String(15), unique=True, nullable=False)

    # ── Registered address ───────────────────────────────────
    address_street: Mapped[str] = mapped_column(String(255), nullable=False)
    address_city: Mapped[str] = mapped_column(String(100), nullable=False)
    address_state: Mapped[str] = mapped_column(String(100), nullable=False)
    address_pincode: Mapped[str] = mapped_column(String(6), nullable=False)
    address: Mapped[Location] = composite(
        "address_street", "address_city", "address_state", "address_pincode"
    )

    # ── Aggregates ───────────────────────────────────────────
    fleet_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_trips: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    vehicles = relationship("Vehicle", back_populates="carrier")
