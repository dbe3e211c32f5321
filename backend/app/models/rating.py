import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.utils.clock import utcnow


class CarrierRating(Base):
    """A shipper's 1–5 score for the carrier that delivered a load (one per load)."""
    __tablename__ = "carrier_ratings"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_carrier_ratings_range"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    load_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("loads.id"), unique=True, nullable=False, index=True
    )
    shipper_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shippers.id"), nullable=False, index=True
    )
    carrier_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("carriers.id"), nullable=False, index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
