import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum as SAEnum, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.utils.clock import utcnow


class BidStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Bid(Base):
    """A carrier's offer to move a load with one of its vehicles.

    Uniqueness per (carrier, load) is enforced by CarrierLoadInteraction,
    which is written in the same transaction as the bid.
    """
    __tablename__ = "bids"
    __table_args__ = (
        CheckConstraint("bid_amount > 0", name="ck_bids_amount_positive"),
        CheckConstraint(
            "estimated_transit_time_hours > 0", name="ck_bids_transit_positive"
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    load_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("loads.id"), nullable=False, index=True
    )
    carrier_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("carriers.id"), nullable=False, index=True
    )
    vehicle_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vehicles.id"), nullable=False, index=True
    )
    bid_amount: Mapped[float] = mapped_column(Float, nullable=False)
    estimated_transit_time_hours: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[BidStatus] = mapped_column(
        SAEnum(BidStatus, native_enum=False, length=20),
        default=BidStatus.PENDING, nullable=False, index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    load = relationship("Load", back_populates="bids")
    carrier = relationship("Carrier")
    vehicle = relationship("Vehicle")
