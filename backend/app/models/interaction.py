"""CarrierLoadInteraction: a carrier's one-time decision on a load.

Either BIDDED (a Bid exists) or NOT_INTERESTED.  The unique
(carrier_id, load_id) constraint is what makes "one bid per carrier per
load" hold even when two requests race past the service-level check.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.utils.clock import utcnow


class InteractionStatus(str, enum.Enum):
    BIDDED = "BIDDED"
    NOT_INTERESTED = "NOT_INTERESTED"


class CarrierLoadInteraction(Base):
    __tablename__ = "carrier_load_interactions"
    __table_args__ = (
        UniqueConstraint("carrier_id", "load_id", name="uq_interaction_carrier_load"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    carrier_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("carriers.id"), nullable=False, index=True
    )
    load_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("loads.id"), nullable=False, index=True
    )
    status: Mapped[InteractionStatus] = mapped_column(
        SAEnum(InteractionStatus, native_enum=False, length=20), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
