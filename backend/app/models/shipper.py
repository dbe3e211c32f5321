import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from app.database import Base
from app.models.values import Location
from app.utils.clock import utcnow


class IndustryType(str, enum.Enum):
    AGRICULTURE = "Agriculture"
    TEXTILES = "Textiles"
    ELECTRONICS = "Electronics"
    CHEMICALS = "Chemicals"
    AUTOMOTIVE = "Automotive"
    FMCG = "FMCG"
    PHARMACEUTICALS = "Pharmaceuticals"
    CONSTRUCTION = "Construction"
    RETAIL = "Retail"
    OTHER = "Other"


class Shipper(Base):
    __tablename__ = "shippers"

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
    industry_type: Mapped[IndustryType] = mapped_column(
        SAEnum(IndustryType, native_enum=False, length=30), nullable=False
    )

    address_street: Mapped[str] = mapped_column(String(255), nullable=False)
    address_city: Mapped[str] = mapped_column(String(100), nullable=False)
    address_state: Mapped[str] = mapped_column(String(100), nullable=False)
    address_pincode: Mapped[str] = mapped_column(String(6), nullable=False)
    address: Mapped[Location] = composite(
        "address_street", "address_city", "address_state", "address_pincode"
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    loads = relationship("Load", back_populates="shipper")
