"""Business location (branch) model"""
from sqlalchemy import (
    Column, String, Boolean, DateTime, Float, ForeignKey, Text, JSON, Index, text,
)

from ..db import Base
from ..core.clock import utcnow
from ..core.uuid_type import UUIDType, new_id


class BusinessLocation(Base):
    """
    A physical branch of a business.

    At most one location per business carries `is_primary`; the partial
    unique index backs the service-level invariant.
    """
    __tablename__ = "business_locations"

    id = Column(UUIDType(), primary_key=True, default=new_id)
    business_id = Column(
        UUIDType(),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location_name = Column(String(120), nullable=False)
    formatted_address = Column(Text, nullable=False)
    street = Column(String(255), nullable=True)
    city = Column(String(120), nullable=True)
    state_region = Column(String(120), nullable=True)
    postal_code = Column(String(32), nullable=True)
    country = Column(String(120), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    google_place_id = Column(String(255), nullable=True, unique=True)
    timezone = Column(String(64), nullable=True)
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    operating_hours = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index(
            "uq_business_locations_primary",
            "business_id",
            unique=True,
            sqlite_where=text("is_primary = 1"),
            postgresql_where=text("is_primary"),
        ),
        Index("idx_business_locations_business_created", "business_id", "created_at"),
    )
