"""Approved business model"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, JSON, CheckConstraint

from ..db import Base
from ..core.clock import utcnow
from ..core.uuid_type import UUIDType, new_id


class Business(Base):
    """
    An approved, operating business.

    Created only by materializing an approved registration; the link back
    to the registration may be severed, never re-pointed.
    """
    __tablename__ = "businesses"

    id = Column(UUIDType(), primary_key=True, default=new_id)
    registration_id = Column(
        UUIDType(),
        ForeignKey("business_registration_requests.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    owner_user_id = Column(UUIDType(), nullable=False, index=True)
    business_name = Column(String(120), nullable=False)
    category = Column(String(120), nullable=False)
    tax_id = Column(String(64), nullable=True)
    description = Column(Text, nullable=True)
    website = Column(String(1024), nullable=True)
    logo_url = Column(String(1024), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("length(trim(business_name)) > 0", name="business_name_not_empty"),
        CheckConstraint("length(trim(category)) > 0", name="business_category_not_empty"),
    )
