"""Location administrator grants"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint

from ..db import Base
from ..core.clock import utcnow
from ..core.uuid_type import UUIDType, new_id


class LocationAdmin(Base):
    """
    Grant of a role over one location to one user.

    Revoking flips `is_active`; the row is kept so the history of who held
    access survives.
    """
    __tablename__ = "business_location_admins"

    id = Column(UUIDType(), primary_key=True, default=new_id)
    location_id = Column(
        UUIDType(),
        ForeignKey("business_locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(UUIDType(), nullable=False, index=True)
    user_email = Column(String(255), nullable=False)
    user_username = Column(String(60), nullable=False)
    role = Column(String(16), nullable=False, default="staff")
    granted_by = Column(UUIDType(), nullable=True)
    granted_by_username = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    granted_at = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("location_id", "user_id", name="unique_location_user"),
    )
