"""
Registration request and review event models.

A registration is never deleted by the service; review events are
append-only and ordered by `created_at`.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, Index, JSON
from sqlalchemy.orm import relationship

from ..db import Base
from ..core.clock import utcnow
from ..core.uuid_type import UUIDType, new_id


class RegistrationRequest(Base):
    """A proposed business awaiting verification"""
    __tablename__ = "business_registration_requests"

    id = Column(UUIDType(), primary_key=True, default=new_id)
    user_id = Column(UUIDType(), nullable=False, index=True)
    business_id = Column(UUIDType(), nullable=True)  # set once, on approval

    # --- Submitted facts ---
    name = Column(String(120), nullable=False)
    category = Column(String(120), nullable=False)
    address = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    phone = Column(String(64), nullable=True)
    website = Column(String(1024), nullable=True)
    tax_id = Column(String(64), nullable=True)
    document_urls = Column(JSON, nullable=False, default=list)
    is_multi_user_team = Column(Boolean, nullable=False, default=False)

    status = Column(String(32), nullable=False, default="pending", index=True)
    # Statuses: pending, under_review, approved, rejected, suspended

    # --- Owner contact snapshot ---
    owner_email = Column(String(255), nullable=False)
    owner_username = Column(String(60), nullable=False)

    # --- Review outcome ---
    rejection_reason = Column(Text, nullable=True)
    reviewer_notes = Column(Text, nullable=True)
    reviewer_id = Column(UUIDType(), nullable=True)
    reviewer_name = Column(String(255), nullable=True)

    submitted_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    events = relationship(
        "ReviewEvent",
        back_populates="registration",
        order_by="ReviewEvent.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ReviewEvent(Base):
    """Immutable audit record of one reviewer action"""
    __tablename__ = "business_review_events"

    id = Column(UUIDType(), primary_key=True, default=new_id)
    registration_id = Column(
        UUIDType(),
        ForeignKey("business_registration_requests.id", ondelete="CASCADE"),
        nullable=False,
    )
    reviewer_id = Column(UUIDType(), nullable=True)  # null for system events
    reviewer_name = Column(String(255), nullable=True)
    action = Column(String(32), nullable=False)
    notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    registration = relationship("RegistrationRequest", back_populates="events")

    __table_args__ = (
        Index("idx_review_events_registration_created", "registration_id", "created_at"),
    )
