"""
Promotion models.

Stored `status` only moves forward along draft → scheduled → active →
expired (or to cancelled); the observable status also depends on the
clock, see `services.promotion_service.effective_status`.
"""
from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, ForeignKey, Text, JSON, Index, CheckConstraint,
)

from ..db import Base
from ..core.clock import utcnow
from ..core.uuid_type import UUIDType, new_id


class BusinessPromotion(Base):
    """A time-bounded offer scoped to one location"""
    __tablename__ = "business_promotions"

    id = Column(UUIDType(), primary_key=True, default=new_id)
    location_id = Column(
        UUIDType(),
        ForeignKey("business_locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(120), nullable=False)
    subtitle = Column(String(160), nullable=True)
    description = Column(Text, nullable=True)
    promotion_type = Column(String(32), nullable=False)
    status = Column(String(32), nullable=False, default="draft", index=True)
    image_url = Column(String(1024), nullable=True)
    prize = Column(String(1024), nullable=True)
    reward_points = Column(Integer, nullable=False, default=0)
    discount_percent = Column(Integer, nullable=True)

    # --- Claim accounting ---
    max_claims = Column(Integer, nullable=True)  # null = unbounded
    per_user_limit = Column(Integer, nullable=True)
    total_claims = Column(Integer, nullable=False, default=0)

    requires_check_in = Column(Boolean, nullable=False, default=False)
    requires_purchase = Column(Boolean, nullable=False, default=False)
    terms = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)

    # --- Schedule ---
    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=False)
    published_at = Column(DateTime, nullable=True)

    created_by = Column(UUIDType(), nullable=True)
    updated_by = Column(UUIDType(), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="promotion_schedule_order"),
        CheckConstraint(
            "max_claims IS NULL OR total_claims <= max_claims",
            name="promotion_claims_within_max",
        ),
    )


class PromotionClaim(Base):
    """One successful claim of a promotion by a user"""
    __tablename__ = "business_promotion_claims"

    id = Column(UUIDType(), primary_key=True, default=new_id)
    promotion_id = Column(
        UUIDType(),
        ForeignKey("business_promotions.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(UUIDType(), nullable=False)
    claimed_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_promotion_claims_promotion_user", "promotion_id", "user_id"),
    )
