"""
Schemas for location promotions
"""
from datetime import datetime
from pydantic import BaseModel
from typing import Optional, Dict, Any


class CreatePromotionRequest(BaseModel):
    title: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    promotion_type: str
    image_url: Optional[str] = None
    prize: Optional[str] = None
    reward_points: int = 0
    discount_percent: Optional[int] = None
    max_claims: Optional[int] = None
    per_user_limit: Optional[int] = None
    requires_check_in: bool = False
    requires_purchase: bool = False
    terms: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    starts_at: datetime
    ends_at: datetime


class UpdatePromotionRequest(BaseModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    promotion_type: Optional[str] = None
    image_url: Optional[str] = None
    prize: Optional[str] = None
    reward_points: Optional[int] = None
    discount_percent: Optional[int] = None
    max_claims: Optional[int] = None
    per_user_limit: Optional[int] = None
    requires_check_in: Optional[bool] = None
    requires_purchase: Optional[bool] = None
    terms: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None


class ClaimPromotionRequest(BaseModel):
    user_id: str
