from .enums import (
    RegistrationStatus,
    ReviewAction,
    PromotionType,
    PromotionStatus,
    LocationAdminRole,
)
from .registration import RegistrationRequest, ReviewEvent
from .business import Business
from .location import BusinessLocation
from .promotion import BusinessPromotion, PromotionClaim
from .location_admin import LocationAdmin

__all__ = [
    "RegistrationStatus",
    "ReviewAction",
    "PromotionType",
    "PromotionStatus",
    "LocationAdminRole",
    "RegistrationRequest",
    "ReviewEvent",
    "Business",
    "BusinessLocation",
    "BusinessPromotion",
    "PromotionClaim",
    "LocationAdmin",
]
