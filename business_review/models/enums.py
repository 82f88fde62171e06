"""
Closed enumerations exposed at the service boundary.

Values are contractual and case-sensitive.
"""
from enum import Enum
from typing import Type, TypeVar

from ..errors import ValidationError

E = TypeVar("E", bound=Enum)


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_MORE_INFO = "request_more_info"
    SUSPEND = "suspend"
    RESUME = "resume"
    COMMENT = "comment"


class PromotionType(str, Enum):
    DISCOUNT = "discount"
    CONTEST = "contest"
    EVENT = "event"
    CHALLENGE = "challenge"


class PromotionStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class LocationAdminRole(str, Enum):
    OWNER = "owner"      # Full control
    MANAGER = "manager"  # Manage location and promotions
    STAFF = "staff"      # View only


ROLE_RANK = {
    LocationAdminRole.STAFF: 1,
    LocationAdminRole.MANAGER: 2,
    LocationAdminRole.OWNER: 3,
}


def role_at_least(role, minimum) -> bool:
    """Check a role against the owner > manager > staff ordering"""
    return ROLE_RANK[parse_enum(LocationAdminRole, role, "role")] >= ROLE_RANK[
        parse_enum(LocationAdminRole, minimum, "minimum")
    ]


def parse_enum(enum_cls: Type[E], value, field: str) -> E:
    """Coerce a boundary value into `enum_cls`, raising ValidationError for unknown variants."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}", field=field)
