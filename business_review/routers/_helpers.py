"""
Response serializers shared by the routers.

Datetimes are naive UTC and rendered with `.isoformat()`.
"""
from datetime import datetime
from typing import Optional

from ..models.business import Business
from ..models.location import BusinessLocation
from ..models.location_admin import LocationAdmin
from ..models.promotion import BusinessPromotion
from ..models.registration import RegistrationRequest, ReviewEvent
from ..services.promotion_service import effective_status


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _registration_to_dict(r: RegistrationRequest) -> dict:
    return {
        "id": r.id,
        "user_id": r.user_id,
        "business_id": r.business_id,
        "name": r.name,
        "category": r.category,
        "address": r.address,
        "description": r.description,
        "phone": r.phone,
        "website": r.website,
        "tax_id": r.tax_id,
        "document_urls": r.document_urls or [],
        "is_multi_user_team": r.is_multi_user_team,
        "status": r.status,
        "owner_email": r.owner_email,
        "owner_username": r.owner_username,
        "rejection_reason": r.rejection_reason,
        "reviewer_notes": r.reviewer_notes,
        "reviewer_id": r.reviewer_id,
        "reviewer_name": r.reviewer_name,
        "submitted_at": _iso(r.submitted_at),
        "updated_at": _iso(r.updated_at),
    }


def _event_to_dict(e: ReviewEvent) -> dict:
    return {
        "id": e.id,
        "registration_id": e.registration_id,
        "reviewer_id": e.reviewer_id,
        "reviewer_name": e.reviewer_name,
        "action": e.action,
        "notes": e.notes,
        "rejection_reason": e.rejection_reason,
        "created_at": _iso(e.created_at),
    }


def _business_to_dict(b: Business) -> dict:
    return {
        "id": b.id,
        "registration_id": b.registration_id,
        "owner_user_id": b.owner_user_id,
        "business_name": b.business_name,
        "category": b.category,
        "tax_id": b.tax_id,
        "description": b.description,
        "website": b.website,
        "logo_url": b.logo_url,
        "is_active": b.is_active,
        "metadata": b.metadata_json or {},
        "created_at": _iso(b.created_at),
        "updated_at": _iso(b.updated_at),
    }


def _location_to_dict(loc: BusinessLocation) -> dict:
    return {
        "id": loc.id,
        "business_id": loc.business_id,
        "location_name": loc.location_name,
        "formatted_address": loc.formatted_address,
        "street": loc.street,
        "city": loc.city,
        "state_region": loc.state_region,
        "postal_code": loc.postal_code,
        "country": loc.country,
        "latitude": loc.latitude,
        "longitude": loc.longitude,
        "google_place_id": loc.google_place_id,
        "timezone": loc.timezone,
        "phone": loc.phone,
        "email": loc.email,
        "is_active": loc.is_active,
        "is_primary": loc.is_primary,
        "operating_hours": loc.operating_hours,
        "notes": loc.notes,
        "metadata": loc.metadata_json or {},
        "created_at": _iso(loc.created_at),
        "updated_at": _iso(loc.updated_at),
    }


def _promotion_to_dict(p: BusinessPromotion, now: Optional[datetime] = None) -> dict:
    return {
        "id": p.id,
        "location_id": p.location_id,
        "title": p.title,
        "subtitle": p.subtitle,
        "description": p.description,
        "promotion_type": p.promotion_type,
        "status": effective_status(p, now),
        "image_url": p.image_url,
        "prize": p.prize,
        "reward_points": p.reward_points,
        "discount_percent": p.discount_percent,
        "max_claims": p.max_claims,
        "per_user_limit": p.per_user_limit,
        "total_claims": p.total_claims,
        "requires_check_in": p.requires_check_in,
        "requires_purchase": p.requires_purchase,
        "terms": p.terms,
        "metadata": p.metadata_json or {},
        "starts_at": _iso(p.starts_at),
        "ends_at": _iso(p.ends_at),
        "published_at": _iso(p.published_at),
        "created_by": p.created_by,
        "updated_by": p.updated_by,
        "created_at": _iso(p.created_at),
        "updated_at": _iso(p.updated_at),
    }


def _admin_to_dict(a: LocationAdmin) -> dict:
    return {
        "id": a.id,
        "location_id": a.location_id,
        "user_id": a.user_id,
        "user_email": a.user_email,
        "user_username": a.user_username,
        "role": a.role,
        "granted_by": a.granted_by,
        "granted_by_username": a.granted_by_username,
        "is_active": a.is_active,
        "granted_at": _iso(a.granted_at),
    }
