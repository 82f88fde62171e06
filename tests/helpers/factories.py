"""
Factories for registrations, approved businesses and promotions.
"""
import uuid
from datetime import timedelta
from typing import Optional

from business_review.core.clock import utcnow
from business_review.models.business import Business
from business_review.services.hierarchy_service import HierarchyService
from business_review.services.promotion_service import PromotionService
from business_review.services.registration_service import RegistrationService
from business_review.services.review_workflow import ReviewWorkflow

REVIEWER_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


def new_uuid() -> str:
    return str(uuid.uuid4())


def registration_payload(user_id: Optional[str] = None, **overrides) -> dict:
    payload = {
        "user_id": user_id or new_uuid(),
        "name": "Blue Door Coffee",
        "category": "Coffee Shop",
        "address": "12 Harbor Street, Portland",
        "description": "Neighbourhood coffee roaster and bakery",
        "phone": "+1 503 555 0100",
        "website": "https://bluedoor.example.com",
        "tax_id": "TX-99812",
        "document_urls": ["https://files.example.com/license.pdf"],
        "is_multi_user_team": False,
        "owner_email": "owner@bluedoor.example.com",
        "owner_username": "bluedoor",
    }
    payload.update(overrides)
    return payload


def submit_registration(db, **overrides):
    return RegistrationService.submit(db, registration_payload(**overrides))


def approved_business(db, **overrides) -> Business:
    """Submit and approve a registration; returns the materialized business."""
    registration = submit_registration(db, **overrides)
    registration = ReviewWorkflow.apply_action(
        db, registration.id, "approve", actor_id=REVIEWER_ID, actor_name="Dana Reviewer",
    )
    return HierarchyService.get_business(db, registration.business_id)


def location_payload(name: str = "Second Branch", **overrides) -> dict:
    payload = {
        "location_name": name,
        "formatted_address": f"{name}, 40 Market Street, Portland",
        "city": "Portland",
        "country": "US",
    }
    payload.update(overrides)
    return payload


def promotion_payload(starts_in: timedelta = timedelta(hours=-1),
                      lasts: timedelta = timedelta(days=7), **overrides) -> dict:
    now = utcnow()
    payload = {
        "title": "Free pastry Friday",
        "promotion_type": "event",
        "reward_points": 50,
        "starts_at": now + starts_in,
        "ends_at": now + starts_in + lasts,
    }
    payload.update(overrides)
    return payload


def live_promotion(db, location_id: str, **overrides):
    """Create and publish a promotion whose window is already open."""
    promotion = PromotionService.create(db, location_id, promotion_payload(**overrides))
    return PromotionService.publish(db, promotion.id)
