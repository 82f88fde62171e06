"""
Locations Router: single-location reads and edits, plus the
location-scoped promotion and admin collections.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..db import get_db
from ..dependencies.principal import Principal, require_actor
from ..schemas.admins import GrantLocationAdminRequest
from ..schemas.businesses import UpdateLocationRequest
from ..schemas.promotions import CreatePromotionRequest
from ..services.hierarchy_service import HierarchyService
from ..services.location_admin_service import LocationAdminService
from ..services.promotion_service import PromotionService
from ._helpers import _location_to_dict, _promotion_to_dict, _admin_to_dict

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("/{location_id}")
def get_location(location_id: str, db: Session = Depends(get_db)):
    location = HierarchyService.get_location(db, location_id)
    return {"location": _location_to_dict(location)}


@router.patch("/{location_id}")
def update_location(
    location_id: str,
    req: UpdateLocationRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    location = HierarchyService.update_location(db, location_id, req.model_dump(exclude_unset=True))
    return {"location": _location_to_dict(location)}


@router.delete("/{location_id}")
def remove_location(
    location_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    """Delete a location. Reports which location is primary afterwards."""
    primary = HierarchyService.remove_location(db, location_id)
    return {
        "deleted": True,
        "location_id": location_id,
        "primary_location_id": primary.id if primary else None,
    }


# --- Promotions ---

@router.post("/{location_id}/promotions", status_code=201)
def create_promotion(
    location_id: str,
    req: CreatePromotionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    """Create a draft promotion."""
    promotion = PromotionService.create(
        db, location_id, req.model_dump(exclude_unset=True), actor_id=principal.actor_id,
    )
    return {"promotion": _promotion_to_dict(promotion)}


@router.get("/{location_id}/promotions")
def list_location_promotions(location_id: str, db: Session = Depends(get_db)):
    promotions = PromotionService.list_for_location(db, location_id)
    now = utcnow()
    return {
        "promotions": [_promotion_to_dict(p, now) for p in promotions],
        "count": len(promotions),
    }


# --- Admins ---

@router.post("/{location_id}/admins", status_code=201)
def grant_admin(
    location_id: str,
    req: GrantLocationAdminRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    admin = LocationAdminService.grant(
        db,
        location_id,
        req.user_id,
        req.role,
        user_email=req.user_email,
        user_username=req.user_username,
        granted_by=principal.actor_id,
        granted_by_username=req.granted_by_username or principal.actor_name,
    )
    return {"admin": _admin_to_dict(admin)}


@router.get("/{location_id}/admins")
def list_admins(location_id: str, include_revoked: bool = False, db: Session = Depends(get_db)):
    admins = LocationAdminService.list_for_location(db, location_id, include_revoked=include_revoked)
    return {"admins": [_admin_to_dict(a) for a in admins], "count": len(admins)}


@router.delete("/{location_id}/admins/{user_id}")
def revoke_admin(
    location_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    admin = LocationAdminService.revoke(db, location_id, user_id)
    return {"admin": _admin_to_dict(admin)}
