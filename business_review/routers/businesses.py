"""
Businesses Router: materialized businesses and their locations.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.principal import Principal, require_actor
from ..schemas.businesses import (
    UpdateBusinessRequest,
    CreateLocationRequest,
    SetPrimaryLocationRequest,
)
from ..services.hierarchy_service import HierarchyService
from ..services.promotion_service import PromotionService
from ..core.clock import utcnow
from ._helpers import _business_to_dict, _location_to_dict, _promotion_to_dict

router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.get("/users/{user_id}")
def list_user_businesses(user_id: str, db: Session = Depends(get_db)):
    businesses = HierarchyService.list_businesses_for_user(db, user_id)
    return {"businesses": [_business_to_dict(b) for b in businesses], "count": len(businesses)}


@router.get("/{business_id}")
def get_business(business_id: str, db: Session = Depends(get_db)):
    business = HierarchyService.get_business(db, business_id)
    primary = HierarchyService.get_primary_location(db, business_id)
    return {
        "business": _business_to_dict(business),
        "primary_location": _location_to_dict(primary) if primary else None,
    }


@router.patch("/{business_id}")
def update_business(
    business_id: str,
    req: UpdateBusinessRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    business = HierarchyService.update_business(db, business_id, req.model_dump(exclude_unset=True))
    return {"business": _business_to_dict(business)}


@router.post("/{business_id}/deactivate")
def deactivate_business(
    business_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    business = HierarchyService.deactivate_business(db, business_id)
    return {"business": _business_to_dict(business)}


@router.delete("/{business_id}")
def delete_business(
    business_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    """Hard delete. Locations, promotions, claims and admin grants go with it."""
    HierarchyService.delete_business(db, business_id)
    return {"deleted": True, "business_id": business_id}


@router.get("/{business_id}/locations")
def list_locations(business_id: str, include_inactive: bool = True, db: Session = Depends(get_db)):
    locations = HierarchyService.list_locations(db, business_id, include_inactive=include_inactive)
    return {"locations": [_location_to_dict(loc) for loc in locations], "count": len(locations)}


@router.post("/{business_id}/locations", status_code=201)
def add_location(
    business_id: str,
    req: CreateLocationRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    data = req.model_dump(exclude_unset=True)
    make_primary = bool(data.pop("is_primary", False))
    location = HierarchyService.add_location(db, business_id, data, make_primary=make_primary)
    return {"location": _location_to_dict(location)}


@router.put("/{business_id}/primary-location")
def set_primary_location(
    business_id: str,
    req: SetPrimaryLocationRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    location = HierarchyService.set_primary(db, business_id, req.location_id)
    return {"location": _location_to_dict(location)}


@router.get("/{business_id}/promotions")
def list_business_promotions(business_id: str, db: Session = Depends(get_db)):
    HierarchyService.get_business(db, business_id)
    promotions = PromotionService.list_for_business(db, business_id)
    now = utcnow()
    return {
        "promotions": [_promotion_to_dict(p, now) for p in promotions],
        "count": len(promotions),
    }
