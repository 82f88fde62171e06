from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..services.location_admin_service import LocationAdminService
from ._helpers import _admin_to_dict

router = APIRouter(prefix="/admins", tags=["admins"])


@router.get("/users/{user_id}")
def list_user_admin_grants(user_id: str, include_revoked: bool = False, db: Session = Depends(get_db)):
    """Every location a user administers."""
    admins = LocationAdminService.list_for_user(db, user_id, include_revoked=include_revoked)
    return {"admins": [_admin_to_dict(a) for a in admins], "count": len(admins)}
