"""
Registrations Router: business owners submit and track registrations.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.principal import Principal, require_actor
from ..schemas.registrations import SubmitRegistrationRequest
from ..services.registration_service import RegistrationService
from ._helpers import _registration_to_dict, _event_to_dict

router = APIRouter(prefix="/registrations", tags=["registrations"])


@router.post("", status_code=201)
def submit_registration(
    req: SubmitRegistrationRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    registration = RegistrationService.submit(db, req.model_dump())
    return {"registration": _registration_to_dict(registration)}


@router.get("/users/{user_id}/latest")
def get_latest_registration(user_id: str, db: Session = Depends(get_db)):
    """Most recent registration submitted by a user."""
    registration = RegistrationService.get_latest_for_user(db, user_id)
    return {"registration": _registration_to_dict(registration)}


@router.get("/users/{user_id}")
def list_user_registrations(user_id: str, db: Session = Depends(get_db)):
    registrations = RegistrationService.list_for_user(db, user_id)
    return {
        "registrations": [_registration_to_dict(r) for r in registrations],
        "count": len(registrations),
    }


@router.get("/{registration_id}")
def get_registration(registration_id: str, db: Session = Depends(get_db)):
    result = RegistrationService.get_with_history(db, registration_id)
    return {
        "registration": _registration_to_dict(result["registration"]),
        "events": [_event_to_dict(e) for e in result["events"]],
    }
