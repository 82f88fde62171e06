"""
Reviews Router: admin review queue and review actions.

Static paths (/pending, /stats) are declared before /{registration_id}.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.principal import Principal, get_principal
from ..errors import ValidationError
from ..schemas.reviews import ReviewActionRequest
from ..services.registration_service import RegistrationService
from ..services.review_workflow import ReviewWorkflow
from ._helpers import _registration_to_dict, _event_to_dict

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("/pending")
def list_pending(
    limit: Optional[int] = Query(None),
    offset: int = Query(0),
    db: Session = Depends(get_db),
):
    """Registrations awaiting a decision, oldest first."""
    registrations = ReviewWorkflow.list_pending(db, limit=limit, offset=offset)
    return {
        "registrations": [_registration_to_dict(r) for r in registrations],
        "count": len(registrations),
        "offset": max(0, offset),
    }


@router.get("/stats")
def get_stats(db: Session = Depends(get_db)):
    return ReviewWorkflow.get_stats(db)


@router.get("/{registration_id}")
def get_review(registration_id: str, db: Session = Depends(get_db)):
    result = RegistrationService.get_with_history(db, registration_id)
    return {
        "registration": _registration_to_dict(result["registration"]),
        "events": [_event_to_dict(e) for e in result["events"]],
    }


@router.post("/{registration_id}/action")
def apply_review_action(
    registration_id: str,
    req: ReviewActionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Apply a reviewer action. The reviewer comes from the body or the forwarded principal."""
    reviewer_id = req.reviewer_id or principal.actor_id
    if not reviewer_id:
        raise ValidationError("reviewer_id or X-Actor-Id is required", field="reviewer_id")
    registration = ReviewWorkflow.apply_action(
        db,
        registration_id,
        req.action,
        actor_id=reviewer_id,
        actor_name=req.reviewer_name or principal.actor_name,
        notes=req.notes,
        rejection_reason=req.rejection_reason,
    )
    return {"registration": _registration_to_dict(registration)}
