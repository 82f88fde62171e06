"""
Promotions Router: promotion lifecycle and claims.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.principal import Principal, require_actor
from ..schemas.promotions import UpdatePromotionRequest, ClaimPromotionRequest
from ..services.promotion_service import PromotionService
from ._helpers import _promotion_to_dict

router = APIRouter(prefix="/promotions", tags=["promotions"])


@router.get("/{promotion_id}")
def get_promotion(promotion_id: str, db: Session = Depends(get_db)):
    promotion = PromotionService.get(db, promotion_id)
    return {"promotion": _promotion_to_dict(promotion)}


@router.patch("/{promotion_id}")
def update_promotion(
    promotion_id: str,
    req: UpdatePromotionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    promotion = PromotionService.update(
        db, promotion_id, req.model_dump(exclude_unset=True), actor_id=principal.actor_id,
    )
    return {"promotion": _promotion_to_dict(promotion)}


@router.delete("/{promotion_id}")
def delete_promotion(
    promotion_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    PromotionService.delete(db, promotion_id)
    return {"deleted": True, "promotion_id": promotion_id}


@router.post("/{promotion_id}/publish")
def publish_promotion(
    promotion_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    promotion = PromotionService.publish(db, promotion_id, actor_id=principal.actor_id)
    return {"promotion": _promotion_to_dict(promotion)}


@router.post("/{promotion_id}/cancel")
def cancel_promotion(
    promotion_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    promotion = PromotionService.cancel(db, promotion_id, actor_id=principal.actor_id)
    return {"promotion": _promotion_to_dict(promotion)}


@router.post("/{promotion_id}/claims", status_code=201)
def claim_promotion(
    promotion_id: str,
    req: ClaimPromotionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_actor),
):
    promotion = PromotionService.record_claim(db, promotion_id, req.user_id)
    return {
        "promotion_id": promotion.id,
        "user_id": req.user_id,
        "total_claims": promotion.total_claims,
        "max_claims": promotion.max_claims,
    }
