"""
Promotion Manager: location-scoped promotions, schedule and claims.

Stored status moves only by author action (publish, cancel) or by the
sweep. The observable status is always `effective_status(promotion, now)`,
which both the readers and the sweep use, so a lazy read and an eager
sweep can never disagree about the same instant.

Claims are counted with a conditional UPDATE on the promotion row; the
row write also serializes the per-user check that follows it.
"""
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..core.clock import utcnow, to_naive_utc
from ..core.transaction import unit_of_work
from ..core.uuid_type import new_id, parse_uuid
from ..errors import ClaimRejected, InvalidTransition, NotFound, ValidationError
from ..models.enums import PromotionStatus, PromotionType, parse_enum
from ..models.location import BusinessLocation
from ..models.promotion import BusinessPromotion, PromotionClaim

logger = logging.getLogger(__name__)

P = PromotionStatus

EDITABLE_FIELDS = (
    "title", "subtitle", "description", "promotion_type", "image_url", "prize",
    "reward_points", "discount_percent", "max_claims", "per_user_limit",
    "requires_check_in", "requires_purchase", "terms", "starts_at", "ends_at",
)

NOT_NULL_FIELDS = ("reward_points", "requires_check_in", "requires_purchase")

# Stored statuses the clock can still move forward
TIME_DRIVEN = (P.SCHEDULED.value, P.ACTIVE.value)


def effective_status(promotion: BusinessPromotion, now: Optional[datetime] = None) -> str:
    """Observable status of a promotion at `now`."""
    now = now or utcnow()
    if promotion.status not in TIME_DRIVEN:
        return promotion.status
    if now >= promotion.ends_at:
        return P.EXPIRED.value
    if now >= promotion.starts_at:
        return P.ACTIVE.value
    return P.SCHEDULED.value


def _check_range(data: Dict[str, Any], field: str, low: int, high: int) -> None:
    value = data.get(field)
    if value is not None and not low <= int(value) <= high:
        raise ValidationError(f"{field} must be between {low} and {high}", field=field)


def validate_promotion(data: Dict[str, Any]) -> Dict[str, Any]:
    """Business rules for a complete promotion payload. Returns a normalized copy."""
    data = dict(data)
    title = (data.get("title") or "").strip()
    if not 3 <= len(title) <= 120:
        raise ValidationError("title must be 3-120 characters", field="title")
    data["title"] = title
    if data.get("subtitle") and len(data["subtitle"]) > 160:
        raise ValidationError("subtitle must be at most 160 characters", field="subtitle")

    promotion_type = parse_enum(PromotionType, data.get("promotion_type"), "promotion_type")
    data["promotion_type"] = promotion_type.value

    starts_at = to_naive_utc(data.get("starts_at"))
    ends_at = to_naive_utc(data.get("ends_at"))
    if starts_at is None or ends_at is None:
        raise ValidationError("starts_at and ends_at are required", field="starts_at")
    if ends_at <= starts_at:
        raise ValidationError("ends_at must be after starts_at", field="ends_at")
    data["starts_at"], data["ends_at"] = starts_at, ends_at

    _check_range(data, "reward_points", 0, 10000)
    _check_range(data, "discount_percent", 0, 100)
    _check_range(data, "max_claims", 1, 1_000_000)
    _check_range(data, "per_user_limit", 1, 10_000)

    if data.get("discount_percent") is not None and promotion_type != PromotionType.DISCOUNT:
        raise ValidationError(
            "discount_percent only applies to discount promotions", field="discount_percent"
        )
    if promotion_type == PromotionType.CONTEST and not data.get("prize"):
        raise ValidationError("Contest promotions require a prize", field="prize")
    return data


class PromotionService:
    """Author, schedule and claim promotions."""

    @staticmethod
    def _load(db: Session, promotion_id: str, for_update: bool = False) -> BusinessPromotion:
        promotion_id = parse_uuid(promotion_id, "promotion_id")
        query = db.query(BusinessPromotion).filter(BusinessPromotion.id == promotion_id)
        if for_update:
            query = query.with_for_update()
        promotion = query.first()
        if not promotion:
            raise NotFound("Promotion", promotion_id)
        return promotion

    @staticmethod
    def _settle(promotion: BusinessPromotion, now: datetime) -> str:
        """Persist the clock-driven status on a row already being written."""
        status = effective_status(promotion, now)
        if status != promotion.status:
            promotion.status = status
        return status

    @staticmethod
    def create(
        db: Session,
        location_id: str,
        data: Dict[str, Any],
        actor_id: Optional[str] = None,
    ) -> BusinessPromotion:
        """Create a draft promotion on an active location."""
        location_id = parse_uuid(location_id, "location_id")
        data = validate_promotion(data)
        now = utcnow()
        with unit_of_work(db):
            location = (
                db.query(BusinessLocation)
                .filter(BusinessLocation.id == location_id)
                .with_for_update()
                .first()
            )
            if not location:
                raise NotFound("Location", location_id)
            if not location.is_active:
                raise ValidationError("Promotions require an active location", field="location_id")

            promotion = BusinessPromotion(
                id=new_id(),
                location_id=location_id,
                status=P.DRAFT.value,
                reward_points=0,
                total_claims=0,
                requires_check_in=False,
                requires_purchase=False,
                metadata_json=data.get("metadata") or {},
                created_by=actor_id,
                updated_by=actor_id,
                created_at=now,
                updated_at=now,
            )
            for key in EDITABLE_FIELDS:
                if data.get(key) is not None:
                    setattr(promotion, key, data[key])
            db.add(promotion)
        logger.info(f"Created promotion {promotion.id} on location {location_id}: {promotion.title}")
        return promotion

    @staticmethod
    def get(db: Session, promotion_id: str) -> BusinessPromotion:
        return PromotionService._load(db, promotion_id)

    @staticmethod
    def list_for_location(db: Session, location_id: str) -> List[BusinessPromotion]:
        location_id = parse_uuid(location_id, "location_id")
        if not db.query(BusinessLocation.id).filter(BusinessLocation.id == location_id).first():
            raise NotFound("Location", location_id)
        return (
            db.query(BusinessPromotion)
            .filter(BusinessPromotion.location_id == location_id)
            .order_by(BusinessPromotion.starts_at.asc())
            .all()
        )

    @staticmethod
    def list_for_business(db: Session, business_id: str) -> List[BusinessPromotion]:
        business_id = parse_uuid(business_id, "business_id")
        return (
            db.query(BusinessPromotion)
            .join(BusinessLocation, BusinessLocation.id == BusinessPromotion.location_id)
            .filter(BusinessLocation.business_id == business_id)
            .order_by(BusinessPromotion.starts_at.asc())
            .all()
        )

    @staticmethod
    def update(
        db: Session,
        promotion_id: str,
        data: Dict[str, Any],
        actor_id: Optional[str] = None,
    ) -> BusinessPromotion:
        """Edit a promotion that has not started yet (draft or scheduled)."""
        now = utcnow()
        with unit_of_work(db):
            promotion = PromotionService._load(db, promotion_id, for_update=True)
            status = PromotionService._settle(promotion, now)
            if status not in (P.DRAFT.value, P.SCHEDULED.value):
                raise InvalidTransition(status, "update")

            merged = {key: getattr(promotion, key) for key in EDITABLE_FIELDS}
            merged.update({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
            merged = validate_promotion(merged)
            if promotion.total_claims and merged.get("max_claims") is not None \
                    and merged["max_claims"] < promotion.total_claims:
                raise ValidationError("max_claims is below claims already made", field="max_claims")
            for key in EDITABLE_FIELDS:
                if merged.get(key) is None and key in NOT_NULL_FIELDS:
                    continue
                setattr(promotion, key, merged.get(key))
            if data.get("metadata") is not None:
                promotion.metadata_json = data["metadata"]
            promotion.updated_by = actor_id
            promotion.updated_at = now
        return promotion

    @staticmethod
    def publish(db: Session, promotion_id: str, actor_id: Optional[str] = None) -> BusinessPromotion:
        """draft → scheduled. Stamps `published_at`."""
        now = utcnow()
        with unit_of_work(db):
            promotion = PromotionService._load(db, promotion_id, for_update=True)
            if promotion.status != P.DRAFT.value:
                raise InvalidTransition(effective_status(promotion, now), "publish")
            promotion.status = P.SCHEDULED.value
            promotion.published_at = now
            promotion.updated_by = actor_id
            promotion.updated_at = now
            PromotionService._settle(promotion, now)
        logger.info(f"Published promotion {promotion.id} (status={promotion.status})")
        return promotion

    @staticmethod
    def cancel(db: Session, promotion_id: str, actor_id: Optional[str] = None) -> BusinessPromotion:
        """Cancel from draft, scheduled or active. No-op when already cancelled."""
        now = utcnow()
        with unit_of_work(db):
            promotion = PromotionService._load(db, promotion_id, for_update=True)
            if promotion.status == P.CANCELLED.value:
                return promotion
            status = PromotionService._settle(promotion, now)
            if status == P.EXPIRED.value:
                raise InvalidTransition(status, "cancel")
            promotion.status = P.CANCELLED.value
            promotion.updated_by = actor_id
            promotion.updated_at = now
        logger.info(f"Cancelled promotion {promotion.id}")
        return promotion

    @staticmethod
    def delete(db: Session, promotion_id: str) -> None:
        with unit_of_work(db):
            promotion = PromotionService._load(db, promotion_id, for_update=True)
            db.query(PromotionClaim).filter(
                PromotionClaim.promotion_id == promotion.id
            ).delete(synchronize_session=False)
            db.delete(promotion)
        logger.info(f"Deleted promotion {promotion_id}")

    @staticmethod
    def record_claim(db: Session, promotion_id: str, user_id: str) -> BusinessPromotion:
        """
        Count one claim by `user_id`. Fails with ClaimRejected carrying
        not_active, expired, exhausted or per_user_limit.
        """
        promotion_id = parse_uuid(promotion_id, "promotion_id")
        user_id = parse_uuid(user_id, "user_id")
        now = utcnow()
        with unit_of_work(db):
            incremented = (
                db.query(BusinessPromotion)
                .filter(
                    BusinessPromotion.id == promotion_id,
                    BusinessPromotion.status.in_(TIME_DRIVEN),
                    BusinessPromotion.starts_at <= now,
                    BusinessPromotion.ends_at > now,
                    or_(
                        BusinessPromotion.max_claims.is_(None),
                        BusinessPromotion.total_claims < BusinessPromotion.max_claims,
                    ),
                )
                .update(
                    {"total_claims": BusinessPromotion.total_claims + 1, "updated_at": now},
                    synchronize_session=False,
                )
            )

            promotion = PromotionService._load(db, promotion_id)
            db.refresh(promotion)
            if incremented == 0:
                status = effective_status(promotion, now)
                if status == P.EXPIRED.value:
                    raise ClaimRejected(ClaimRejected.EXPIRED)
                if status != P.ACTIVE.value:
                    raise ClaimRejected(ClaimRejected.NOT_ACTIVE, f"Promotion is {status}")
                raise ClaimRejected(ClaimRejected.EXHAUSTED)

            if promotion.per_user_limit is not None:
                user_claims = (
                    db.query(PromotionClaim)
                    .filter(
                        PromotionClaim.promotion_id == promotion_id,
                        PromotionClaim.user_id == user_id,
                    )
                    .count()
                )
                if user_claims >= promotion.per_user_limit:
                    raise ClaimRejected(ClaimRejected.PER_USER_LIMIT)

            PromotionService._settle(promotion, now)
            db.add(PromotionClaim(id=new_id(), promotion_id=promotion_id, user_id=user_id, claimed_at=now))
        logger.info(f"Claim recorded on promotion {promotion_id} by user {user_id} ({promotion.total_claims})")
        return promotion

    @staticmethod
    def sweep(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Persist effective status for every time-driven promotion. Only ever
        moves a promotion forward; re-running is a no-op.
        """
        now = now or utcnow()
        with unit_of_work(db):
            expired = (
                db.query(BusinessPromotion)
                .filter(BusinessPromotion.status.in_(TIME_DRIVEN), BusinessPromotion.ends_at <= now)
                .update({"status": P.EXPIRED.value, "updated_at": now}, synchronize_session=False)
            )
            activated = (
                db.query(BusinessPromotion)
                .filter(
                    BusinessPromotion.status == P.SCHEDULED.value,
                    and_(BusinessPromotion.starts_at <= now, BusinessPromotion.ends_at > now),
                )
                .update({"status": P.ACTIVE.value, "updated_at": now}, synchronize_session=False)
            )
        if expired or activated:
            logger.info(f"Promotion sweep: {activated} activated, {expired} expired")
        return {"activated": activated, "expired": expired}
