"""
Business Hierarchy Manager: businesses and their locations.

Invariant kept here: a business with at least one active location has
exactly one primary location, and never more than one. Every change that
can move the primary flag first locks the owning business row, so
concurrent add/set/remove calls on the same business serialize.

Cascades (business → locations → promotions, claims, admin grants) are
performed explicitly inside the same transaction rather than left to the
store.
"""
import logging
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session

from ..core.clock import utcnow, monotonic_after
from ..core.transaction import unit_of_work
from ..core.validation import reject_nulls
from ..core.uuid_type import new_id, parse_uuid
from ..errors import NotFound, ValidationError, ConflictError
from ..models.business import Business
from ..models.enums import LocationAdminRole
from ..models.location import BusinessLocation
from ..models.location_admin import LocationAdmin
from ..models.promotion import BusinessPromotion, PromotionClaim
from ..models.registration import RegistrationRequest

logger = logging.getLogger(__name__)

LOCATION_FIELDS = (
    "location_name", "formatted_address", "street", "city", "state_region",
    "postal_code", "country", "latitude", "longitude", "google_place_id",
    "timezone", "phone", "email", "operating_hours", "notes",
)

BUSINESS_FIELDS = (
    "business_name", "category", "tax_id", "description", "website", "logo_url", "is_active",
)

# Columns that are NOT NULL and may appear in a partial update
REQUIRED_LOCATION_FIELDS = ("location_name", "formatted_address", "is_active", "is_primary")
REQUIRED_BUSINESS_FIELDS = ("business_name", "category", "is_active")


def _validate_location_fields(data: Dict[str, Any], partial: bool = False) -> None:
    if partial:
        reject_nulls(data, REQUIRED_LOCATION_FIELDS)
    name = data.get("location_name")
    if name is not None or not partial:
        if not name or not 2 <= len(str(name).strip()) <= 120:
            raise ValidationError("location_name must be 2-120 characters", field="location_name")
    address = data.get("formatted_address")
    if address is not None or not partial:
        if not address or len(str(address).strip()) < 5:
            raise ValidationError("formatted_address must be at least 5 characters", field="formatted_address")
    lat, lng = data.get("latitude"), data.get("longitude")
    if lat is not None and not -90 <= lat <= 90:
        raise ValidationError("latitude must be between -90 and 90", field="latitude")
    if lng is not None and not -180 <= lng <= 180:
        raise ValidationError("longitude must be between -180 and 180", field="longitude")


class HierarchyService:
    """Businesses, locations and the single-primary invariant."""

    # --- Locking / invariant helpers (run inside a unit of work) ---

    @staticmethod
    def _lock_business(db: Session, business_id: str) -> Business:
        business = (
            db.query(Business)
            .filter(Business.id == business_id)
            .with_for_update()
            .first()
        )
        if not business:
            raise NotFound("Business", business_id)
        # The write takes the writer lock on stores without row locks (SQLite)
        business.updated_at = utcnow()
        db.flush()
        return business

    @staticmethod
    def _ensure_unique_place_id(db: Session, place_id: Optional[str], exclude_id: Optional[str] = None) -> None:
        if not place_id:
            return
        query = db.query(BusinessLocation.id).filter(BusinessLocation.google_place_id == place_id)
        if exclude_id:
            query = query.filter(BusinessLocation.id != exclude_id)
        if query.first():
            raise ConflictError(f"google_place_id {place_id} is already registered", field="google_place_id")

    @staticmethod
    def _promote(db: Session, location: BusinessLocation) -> None:
        """Clear any other primary of the business, then mark `location`."""
        now = utcnow()
        db.query(BusinessLocation).filter(
            BusinessLocation.business_id == location.business_id,
            BusinessLocation.is_primary.is_(True),
            BusinessLocation.id != location.id,
        ).update({"is_primary": False, "updated_at": now}, synchronize_session="fetch")
        db.flush()
        location.is_primary = True
        location.updated_at = now
        db.flush()

    @staticmethod
    def _ensure_primary(db: Session, business_id: str) -> Optional[BusinessLocation]:
        """
        Make sure an active primary exists when any active location does.
        Promotes the oldest active location. Safe to re-run.
        """
        current = (
            db.query(BusinessLocation)
            .filter(
                BusinessLocation.business_id == business_id,
                BusinessLocation.is_primary.is_(True),
                BusinessLocation.is_active.is_(True),
            )
            .first()
        )
        if current:
            return current
        successor = (
            db.query(BusinessLocation)
            .filter(
                BusinessLocation.business_id == business_id,
                BusinessLocation.is_active.is_(True),
            )
            .order_by(BusinessLocation.created_at.asc(), BusinessLocation.id.asc())
            .first()
        )
        if successor:
            HierarchyService._promote(db, successor)
            logger.info(f"Location {successor.id} promoted to primary for business {business_id}")
        return successor

    @staticmethod
    def _newest_created_at(db: Session, business_id: str):
        row = (
            db.query(BusinessLocation.created_at)
            .filter(BusinessLocation.business_id == business_id)
            .order_by(BusinessLocation.created_at.desc())
            .first()
        )
        return row[0] if row else None

    @staticmethod
    def _purge_locations(db: Session, location_ids: List[str]) -> None:
        """Delete locations together with their promotions, claims and admin grants."""
        if not location_ids:
            return
        promotion_ids = db.query(BusinessPromotion.id).filter(
            BusinessPromotion.location_id.in_(location_ids)
        )
        db.query(PromotionClaim).filter(
            PromotionClaim.promotion_id.in_(promotion_ids.scalar_subquery())
        ).delete(synchronize_session=False)
        db.query(BusinessPromotion).filter(
            BusinessPromotion.location_id.in_(location_ids)
        ).delete(synchronize_session=False)
        db.query(LocationAdmin).filter(
            LocationAdmin.location_id.in_(location_ids)
        ).delete(synchronize_session=False)
        db.query(BusinessLocation).filter(
            BusinessLocation.id.in_(location_ids)
        ).delete(synchronize_session=False)
        db.flush()

    # --- Materialization ---

    @staticmethod
    def materialize_from_registration(
        db: Session,
        registration: RegistrationRequest,
        granted_by: Optional[str] = None,
        granted_by_username: Optional[str] = None,
    ) -> Business:
        """
        Create the business, its primary location and the owner grant for an
        approved registration. Runs inside the caller's unit of work so the
        rows commit together with the approval, or not at all.
        """
        if registration.business_id:
            existing = db.query(Business).filter(Business.id == registration.business_id).first()
            if existing:
                return existing

        now = utcnow()
        business = Business(
            id=new_id(),
            registration_id=registration.id,
            owner_user_id=registration.user_id,
            business_name=registration.name,
            category=registration.category,
            tax_id=registration.tax_id,
            description=registration.description,
            website=registration.website,
            is_active=True,
            metadata_json={},
            created_at=now,
            updated_at=now,
        )
        db.add(business)
        db.flush()

        location = BusinessLocation(
            id=new_id(),
            business_id=business.id,
            location_name=registration.name,
            formatted_address=registration.address,
            phone=registration.phone,
            is_active=True,
            is_primary=True,
            metadata_json={},
            created_at=now,
            updated_at=now,
        )
        db.add(location)
        db.flush()

        db.add(LocationAdmin(
            id=new_id(),
            location_id=location.id,
            user_id=registration.user_id,
            user_email=registration.owner_email,
            user_username=registration.owner_username,
            role=LocationAdminRole.OWNER.value,
            granted_by=granted_by,
            granted_by_username=granted_by_username,
            is_active=True,
            granted_at=now,
            created_at=now,
            updated_at=now,
        ))

        registration.business_id = business.id
        db.flush()
        logger.info(
            f"Materialized business {business.id} with primary location {location.id} "
            f"from registration {registration.id}"
        )
        return business

    # --- Businesses ---

    @staticmethod
    def get_business(db: Session, business_id: str) -> Business:
        business_id = parse_uuid(business_id, "business_id")
        business = db.query(Business).filter(Business.id == business_id).first()
        if not business:
            raise NotFound("Business", business_id)
        return business

    @staticmethod
    def list_businesses_for_user(db: Session, owner_user_id: str) -> List[Business]:
        owner_user_id = parse_uuid(owner_user_id, "user_id")
        return (
            db.query(Business)
            .filter(Business.owner_user_id == owner_user_id)
            .order_by(Business.created_at.desc())
            .all()
        )

    @staticmethod
    def update_business(db: Session, business_id: str, data: Dict[str, Any]) -> Business:
        reject_nulls(data, REQUIRED_BUSINESS_FIELDS)
        for field in ("business_name", "category"):
            if field in data and (data[field] is None or not 3 <= len(str(data[field]).strip()) <= 120):
                raise ValidationError(f"{field} must be 3-120 characters", field=field)
        business_id = parse_uuid(business_id, "business_id")
        with unit_of_work(db):
            business = HierarchyService._lock_business(db, business_id)
            for key in BUSINESS_FIELDS:
                if key in data:
                    setattr(business, key, data[key])
            if data.get("metadata") is not None:
                business.metadata_json = data["metadata"]
        return business

    @staticmethod
    def deactivate_business(db: Session, business_id: str) -> Business:
        return HierarchyService.update_business(db, business_id, {"is_active": False})

    @staticmethod
    def delete_business(db: Session, business_id: str) -> None:
        """Hard delete with explicit cascade to locations, promotions, claims and grants."""
        business_id = parse_uuid(business_id, "business_id")
        with unit_of_work(db):
            business = HierarchyService._lock_business(db, business_id)
            location_ids = [
                row[0] for row in
                db.query(BusinessLocation.id).filter(BusinessLocation.business_id == business_id).all()
            ]
            HierarchyService._purge_locations(db, location_ids)
            db.query(RegistrationRequest).filter(
                RegistrationRequest.business_id == business_id
            ).update({"business_id": None}, synchronize_session=False)
            db.delete(business)
        logger.info(f"Deleted business {business_id} and {len(location_ids)} location(s)")

    # --- Locations ---

    @staticmethod
    def get_location(db: Session, location_id: str) -> BusinessLocation:
        location_id = parse_uuid(location_id, "location_id")
        location = db.query(BusinessLocation).filter(BusinessLocation.id == location_id).first()
        if not location:
            raise NotFound("Location", location_id)
        return location

    @staticmethod
    def list_locations(db: Session, business_id: str, include_inactive: bool = True) -> List[BusinessLocation]:
        """Locations of a business, primary first, then oldest first."""
        business = HierarchyService.get_business(db, business_id)
        query = db.query(BusinessLocation).filter(BusinessLocation.business_id == business.id)
        if not include_inactive:
            query = query.filter(BusinessLocation.is_active.is_(True))
        return query.order_by(
            BusinessLocation.is_primary.desc(),
            BusinessLocation.created_at.asc(),
        ).all()

    @staticmethod
    def get_primary_location(db: Session, business_id: str) -> Optional[BusinessLocation]:
        business = HierarchyService.get_business(db, business_id)
        return (
            db.query(BusinessLocation)
            .filter(
                BusinessLocation.business_id == business.id,
                BusinessLocation.is_primary.is_(True),
            )
            .first()
        )

    @staticmethod
    def add_location(
        db: Session,
        business_id: str,
        data: Dict[str, Any],
        make_primary: bool = False,
    ) -> BusinessLocation:
        """
        Add a location. It becomes primary when requested, or when the
        business has no active location yet.
        """
        _validate_location_fields(data)
        business_id = parse_uuid(business_id, "business_id")
        with unit_of_work(db):
            HierarchyService._lock_business(db, business_id)
            HierarchyService._ensure_unique_place_id(db, data.get("google_place_id"))

            active_count = (
                db.query(BusinessLocation)
                .filter(
                    BusinessLocation.business_id == business_id,
                    BusinessLocation.is_active.is_(True),
                )
                .count()
            )
            created_at = monotonic_after(HierarchyService._newest_created_at(db, business_id))
            location = BusinessLocation(
                id=new_id(),
                business_id=business_id,
                is_active=True,
                is_primary=False,
                metadata_json=data.get("metadata") or {},
                created_at=created_at,
                updated_at=created_at,
            )
            for key in LOCATION_FIELDS:
                if key in data:
                    setattr(location, key, data[key])
            db.add(location)
            db.flush()

            if make_primary or active_count == 0:
                HierarchyService._promote(db, location)
        logger.info(
            f"Added location {location.id} to business {business_id} (primary={location.is_primary})"
        )
        return location

    @staticmethod
    def set_primary(db: Session, business_id: str, location_id: str) -> BusinessLocation:
        business_id = parse_uuid(business_id, "business_id")
        location_id = parse_uuid(location_id, "location_id")
        with unit_of_work(db):
            HierarchyService._lock_business(db, business_id)
            location = (
                db.query(BusinessLocation)
                .filter(
                    BusinessLocation.id == location_id,
                    BusinessLocation.business_id == business_id,
                    BusinessLocation.is_active.is_(True),
                )
                .first()
            )
            if not location:
                raise NotFound("Active location of business", location_id)
            HierarchyService._promote(db, location)
        logger.info(f"Location {location_id} set as primary for business {business_id}")
        return location

    @staticmethod
    def update_location(db: Session, location_id: str, data: Dict[str, Any]) -> BusinessLocation:
        """
        Update descriptive fields. `is_active` and `is_primary` go through
        the primary invariant: deactivating the primary hands the flag to
        the oldest active sibling, `is_primary=True` promotes this location.
        """
        _validate_location_fields(data, partial=True)
        location = HierarchyService.get_location(db, location_id)
        business_id = location.business_id
        with unit_of_work(db):
            HierarchyService._lock_business(db, business_id)
            db.refresh(location)
            if "google_place_id" in data:
                HierarchyService._ensure_unique_place_id(db, data["google_place_id"], exclude_id=location.id)
            for key in LOCATION_FIELDS:
                if key in data:
                    setattr(location, key, data[key])
            if data.get("metadata") is not None:
                location.metadata_json = data["metadata"]
            location.updated_at = utcnow()

            if data.get("is_active") is False and location.is_active:
                location.is_active = False
                location.is_primary = False
                db.flush()
            elif data.get("is_active") is True and not location.is_active:
                location.is_active = True
                db.flush()

            if data.get("is_primary") is True:
                if not location.is_active:
                    raise ValidationError("Inactive locations cannot be primary", field="is_primary")
                HierarchyService._promote(db, location)
            HierarchyService._ensure_primary(db, business_id)
        return location

    @staticmethod
    def remove_location(db: Session, location_id: str) -> Optional[BusinessLocation]:
        """
        Delete a location with its promotions and admin grants. If it was the
        primary, the oldest remaining active location of the business takes
        over. Returns the business's primary location afterwards, if any.
        """
        location_id = parse_uuid(location_id, "location_id")
        location = HierarchyService.get_location(db, location_id)
        business_id = location.business_id
        with unit_of_work(db):
            HierarchyService._lock_business(db, business_id)
            still_there = db.query(BusinessLocation.id).filter(BusinessLocation.id == location_id).first()
            if not still_there:
                raise NotFound("Location", location_id)
            HierarchyService._purge_locations(db, [location_id])
            db.expunge(location)
            primary = HierarchyService._ensure_primary(db, business_id)
        logger.info(
            f"Removed location {location_id} from business {business_id}; "
            f"primary is now {primary.id if primary else None}"
        )
        return primary
