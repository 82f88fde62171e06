"""
Location Admin Directory: per-location role grants.

One row per (location, user). Granting again updates that row, revoking
flips `is_active`; rows only disappear with their location.
"""
import logging
from typing import Optional, List

from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..core.transaction import unit_of_work
from ..core.validation import normalize_email
from ..core.uuid_type import new_id, parse_uuid
from ..errors import ConflictError, NotFound, ValidationError
from ..models.enums import LocationAdminRole, parse_enum
from ..models.location import BusinessLocation
from ..models.location_admin import LocationAdmin

logger = logging.getLogger(__name__)


class LocationAdminService:
    """Grant, revoke and query location admins."""

    @staticmethod
    def grant(
        db: Session,
        location_id: str,
        user_id: str,
        role,
        user_email: str,
        user_username: str,
        granted_by: Optional[str] = None,
        granted_by_username: Optional[str] = None,
    ) -> LocationAdmin:
        """Upsert the (location, user) grant and make it active with `role`."""
        location_id = parse_uuid(location_id, "location_id")
        user_id = parse_uuid(user_id, "user_id")
        role = parse_enum(LocationAdminRole, role, "role")
        if granted_by is not None:
            granted_by = parse_uuid(granted_by, "granted_by")
        user_email = normalize_email(user_email, "user_email")
        if not user_username or not user_username.strip():
            raise ValidationError("user_username is required", field="user_username")

        try:
            admin = LocationAdminService._upsert(
                db, location_id, user_id, role, user_email, user_username, granted_by, granted_by_username,
            )
        except ConflictError:
            # A concurrent grant inserted the row first; update it instead
            admin = LocationAdminService._upsert(
                db, location_id, user_id, role, user_email, user_username, granted_by, granted_by_username,
            )
        logger.info(f"Granted {role.value} on location {location_id} to user {user_id}")
        return admin

    @staticmethod
    def _upsert(db, location_id, user_id, role, user_email, user_username, granted_by, granted_by_username):
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

            admin = (
                db.query(LocationAdmin)
                .filter(LocationAdmin.location_id == location_id, LocationAdmin.user_id == user_id)
                .with_for_update()
                .first()
            )
            if admin is None:
                admin = LocationAdmin(
                    id=new_id(),
                    location_id=location_id,
                    user_id=user_id,
                    created_at=now,
                )
                db.add(admin)
            admin.user_email = user_email.strip()
            admin.user_username = user_username.strip()
            admin.role = role.value
            admin.granted_by = granted_by
            admin.granted_by_username = granted_by_username
            admin.is_active = True
            admin.granted_at = now
            admin.updated_at = now
        return admin

    @staticmethod
    def revoke(db: Session, location_id: str, user_id: str) -> LocationAdmin:
        location_id = parse_uuid(location_id, "location_id")
        user_id = parse_uuid(user_id, "user_id")
        with unit_of_work(db):
            admin = (
                db.query(LocationAdmin)
                .filter(LocationAdmin.location_id == location_id, LocationAdmin.user_id == user_id)
                .with_for_update()
                .first()
            )
            if not admin:
                raise NotFound("Admin grant for user", user_id)
            if admin.is_active:
                admin.is_active = False
                admin.updated_at = utcnow()
        logger.info(f"Revoked admin access on location {location_id} for user {user_id}")
        return admin

    @staticmethod
    def list_for_location(db: Session, location_id: str, include_revoked: bool = False) -> List[LocationAdmin]:
        location_id = parse_uuid(location_id, "location_id")
        if not db.query(BusinessLocation.id).filter(BusinessLocation.id == location_id).first():
            raise NotFound("Location", location_id)
        query = db.query(LocationAdmin).filter(LocationAdmin.location_id == location_id)
        if not include_revoked:
            query = query.filter(LocationAdmin.is_active.is_(True))
        return query.order_by(LocationAdmin.granted_at.asc()).all()

    @staticmethod
    def list_for_user(db: Session, user_id: str, include_revoked: bool = False) -> List[LocationAdmin]:
        user_id = parse_uuid(user_id, "user_id")
        query = db.query(LocationAdmin).filter(LocationAdmin.user_id == user_id)
        if not include_revoked:
            query = query.filter(LocationAdmin.is_active.is_(True))
        return query.order_by(LocationAdmin.granted_at.asc()).all()
