"""
Registration Store: owns submitted registration requests.

Registrations are created here and only ever mutated by the review
workflow. They are never deleted by the service.
"""
import logging
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..core.transaction import unit_of_work
from ..core.validation import normalize_email
from ..core.uuid_type import new_id, parse_uuid
from ..errors import NotFound, ValidationError
from ..models.enums import RegistrationStatus
from ..models.registration import RegistrationRequest, ReviewEvent

logger = logging.getLogger(__name__)


def _require_length(data: Dict[str, Any], field: str, min_len: int, max_len: Optional[int] = None,
                    required: bool = True) -> Optional[str]:
    value = data.get(field)
    if value is None:
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    value = str(value).strip()
    if len(value) < min_len or (max_len is not None and len(value) > max_len):
        bounds = f"{min_len}-{max_len}" if max_len is not None else f"at least {min_len}"
        raise ValidationError(f"{field} must be {bounds} characters", field=field)
    return value


class RegistrationService:
    """Create and read registration requests."""

    @staticmethod
    def submit(db: Session, data: Dict[str, Any]) -> RegistrationRequest:
        """Validate submitted facts and store a new registration in `pending`."""
        user_id = parse_uuid(data.get("user_id"), "user_id")
        name = _require_length(data, "name", 3, 120)
        category = _require_length(data, "category", 3, 120)
        address = _require_length(data, "address", 5)
        description = _require_length(data, "description", 10, 2000, required=False)
        tax_id = _require_length(data, "tax_id", 4, 64, required=False)
        owner_username = _require_length(data, "owner_username", 3, 60)

        owner_email = normalize_email(data.get("owner_email"), "owner_email")

        document_urls = [str(u).strip() for u in (data.get("document_urls") or []) if str(u).strip()]
        if not document_urls:
            raise ValidationError("At least one document is required", field="document_urls")

        now = utcnow()
        registration = RegistrationRequest(
            id=new_id(),
            user_id=user_id,
            business_id=None,
            name=name,
            category=category,
            address=address,
            description=description,
            phone=data.get("phone"),
            website=data.get("website"),
            tax_id=tax_id,
            document_urls=document_urls,
            is_multi_user_team=bool(data.get("is_multi_user_team", False)),
            status=RegistrationStatus.PENDING.value,
            owner_email=owner_email,
            owner_username=owner_username,
            submitted_at=now,
            updated_at=now,
        )
        with unit_of_work(db):
            db.add(registration)
        logger.info(f"Registration {registration.id} submitted by user {user_id}: {name}")
        return registration

    @staticmethod
    def get(db: Session, registration_id: str) -> RegistrationRequest:
        registration_id = parse_uuid(registration_id, "registration_id")
        registration = (
            db.query(RegistrationRequest)
            .filter(RegistrationRequest.id == registration_id)
            .first()
        )
        if not registration:
            raise NotFound("Registration", registration_id)
        return registration

    @staticmethod
    def get_with_history(db: Session, registration_id: str) -> Dict[str, Any]:
        """Registration plus its review events, oldest first."""
        registration = RegistrationService.get(db, registration_id)
        events = (
            db.query(ReviewEvent)
            .filter(ReviewEvent.registration_id == registration.id)
            .order_by(ReviewEvent.created_at.asc())
            .all()
        )
        return {"registration": registration, "events": events}

    @staticmethod
    def get_latest_for_user(db: Session, user_id: str) -> RegistrationRequest:
        user_id = parse_uuid(user_id, "user_id")
        registration = (
            db.query(RegistrationRequest)
            .filter(RegistrationRequest.user_id == user_id)
            .order_by(RegistrationRequest.submitted_at.desc())
            .first()
        )
        if not registration:
            raise NotFound("Registration for user", user_id)
        return registration

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> List[RegistrationRequest]:
        user_id = parse_uuid(user_id, "user_id")
        return (
            db.query(RegistrationRequest)
            .filter(RegistrationRequest.user_id == user_id)
            .order_by(RegistrationRequest.submitted_at.desc())
            .all()
        )
