"""
Service error taxonomy.

Every service raises one of these; `exception_handlers` renders them as
JSON responses. Nothing here knows about HTTP beyond the status code hint.
"""
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base exception for business review service errors"""
    code = "service_error"
    status_code = 500

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "error": self.code, "field": self.field}


class NotFound(ServiceError):
    """Referenced record does not exist or is not visible to the caller"""
    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(ServiceError):
    """Missing or malformed input"""
    code = "validation_error"
    status_code = 400


class InvalidTransition(ServiceError):
    """Requested status change is not reachable from the current state"""
    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, attempted: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot {attempted} from status '{current}'",
            field="status",
        )
        self.current = current
        self.attempted = attempted

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(current=self.current, attempted=self.attempted)
        return data


class ConflictError(ServiceError):
    """Uniqueness violation or lost concurrent update"""
    code = "conflict"
    status_code = 409


class ClaimRejected(ServiceError):
    """Promotion claim denied"""
    code = "claim_rejected"
    status_code = 409

    NOT_ACTIVE = "not_active"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    PER_USER_LIMIT = "per_user_limit"

    def __init__(self, reason: str, message: Optional[str] = None):
        super().__init__(message or f"Claim rejected: {reason}")
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


class StorageError(ServiceError):
    """Underlying persistence failure. Never retried by the service."""
    code = "storage_error"
    status_code = 500
