"""
Field validators shared by the services.
"""
from typing import Any, Dict, Iterable

from email_validator import EmailNotValidError, validate_email

from ..errors import ValidationError


def normalize_email(value: Any, field: str) -> str:
    """Validate an email address and return its normalized form."""
    raw = str(value).strip() if value is not None else ""
    if not raw:
        raise ValidationError(f"{field} is required", field=field)
    try:
        return validate_email(raw, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationError(f"{field} must be a valid email address: {e}", field=field)


def reject_nulls(data: Dict[str, Any], fields: Iterable[str]) -> None:
    """Explicit nulls are not allowed for columns that cannot be empty."""
    for field in fields:
        if field in data and data[field] is None:
            raise ValidationError(f"{field} cannot be null", field=field)
