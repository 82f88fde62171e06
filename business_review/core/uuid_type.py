"""
Portable UUID type for SQLAlchemy.

Values are stored as CHAR(36) strings on every dialect and surfaced to
Python as strings.
"""
import uuid
from sqlalchemy import TypeDecorator, String

from ..errors import ValidationError


class UUIDType(TypeDecorator):
    """
    Usage:
        id = Column(UUIDType(), primary_key=True)
    """
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return str(value)
        try:
            return str(uuid.UUID(str(value)))
        except (ValueError, AttributeError):
            raise ValueError(f"Cannot convert {value} to UUID")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return str(value)


def new_id() -> str:
    return str(uuid.uuid4())


def parse_uuid(value, field: str) -> str:
    """Normalize a caller-supplied identifier, raising ValidationError when malformed."""
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f"{field} must be a valid UUID", field=field)
