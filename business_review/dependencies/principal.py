"""
Forwarded principal dependencies

Authentication happens upstream. The gateway forwards the caller as
X-Actor-Id / X-Actor-Name / X-Actor-Role headers; this module only parses
them. No authorization decisions are made here.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from ..core.uuid_type import parse_uuid
from ..errors import ValidationError


@dataclass(frozen=True)
class Principal:
    actor_id: Optional[str] = None
    actor_name: Optional[str] = None
    role: Optional[str] = None


def get_principal(request: Request) -> Principal:
    """
    Read the forwarded principal. Missing headers yield empty fields;
    a malformed X-Actor-Id is rejected.
    """
    raw_id = request.headers.get("X-Actor-Id")
    actor_id = parse_uuid(raw_id, "X-Actor-Id") if raw_id else None
    principal = Principal(
        actor_id=actor_id,
        actor_name=(request.headers.get("X-Actor-Name") or "").strip() or None,
        role=(request.headers.get("X-Actor-Role") or "").strip() or None,
    )
    # Picked up by LoggingMiddleware
    request.state.user_id = actor_id
    request.state.actor_role = principal.role
    return principal


def require_actor(principal: Principal = Depends(get_principal)) -> Principal:
    """Mutating endpoints need an identified caller."""
    if not principal.actor_id:
        raise ValidationError("X-Actor-Id header is required", field="X-Actor-Id")
    return principal
