from fastapi import APIRouter

from ..config import settings
from ..core.clock import utcnow

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Liveness probe. Does not touch the database."""
    return {
        "status": "ok",
        "service": settings.service_name,
        "timestamp": utcnow().isoformat(),
    }
