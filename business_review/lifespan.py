"""
Application lifespan management for startup and shutdown events
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from .config import settings
from .db import get_engine
from .jobs.promotion_sweep import sweep_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    """Manage application lifespan events"""
    logger.info(f"Starting {settings.service_name} (env={settings.env})")

    # Fails fast on a refused configuration (SQLite in prod)
    get_engine()

    sweep_task = None
    if settings.promotion_sweep_interval_s > 0:
        sweep_task = asyncio.create_task(sweep_loop(settings.promotion_sweep_interval_s))

    yield

    logger.info(f"Shutting down {settings.service_name}")
    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
