"""
Promotion Sweep Job

Persists the effective status of scheduled/active promotions: scheduled
ones whose window opened become active, any whose window closed become
expired. Readers never depend on it, they compute the same status lazily.

Run command:
    python -m business_review.jobs.promotion_sweep
"""
import asyncio
import logging
import sys
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..db import SessionLocal
from ..services.promotion_service import PromotionService

logger = logging.getLogger(__name__)


def run_sweep(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """Run one sweep pass on `db`."""
    result = PromotionService.sweep(db, now)
    logger.info(
        f"Promotion sweep finished: {result['activated']} activated, {result['expired']} expired"
    )
    return result


async def sweep_loop(interval_s: float) -> None:
    """Run the sweep every `interval_s` seconds until cancelled."""
    logger.info(f"Promotion sweep loop started (interval={interval_s}s)")
    while True:
        try:
            await asyncio.to_thread(_sweep_once)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Next tick retries; readers stay correct without the sweep
            logger.error(f"Promotion sweep failed: {e}", exc_info=True)
        await asyncio.sleep(interval_s)


def _sweep_once() -> Dict[str, int]:
    db = SessionLocal()
    try:
        return run_sweep(db)
    finally:
        db.close()


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        _sweep_once()
    except Exception as e:
        logger.error(f"Promotion sweep failed: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
