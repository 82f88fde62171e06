"""
Transaction boundary used by every mutating service operation.

`unit_of_work` commits when the block finishes and rolls back on any
exception, cancellation included, so a failed operation never leaves a
partial mutation behind. Store failures are surfaced as StorageError
(IntegrityError as ConflictError) and never retried here.
"""
import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


def _apply_deadline(db: Session, timeout_s: Optional[float]) -> None:
    if not timeout_s:
        return
    bind = db.get_bind()
    if bind.dialect.name == "postgresql":
        db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_s * 1000)}"))
    # SQLite: the busy timeout on the connection bounds lock waits


@contextmanager
def unit_of_work(db: Session, timeout_s: Optional[float] = None) -> Iterator[Session]:
    """
    Usage:
        with unit_of_work(db):
            db.add(row)
    """
    if timeout_s is None:
        timeout_s = settings.request_timeout_s
    started = time.monotonic()
    try:
        _apply_deadline(db, timeout_s)
        yield db
        if timeout_s and time.monotonic() - started > timeout_s:
            raise StorageError(f"Deadline of {timeout_s}s exceeded, transaction rolled back")
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity violation, rolled back: {e.orig}")
        raise ConflictError(f"Uniqueness or reference violation: {e.orig}")
    except OperationalError as e:
        db.rollback()
        logger.error(f"Storage operation failed: {e}")
        raise StorageError(f"Storage operation failed: {e.orig}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure: {e}")
        raise StorageError(str(e))
    except BaseException:
        db.rollback()
        raise

