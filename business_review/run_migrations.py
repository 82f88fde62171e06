"""
Run Alembic migrations programmatically.

Safe to call multiple times - Alembic is a no-op when already at head.
"""
from pathlib import Path
import logging
import sys

from alembic import command
from alembic.config import Config

from .config import settings

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Run Alembic migrations up to head using the configured database_url."""
    # alembic.ini sits at the repository root, one level above this package
    project_root = Path(__file__).resolve().parents[1]
    alembic_ini = project_root / "alembic.ini"

    if not alembic_ini.exists():
        logger.error(f"Alembic config not found at {alembic_ini}")
        raise FileNotFoundError(f"Alembic config not found at {alembic_ini}")

    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(project_root / "alembic"))
    database_url = settings.database_url
    cfg.set_main_option("sqlalchemy.url", database_url)

    logger.info(
        f"Running Alembic migrations to head on "
        f"{database_url.split('@')[-1] if '@' in database_url else database_url}"
    )
    try:
        command.upgrade(cfg, "head")
        logger.info("Alembic migrations complete.")
    except Exception as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s"
    )
    try:
        run_migrations()
        sys.exit(0)
    except Exception as e:
        logger.error(f"Failed to run migrations: {e}", exc_info=True)
        sys.exit(1)
