"""
CLI entrypoint for one-time seeding of permissions, system roles and the super admin.
Run before the first deploy (or let the app do it on startup), e.g.:

  python -m app.bootstrap
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.bootstrap import run_bootstrap

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Seed defaults; idempotent."""
    settings = get_settings()
    db = SessionLocal()
    try:
        result = run_bootstrap(db, settings)
        logger.info("Bootstrap completed: admin_created=%s", result.admin_created)
        return 0
    except Exception as e:
        db.rollback()
        logger.exception("Bootstrap failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
