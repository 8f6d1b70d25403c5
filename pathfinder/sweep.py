"""
CLI entrypoint for a one-off sweep of expired tokens. Login and refresh
already sweep inline; this is for manual or cron use:

  python -m pathfinder.sweep
"""

import logging
import sys

from pathfinder.core.database import SessionLocal
from pathfinder.core.security import get_token_codec
from pathfinder.services.token_store import sweep_expired

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete every stored token whose expiry has passed."""
    db = SessionLocal()
    try:
        deleted = sweep_expired(db, get_token_codec())
        logger.info("Token sweep completed: tokens_deleted=%s", deleted)
        return 0
    except Exception as e:
        db.rollback()
        logger.exception("Token sweep failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
