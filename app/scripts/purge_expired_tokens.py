import logging

from app.config import get_settings
from app.database import SessionLocal, atomic, get_engine
from app.logger import setup_logging
from app.services.verification import purge_expired_tokens

logger = logging.getLogger(__name__)


def main():
    settings = get_settings()
    setup_logging(settings.log_level, json=settings.log_json)

    db = SessionLocal(bind=get_engine())
    try:
        with atomic(db):
            removed = purge_expired_tokens(db)
        logger.info("Removed %s expired verification tokens", removed)
    finally:
        db.close()


if __name__ == "__main__":
    main()
