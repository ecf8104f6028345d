import logging
import os

from sqlalchemy.orm import Session

from leadboard.core.security import get_password_hash
from leadboard.models.user import User

logger = logging.getLogger("leadboard.dev_seed")

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_USERS = [
    "owner@test.com",
]


def ensure_default_dev_owner(db: Session) -> None:
    """
    Create a default dashboard user for local development if it does not exist.
    Skips execution when running under pytest or outside development.
    """
    if os.getenv("PYTEST_CURRENT_TEST") or os.getenv("LEADBOARD_ENV", "development") != "development":
        return

    created = False
    for email in DEFAULT_DEV_USERS:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            continue

        db.add(User(email=email, hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD), is_active=True))
        created = True

    if created:
        db.commit()
        logger.info("dev_seed: created default users %s", ", ".join(DEFAULT_DEV_USERS))
