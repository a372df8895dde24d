"""
Local user rows mirroring identity-provider accounts.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.db.models.user import User
from app.db.upsert import insert_ignore

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "New User"


def ensure_user(db: Session, user_id: str, email: Optional[str] = None, full_name: Optional[str] = None) -> User:
    """
    Make sure a users row exists for user_id, creating a placeholder if needed.

    Does not commit; the row becomes durable with the caller's transaction.
    """
    insert_ignore(
        db,
        User.__table__,
        {"id": user_id, "email": email, "full_name": full_name or PLACEHOLDER_NAME},
        conflict_columns=["id"],
    )
    user = db.get(User, user_id)
    logger.debug(f"User ensured: {user_id}")
    return user
