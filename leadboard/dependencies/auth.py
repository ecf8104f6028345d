"""Bearer token dependencies resolving the signed-in dashboard user."""

import logging

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from leadboard.core.security import decode_access_token
from leadboard.db.session import get_db
from leadboard.models.user import User

logger = logging.getLogger("leadboard.auth")


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme != "Bearer" or not token:
        raise _unauthorized()
    return token


def get_current_user(db: Session = Depends(get_db), token: str = Depends(get_bearer_token)) -> User:
    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        logger.debug("auth: rejected token: %s", exc)
        raise _unauthorized()

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise _unauthorized()
    return user
