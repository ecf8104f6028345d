"""Security utilities for Leadboard: password hashing and JWT token operations.

Handles JWT creation with subject, expiration and token id claims, validates
tokens with consistent error handling, and keeps the set of tokens revoked by
sign-out for the lifetime of the process.
"""

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from leadboard.core.settings import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_revoked_token_ids: set[str] = set()
_revoked_lock = threading.Lock()


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    user_identifier = (
        user_id.get("sub") if isinstance(user_id, dict) and "sub" in user_id else user_id
    )
    expire_delta = timedelta(minutes=expires_minutes if expires_minutes is not None else getattr(settings, "ACCESS_TOKEN_EXPIRE_MINUTES", 30))
    expire = datetime.now(timezone.utc) + expire_delta
    # jti identifies the token for sign-out
    payload = {"sub": str(user_identifier), "exp": expire, "jti": uuid.uuid4().hex}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")


def decode_access_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Expired token") from exc
    except jwt.InvalidTokenError as exc:
        raise ValueError("Invalid token") from exc
    with _revoked_lock:
        if payload.get("jti") in _revoked_token_ids:
            raise ValueError("Revoked token")
    return payload


def revoke_access_token(token: str) -> None:
    """Revoke a token so later requests carrying it are rejected."""
    payload = decode_access_token(token)
    token_id = payload.get("jti")
    if token_id:
        with _revoked_lock:
            _revoked_token_ids.add(token_id)
