"""Login, current user and sign-out endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from leadboard.core.security import create_access_token, revoke_access_token, verify_password
from leadboard.core.time import utc_now
from leadboard.db.session import get_db
from leadboard.dependencies.auth import get_bearer_token, get_current_user
from leadboard.models.user import User
from leadboard.schemas.user import AccessToken, LoginRequest, SignOutResponse, UserRead

logger = logging.getLogger("leadboard.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AccessToken)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user or not user.hashed_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is inactive")
    if not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")

    user.last_login = utc_now()
    db.commit()
    logger.info("auth: login user=%s", user.id)
    token = create_access_token(user_id=user.id)
    return AccessToken(access_token=token)


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/logout", response_model=SignOutResponse)
def logout(token: str = Depends(get_bearer_token), current_user: User = Depends(get_current_user)):
    revoke_access_token(token)
    logger.info("auth: logout user=%s", current_user.id)
    return SignOutResponse()
