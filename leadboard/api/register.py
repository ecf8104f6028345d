"""Dashboard account registration."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from leadboard.core.security import get_password_hash
from leadboard.db.base import Base
from leadboard.db.session import engine, get_db
from leadboard.models.user import User
from leadboard.schemas.user import UserCreate, UserRead

logger = logging.getLogger("leadboard.auth")

Base.metadata.create_all(bind=engine)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)):
    email = user_in.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    user = User(email=email, full_name=user_in.full_name, hashed_password=get_password_hash(user_in.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("auth: registered user=%s", user.id)
    return user
