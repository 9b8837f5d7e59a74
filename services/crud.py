# services/crud.py
from typing import Optional

from sqlalchemy.orm import Session

from models.user import User
from services.auth import get_password_hash, verify_password
from services.errors import DuplicateEmailError


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, email: str, password: str, name: Optional[str] = None) -> User:
    if get_user_by_email(db, email):
        raise DuplicateEmailError()

    user = User(email=email, hashed_password=get_password_hash(password), name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user
