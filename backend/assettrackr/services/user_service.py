"""User lookups. Authentication is a stub: the current user is the first one."""
from __future__ import annotations

from sqlalchemy.orm import Session

from assettrackr.exceptions import NotFoundError
from assettrackr.models import User


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id.asc()).all()


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_current_user(db: Session) -> User:
    user = db.query(User).order_by(User.id.asc()).first()
    if not user:
        raise NotFoundError("No users configured")
    return user
