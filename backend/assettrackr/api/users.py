"""User endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assettrackr.database import get_db
from assettrackr.schemas.user import UserResponse
from assettrackr.services import user_service

router = APIRouter()


@router.get("", response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db)):
    return user_service.list_users(db)


@router.get("/me", response_model=UserResponse)
def current_user(db: Session = Depends(get_db)):
    return user_service.get_current_user(db)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return user_service.get_user(db, user_id)
