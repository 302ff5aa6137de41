from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from modules.users import schemas, service
from modules.users.types import UserRole

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=schemas.UserRead)
def create_user_endpoint(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    return service.create_user(db, user_in)


@router.get("", response_model=list[schemas.UserRead])
def list_users_endpoint(role: Optional[UserRole] = None, db: Session = Depends(get_db)):
    return service.list_users(db, role=role)


@router.get("/{user_id}", response_model=schemas.UserRead)
def get_user_endpoint(user_id: int, db: Session = Depends(get_db)):
    return service.get_user(db, user_id)


@router.patch("/{user_id}/role", response_model=schemas.UserRead)
def update_user_role_endpoint(user_id: int, role_in: schemas.UserRoleUpdate, db: Session = Depends(get_db)):
    return service.update_user_role(db, user_id, role_in.role)
