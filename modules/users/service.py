import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.errors import NotFoundException, ValidationAppException
from modules.users import models, schemas
from modules.users.types import UserRole

logger = logging.getLogger(__name__)


def _serialize_user(user: models.User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role,
    }


def create_user(db: Session, user_in: schemas.UserCreate) -> Dict[str, Any]:
    email = user_in.email.strip().lower() if user_in.email else None
    if email and db.query(models.User).filter(models.User.email == email).first():
        raise ValidationAppException("A user with this e-mail already exists")

    user = models.User(
        first_name=user_in.first_name.strip(),
        last_name=user_in.last_name.strip(),
        email=email,
        role=user_in.role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s with role %s", user.id, user.role)
    return _serialize_user(user)


def list_users(db: Session, role: Optional[UserRole] = None) -> List[Dict[str, Any]]:
    query = db.query(models.User)
    if role is not None:
        query = query.filter(models.User.role == role.value)
    return [_serialize_user(u) for u in query.order_by(models.User.id).all()]


def list_miners(db: Session) -> List[Dict[str, Any]]:
    return [
        {"id": u["id"], "first_name": u["first_name"], "last_name": u["last_name"]}
        for u in list_users(db, role=UserRole.MINER)
    ]


def get_user(db: Session, user_id: int) -> Dict[str, Any]:
    return _serialize_user(_get_user_model(db, user_id))


def update_user_role(db: Session, user_id: int, role: UserRole) -> Dict[str, Any]:
    user = _get_user_model(db, user_id)
    user.role = role.value
    db.commit()
    db.refresh(user)
    logger.info("User %s role changed to %s", user.id, user.role)
    return _serialize_user(user)


def _get_user_model(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundException("User not found")
    return user
