from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from erpdb.database import get_db
from erpdb.security import get_current_user, require_roles

from . import models, schemas, services

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=schemas.UserRead,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles(models.UserRole.ADMIN)),
):
    user = services.create_user(db, payload)
    db.commit()
    db.refresh(user)
    return user


@router.get("", response_model=List[schemas.UserRead])
def list_users(
    role: Optional[models.UserRole] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return services.list_users(db, role=role)
