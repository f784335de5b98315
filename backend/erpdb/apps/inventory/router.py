from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from erpdb.database import get_db
from erpdb.security import get_current_user, require_roles
from erpdb.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(prefix="/inventory", tags=["inventory"])

INVENTORY_WRITE_ROLES = [
    account_models.UserRole.ADMIN,
    account_models.UserRole.WAREHOUSE_MANAGER,
]


@router.post(
    "/items",
    response_model=schemas.ItemRead,
    status_code=status.HTTP_201_CREATED,
)
def create_item(
    payload: schemas.ItemCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    item = services.create_item(db, payload)
    db.commit()
    db.refresh(item)
    return item


@router.get("/items", response_model=List[schemas.ItemRead])
def list_items(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.list_items(db, skip=skip, limit=limit)


@router.get("/items/{item_id}", response_model=schemas.ItemRead)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.read_item(db, item_id)


@router.patch("/items/{item_id}", response_model=schemas.ItemRead)
def update_item(
    item_id: int,
    payload: schemas.ItemUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    item = services.update_item(db, item_id=item_id, payload=payload)
    db.commit()
    db.refresh(item)
    return item


@router.post(
    "/adjustments",
    response_model=schemas.StockAdjustmentRead,
    status_code=status.HTTP_201_CREATED,
)
def adjust_stock(
    payload: schemas.StockAdjustmentCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    adjustment = services.adjust_stock(db, payload=payload, actor_user_id=current_user.clerk_id)
    db.commit()
    db.refresh(adjustment)
    return adjustment


@router.get("/adjustments", response_model=List[schemas.StockAdjustmentRead])
def list_stock_adjustments(
    item_id: Optional[int] = None,
    adjusted_by: Optional[str] = None,
    adjustment_type: Optional[models.StockAdjustmentTypeEnum] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.list_stock_adjustments(
        db,
        item_id=item_id,
        adjusted_by=adjusted_by,
        adjustment_type=adjustment_type,
        start=start,
        end=end,
        skip=skip,
        limit=limit,
    )
