from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from erpdb.database import get_db
from erpdb.security import get_current_user, require_roles
from erpdb.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(prefix="", tags=["purchasing"])

PURCHASING_ROLES = [
    account_models.UserRole.ADMIN,
    account_models.UserRole.PURCHASING_STAFF,
]


@router.post(
    "/suppliers",
    response_model=schemas.SupplierRead,
    status_code=status.HTTP_201_CREATED,
)
def create_supplier(
    payload: schemas.SupplierCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    supplier = services.create_supplier(db, payload)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.get("/suppliers", response_model=List[schemas.SupplierRead])
def list_suppliers(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.list_suppliers(db)


@router.post(
    "/purchase-orders",
    response_model=schemas.PurchaseOrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_purchase_order(
    payload: schemas.PurchaseOrderCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    po = services.create_purchase_order(db, payload=payload, actor_user_id=current_user.clerk_id)
    db.commit()
    db.refresh(po)
    return po


@router.get("/purchase-orders", response_model=List[schemas.PurchaseOrderRead])
def list_purchase_orders(
    status: Optional[models.PurchaseOrderStatusEnum] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.list_purchase_orders(db, status=status, skip=skip, limit=limit)


@router.get("/purchase-orders/{purchase_order_id}", response_model=schemas.PurchaseOrderRead)
def get_purchase_order(
    purchase_order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.get_purchase_order(db, purchase_order_id)


@router.post("/purchase-orders/{purchase_order_id}/submit", response_model=schemas.PurchaseOrderRead)
def submit_purchase_order(
    purchase_order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    po = services.submit_purchase_order(
        db,
        purchase_order_id=purchase_order_id,
        actor_user_id=current_user.clerk_id,
    )
    db.commit()
    db.refresh(po)
    return po


@router.post("/purchase-orders/{purchase_order_id}/approve", response_model=schemas.PurchaseOrderRead)
def approve_purchase_order(
    purchase_order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    po = services.approve_purchase_order(
        db,
        purchase_order_id=purchase_order_id,
        actor_user_id=current_user.clerk_id,
    )
    db.commit()
    db.refresh(po)
    return po


@router.post("/purchase-orders/{purchase_order_id}/reject", response_model=schemas.PurchaseOrderRead)
def reject_purchase_order(
    purchase_order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*PURCHASING_ROLES)),
):
    po = services.reject_purchase_order(
        db,
        purchase_order_id=purchase_order_id,
        actor_user_id=current_user.clerk_id,
    )
    db.commit()
    db.refresh(po)
    return po
