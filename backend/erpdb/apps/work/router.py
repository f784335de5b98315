# backend/erpdb/apps/work/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from erpdb.database import get_db
from erpdb.security import get_current_user, require_roles
from erpdb.apps.accounts import models as account_models

from . import models, schemas, services

router = APIRouter(prefix="/work-orders", tags=["work_orders"])

WORK_ORDER_PLANNING_ROLES = [
    account_models.UserRole.ADMIN,
    account_models.UserRole.WAREHOUSE_MANAGER,
]

WORK_ORDER_EXECUTION_ROLES = [
    account_models.UserRole.ADMIN,
    account_models.UserRole.TECHNICIAN,
]


@router.get("", response_model=List[schemas.WorkOrderRead])
def list_work_orders(
    status: Optional[models.WorkOrderStatusEnum] = None,
    assigned_technician: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_user),
):
    """
    List work orders, newest first, optionally filtered by status or technician.
    """
    return services.list_work_orders(
        db,
        status=status,
        assigned_technician=assigned_technician,
        skip=skip,
        limit=limit,
    )


@router.get("/{work_order_id}", response_model=schemas.WorkOrderRead)
def get_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.get_work_order(db, work_order_id)


@router.post(
    "",
    response_model=schemas.WorkOrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_work_order(
    payload: schemas.WorkOrderCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*WORK_ORDER_PLANNING_ROLES)),
):
    work_order = services.create_work_order(db, payload=payload, actor_user_id=current_user.clerk_id)
    db.commit()
    db.refresh(work_order)
    return work_order


@router.post("/{work_order_id}/start", response_model=schemas.WorkOrderRead)
def start_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*WORK_ORDER_EXECUTION_ROLES)),
):
    work_order = services.start_work_order(
        db,
        work_order_id=work_order_id,
        actor_user_id=current_user.clerk_id,
    )
    db.commit()
    db.refresh(work_order)
    return work_order


@router.post("/{work_order_id}/complete", response_model=schemas.WorkOrderRead)
def complete_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*WORK_ORDER_EXECUTION_ROLES)),
):
    """
    Complete an IN_PROGRESS work order, deducting every planned line from stock.

    Either every line is deducted and the order is COMPLETED, or nothing is.
    """
    work_order = services.complete_work_order(db, work_order_id=work_order_id)
    db.commit()
    db.refresh(work_order)
    return work_order
