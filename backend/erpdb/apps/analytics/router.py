from __future__ import annotations

from datetime import date
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from erpdb.database import get_read_db
from erpdb.security import get_current_user
from erpdb.apps.accounts import models as account_models
from erpdb.apps.inventory import schemas as inventory_schemas

from . import schemas, services

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/low-stock", response_model=List[inventory_schemas.ItemRead])
def low_stock_alerts(
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.low_stock_alerts(db)


@router.get("/inventory-health", response_model=schemas.InventoryHealthReport)
def inventory_health(
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.inventory_health(db)


@router.get("/purchase-trends", response_model=schemas.PurchaseTrendsReport)
def purchase_trends(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_user),
):
    return services.purchase_trends(db, start_date=start_date, end_date=end_date)
