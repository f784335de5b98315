# backend/erpdb/apps/work/schemas.py
#
# Schemas for the work module:
# - WorkOrder*     : work order header.
# - WorkOrderItem* : planned consumption lines.

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import WorkOrderStatusEnum


class WorkOrderItemCreate(BaseModel):
    item_id: int
    quantity_used: int = Field(..., gt=0)


class WorkOrderItemRead(WorkOrderItemCreate):
    id: int
    work_order_id: int

    class Config:
        from_attributes = True


class WorkOrderCreate(BaseModel):
    description: str = Field(..., min_length=1)
    assigned_technician: str = Field(..., min_length=1)
    items: List[WorkOrderItemCreate] = Field(default_factory=list)


class WorkOrderRead(BaseModel):
    id: int
    work_order_number: str
    description: str
    assigned_technician: str
    status: WorkOrderStatusEnum
    created_by: str
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    items: List[WorkOrderItemRead] = Field(default_factory=list)

    class Config:
        from_attributes = True
