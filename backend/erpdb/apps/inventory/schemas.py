from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from . import models


class ItemBase(BaseModel):
    sku: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    minimum_stock: int = Field(0, ge=0)
    unit_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class ItemCreate(ItemBase):
    current_stock: int = Field(0, ge=0)


class ItemUpdate(BaseModel):
    """Catalog fields only. Stock moves through adjustments."""

    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    minimum_stock: Optional[int] = Field(None, ge=0)
    unit_price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)


class ItemRead(ItemBase):
    id: int
    current_stock: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StockAdjustmentCreate(BaseModel):
    item_id: int
    adjustment_type: models.StockAdjustmentTypeEnum
    quantity_change: int
    reason: str


class StockAdjustmentRead(BaseModel):
    id: int
    item_id: int
    adjustment_type: models.StockAdjustmentTypeEnum
    quantity_change: int
    reason: str
    previous_stock: int
    new_stock: int
    adjusted_by: str
    created_at: datetime

    class Config:
        from_attributes = True
