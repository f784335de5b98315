from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from . import models


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    bank_account: Optional[str] = None
    tax_id: Optional[str] = None


class SupplierRead(BaseModel):
    id: int
    name: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    bank_account: Optional[str] = None
    tax_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderLineCreate(BaseModel):
    item_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class PurchaseOrderCreate(BaseModel):
    supplier_id: int
    items: List[PurchaseOrderLineCreate] = Field(default_factory=list)
    notes: Optional[str] = None


class PurchaseOrderItemRead(BaseModel):
    id: int
    po_id: int
    item_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class PurchaseOrderRead(BaseModel):
    id: int
    po_number: str
    supplier_id: int
    status: models.PurchaseOrderStatusEnum
    total_amount: Decimal
    notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    items: List[PurchaseOrderItemRead] = Field(default_factory=list)

    class Config:
        from_attributes = True
