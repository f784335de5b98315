from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class InventoryHealthStatusEnum(str, enum.Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    HEALTHY = "HEALTHY"


class InventoryHealthItem(BaseModel):
    id: int
    sku: str
    name: str
    current_stock: int
    minimum_stock: int
    status: InventoryHealthStatusEnum


class InventoryHealthSummary(BaseModel):
    total_items: int = 0
    critical_count: int = 0
    warning_count: int = 0
    healthy_count: int = 0


class InventoryHealthReport(BaseModel):
    critical: List[InventoryHealthItem] = Field(default_factory=list)
    warning: List[InventoryHealthItem] = Field(default_factory=list)
    healthy: List[InventoryHealthItem] = Field(default_factory=list)
    summary: InventoryHealthSummary = Field(default_factory=InventoryHealthSummary)


class PurchaseTrendRequest(BaseModel):
    start_date: date
    end_date: date


class PurchaseTrendPoint(BaseModel):
    period: str
    total_amount: Decimal
    order_count: int


class PurchaseTrendSummary(BaseModel):
    total_expenditure: Decimal = Decimal("0.00")
    total_orders: int = 0
    average_order_value: Decimal = Decimal("0.00")


class PurchaseTrendsReport(BaseModel):
    trends: List[PurchaseTrendPoint] = Field(default_factory=list)
    summary: PurchaseTrendSummary = Field(default_factory=PurchaseTrendSummary)
