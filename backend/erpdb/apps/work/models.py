# backend/erpdb/apps/work/models.py

"""
Work module ORM models.

- WorkOrder: a job assigned to one technician, with a small lifecycle
  (OPEN -> IN_PROGRESS -> COMPLETED).
- WorkOrderItem: the consumption plan of a work order, fixed at creation.
  Completing the work order deducts each line from stock.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkOrderStatusEnum(str, Enum):
    """Lifecycle state of the work order."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class WorkOrder(Base):
    __tablename__ = "work_orders"
    __table_args__ = (
        Index("ix_work_orders_status_created", "status", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    work_order_number = Column(String(64), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)

    # clerk_id of a TECHNICIAN user; checked when the order is created.
    assigned_technician = Column(String(128), nullable=False, index=True)

    status = Column(
        SQLEnum(WorkOrderStatusEnum, name="work_order_status_enum", native_enum=False),
        nullable=False,
        default=WorkOrderStatusEnum.OPEN,
        index=True,
    )

    created_by = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "WorkOrderItem",
        back_populates="work_order",
        lazy="selectin",
        order_by="WorkOrderItem.id",
        cascade="all, delete-orphan",
    )


class WorkOrderItem(Base):
    __tablename__ = "work_order_items"
    __table_args__ = (
        CheckConstraint("quantity_used > 0", name="ck_work_order_items_quantity_positive"),
        Index("ix_work_order_items_work_order", "work_order_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity_used = Column(Integer, nullable=False)

    work_order = relationship("WorkOrder", back_populates="items")
