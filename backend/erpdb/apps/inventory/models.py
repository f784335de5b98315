from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from erpdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StockAdjustmentTypeEnum(str, enum.Enum):
    ADDITION = "ADDITION"
    REMOVAL = "REMOVAL"
    CORRECTION = "CORRECTION"


class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_items_current_stock_non_negative"),
        CheckConstraint("minimum_stock >= 0", name="ck_items_minimum_stock_non_negative"),
        CheckConstraint("unit_price > 0", name="ck_items_unit_price_positive"),
        Index("ix_items_stock_levels", "current_stock", "minimum_stock"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # Written only by inventory.services._write_stock once the item exists.
    current_stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=0)
    unit_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    adjustments = relationship(
        "StockAdjustment",
        back_populates="item",
        lazy="select",
        order_by="StockAdjustment.id",
    )


class StockAdjustment(Base):
    """
    Append-only audit row explaining one stock movement.

    Rows are never updated; ``new_stock`` always equals
    ``previous_stock + quantity_change``.
    """

    __tablename__ = "stock_adjustments"
    __table_args__ = (
        CheckConstraint("new_stock >= 0", name="ck_stock_adjustments_new_stock_non_negative"),
        CheckConstraint(
            "new_stock = previous_stock + quantity_change",
            name="ck_stock_adjustments_balanced",
        ),
        Index("ix_stock_adjustments_item_created", "item_id", "created_at"),
        Index("ix_stock_adjustments_adjusted_by", "adjusted_by"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    adjustment_type = Column(
        SAEnum(StockAdjustmentTypeEnum, name="stock_adjustment_type_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    quantity_change = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    adjusted_by = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    item = relationship("Item", back_populates="adjustments", lazy="joined")
