"""
Item ledger and stock adjustment recorder.

``Item.current_stock`` is the authoritative quantity on hand. After an item
is created, the only code that writes it is ``_write_stock`` below, and the
only caller of ``_write_stock`` is ``adjust_stock``, which records a
``StockAdjustment`` for every movement in the same transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from erpdb.errors import InvalidOperationError, NotFoundError, ValidationError

from . import models, schemas

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_sku(sku: str) -> str:
    return (sku or "").strip().upper()


def _get_item_by_sku(db: Session, sku: str) -> Optional[models.Item]:
    return db.query(models.Item).filter(models.Item.sku == _normalize_sku(sku)).first()


# ---------------------------------------------------------------------------
# Item ledger
# ---------------------------------------------------------------------------


def read_item(db: Session, item_id: int) -> models.Item:
    item = db.query(models.Item).filter(models.Item.id == item_id).first()
    if not item:
        raise NotFoundError(f"Item with id {item_id} not found")
    return item


def lock_item(db: Session, item_id: int) -> models.Item:
    """
    Load an item with a row lock held until the transaction ends.

    Concurrent writers on the same item queue behind the lock, so each one
    sees the previous writer's committed stock as its starting point.
    """
    item = (
        db.query(models.Item)
        .filter(models.Item.id == item_id)
        .populate_existing()
        .with_for_update()
        .first()
    )
    if not item:
        raise NotFoundError(f"Item with id {item_id} not found")
    return item


def create_item(db: Session, payload: schemas.ItemCreate) -> models.Item:
    sku = _normalize_sku(payload.sku)
    if _get_item_by_sku(db, sku):
        raise ValidationError(f"Item with SKU {sku} already exists")
    item = models.Item(
        sku=sku,
        name=payload.name.strip(),
        description=payload.description,
        current_stock=payload.current_stock,
        minimum_stock=payload.minimum_stock,
        unit_price=payload.unit_price,
    )
    db.add(item)
    db.flush()
    logger.info(
        "Item created",
        extra={"item_id": item.id, "sku": sku, "opening_stock": payload.current_stock},
    )
    return item


def update_item(db: Session, *, item_id: int, payload: schemas.ItemUpdate) -> models.Item:
    item = read_item(db, item_id)
    changes = payload.model_dump(exclude_unset=True)

    if "sku" in changes and changes["sku"] is not None:
        sku = _normalize_sku(changes["sku"])
        clash = _get_item_by_sku(db, sku)
        if clash and clash.id != item.id:
            raise ValidationError(f"Item with SKU {sku} already exists")
        changes["sku"] = sku

    for field, value in changes.items():
        if value is None and field != "description":
            continue
        setattr(item, field, value)
    item.updated_at = _utcnow()
    db.add(item)
    db.flush()
    return item


def list_items(db: Session, *, skip: int = 0, limit: int = 100) -> List[models.Item]:
    return (
        db.query(models.Item)
        .order_by(models.Item.sku.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def _write_stock(item: models.Item, new_stock: int, *, at: datetime) -> None:
    if new_stock < 0:
        raise InvalidOperationError(f"Stock for item {item.sku} cannot go below zero")
    item.current_stock = new_stock
    item.updated_at = at


# ---------------------------------------------------------------------------
# Stock adjustment recorder
# ---------------------------------------------------------------------------


def signed_quantity(
    adjustment_type: models.StockAdjustmentTypeEnum,
    quantity_change: int,
) -> int:
    """
    Normalise a caller-supplied quantity to the signed delta for its type.

    ADDITION and REMOVAL use the magnitude only, so a REMOVAL of -40 and a
    REMOVAL of 40 both subtract 40. CORRECTION is applied as given.
    """
    if adjustment_type == models.StockAdjustmentTypeEnum.ADDITION:
        return abs(quantity_change)
    if adjustment_type == models.StockAdjustmentTypeEnum.REMOVAL:
        return -abs(quantity_change)
    return quantity_change


def _shortfall_message(
    item: models.Item,
    adjustment_type: models.StockAdjustmentTypeEnum,
    delta: int,
) -> str:
    if adjustment_type == models.StockAdjustmentTypeEnum.CORRECTION:
        return (
            f"Correction would make stock negative for item {item.sku}. "
            f"Available: {item.current_stock}, Change: {delta}"
        )
    return (
        f"Insufficient stock for item {item.sku}. "
        f"Available: {item.current_stock}, Required: {abs(delta)}"
    )


def adjust_stock(
    db: Session,
    *,
    payload: schemas.StockAdjustmentCreate,
    actor_user_id: str,
) -> models.StockAdjustment:
    reason = (payload.reason or "").strip()
    if not reason:
        raise ValidationError("reason is required for stock adjustments.")
    if payload.quantity_change == 0:
        raise ValidationError("quantity_change must be non-zero.")

    item = lock_item(db, payload.item_id)

    delta = signed_quantity(payload.adjustment_type, payload.quantity_change)
    previous_stock = item.current_stock
    new_stock = previous_stock + delta
    if new_stock < 0:
        logger.warning(
            "Stock adjustment refused",
            extra={
                "item_id": item.id,
                "adjustment_type": payload.adjustment_type.value,
                "previous_stock": previous_stock,
                "quantity_change": delta,
            },
        )
        raise InvalidOperationError(_shortfall_message(item, payload.adjustment_type, delta))

    now = _utcnow()
    _write_stock(item, new_stock, at=now)
    adjustment = models.StockAdjustment(
        item_id=item.id,
        adjustment_type=payload.adjustment_type,
        quantity_change=delta,
        reason=reason,
        previous_stock=previous_stock,
        new_stock=new_stock,
        adjusted_by=actor_user_id,
        created_at=now,
    )
    db.add(item)
    db.add(adjustment)
    db.flush()
    logger.info(
        "Stock adjusted",
        extra={
            "item_id": item.id,
            "adjustment_id": adjustment.id,
            "adjustment_type": payload.adjustment_type.value,
            "previous_stock": previous_stock,
            "new_stock": new_stock,
            "adjusted_by": actor_user_id,
        },
    )
    return adjustment


def list_stock_adjustments(
    db: Session,
    *,
    item_id: Optional[int] = None,
    adjusted_by: Optional[str] = None,
    adjustment_type: Optional[models.StockAdjustmentTypeEnum] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.StockAdjustment]:
    query = db.query(models.StockAdjustment)
    if item_id is not None:
        query = query.filter(models.StockAdjustment.item_id == item_id)
    if adjusted_by:
        query = query.filter(models.StockAdjustment.adjusted_by == adjusted_by)
    if adjustment_type is not None:
        query = query.filter(models.StockAdjustment.adjustment_type == adjustment_type)
    if start is not None:
        query = query.filter(models.StockAdjustment.created_at >= start)
    if end is not None:
        query = query.filter(models.StockAdjustment.created_at <= end)
    return (
        query.order_by(models.StockAdjustment.created_at.desc(), models.StockAdjustment.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
