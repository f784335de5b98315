from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from erpdb.errors import InvalidStateError, NotFoundError
from erpdb.apps.inventory import models as inventory_models
from erpdb.utils.identifiers import allocate_document_number

from . import models, schemas

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


PURCHASE_ORDER_TRANSITIONS = {
    models.PurchaseOrderStatusEnum.DRAFT: {
        models.PurchaseOrderStatusEnum.PENDING,
    },
    models.PurchaseOrderStatusEnum.PENDING: {
        models.PurchaseOrderStatusEnum.APPROVED,
        models.PurchaseOrderStatusEnum.REJECTED,
    },
    models.PurchaseOrderStatusEnum.APPROVED: set(),
    models.PurchaseOrderStatusEnum.REJECTED: set(),
}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def create_supplier(db: Session, payload: schemas.SupplierCreate) -> models.Supplier:
    supplier = models.Supplier(
        name=payload.name.strip(),
        contact_email=_blank_to_none(payload.contact_email),
        contact_phone=_blank_to_none(payload.contact_phone),
        address=_blank_to_none(payload.address),
        bank_account=_blank_to_none(payload.bank_account),
        tax_id=_blank_to_none(payload.tax_id),
    )
    db.add(supplier)
    db.flush()
    return supplier


def get_supplier(db: Session, supplier_id: int) -> models.Supplier:
    supplier = db.query(models.Supplier).filter(models.Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError(f"Supplier with id {supplier_id} not found")
    return supplier


def list_suppliers(db: Session) -> List[models.Supplier]:
    return db.query(models.Supplier).order_by(models.Supplier.name.asc()).all()


# ---------------------------------------------------------------------------
# Purchase orders
# ---------------------------------------------------------------------------


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return (Decimal(quantity) * Decimal(unit_price)).quantize(CENT, rounding=ROUND_HALF_UP)


def order_total(lines: Iterable[schemas.PurchaseOrderLineCreate]) -> Decimal:
    total = sum((line_total(line.quantity, line.unit_price) for line in lines), Decimal("0"))
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def _missing_item_ids(db: Session, item_ids: List[int]) -> List[int]:
    if not item_ids:
        return []
    found = {
        row.id
        for row in db.query(inventory_models.Item.id)
        .filter(inventory_models.Item.id.in_(set(item_ids)))
        .all()
    }
    missing: List[int] = []
    for item_id in item_ids:
        if item_id not in found and item_id not in missing:
            missing.append(item_id)
    return missing


def _po_number_taken(db: Session, candidate: str) -> bool:
    return (
        db.query(models.PurchaseOrder.id)
        .filter(models.PurchaseOrder.po_number == candidate)
        .first()
        is not None
    )


def create_purchase_order(
    db: Session,
    *,
    payload: schemas.PurchaseOrderCreate,
    actor_user_id: str,
) -> models.PurchaseOrder:
    get_supplier(db, payload.supplier_id)

    missing = _missing_item_ids(db, [line.item_id for line in payload.items])
    if missing:
        raise NotFoundError(f"Items with ids [{', '.join(str(i) for i in missing)}] not found")

    po_number = allocate_document_number("PO", exists=lambda n: _po_number_taken(db, n))
    now = _utcnow()
    po = models.PurchaseOrder(
        po_number=po_number,
        supplier_id=payload.supplier_id,
        status=models.PurchaseOrderStatusEnum.DRAFT,
        total_amount=order_total(payload.items),
        notes=payload.notes,
        created_by=actor_user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(po)
    db.flush()

    for line in payload.items:
        po.items.append(
            models.PurchaseOrderItem(
                po_id=po.id,
                item_id=line.item_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line_total(line.quantity, line.unit_price),
            )
        )
    db.flush()
    logger.info(
        "Purchase order created",
        extra={
            "po_number": po.po_number,
            "supplier_id": po.supplier_id,
            "total_amount": str(po.total_amount),
            "lines": len(payload.items),
        },
    )
    return po


def get_purchase_order(db: Session, purchase_order_id: int) -> models.PurchaseOrder:
    po = db.query(models.PurchaseOrder).filter(models.PurchaseOrder.id == purchase_order_id).first()
    if not po:
        raise NotFoundError(f"Purchase order with id {purchase_order_id} not found")
    return po


def list_purchase_orders(
    db: Session,
    *,
    status: Optional[models.PurchaseOrderStatusEnum] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.PurchaseOrder]:
    query = db.query(models.PurchaseOrder)
    if status is not None:
        query = query.filter(models.PurchaseOrder.status == status)
    return (
        query.order_by(models.PurchaseOrder.created_at.desc(), models.PurchaseOrder.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def _ensure_valid_purchase_order_transition(
    po: models.PurchaseOrder,
    new_status: models.PurchaseOrderStatusEnum,
) -> None:
    allowed = PURCHASE_ORDER_TRANSITIONS.get(po.status, set())
    if new_status not in allowed:
        raise InvalidStateError(
            f"Invalid purchase order transition {po.status.value} -> {new_status.value}."
        )


def transition_purchase_order(
    db: Session,
    *,
    purchase_order_id: int,
    new_status: models.PurchaseOrderStatusEnum,
    actor_user_id: str,
) -> models.PurchaseOrder:
    """
    Move a purchase order along its approval lifecycle.

    Status only: approval does not receive anything into stock.
    """
    po = get_purchase_order(db, purchase_order_id)
    if po.status == new_status:
        return po
    _ensure_valid_purchase_order_transition(po, new_status)

    previous = po.status
    po.status = new_status
    po.updated_at = _utcnow()
    db.add(po)
    db.flush()
    logger.info(
        "Purchase order status changed",
        extra={
            "po_number": po.po_number,
            "from_status": previous.value,
            "to_status": new_status.value,
            "actor": actor_user_id,
        },
    )
    return po


def submit_purchase_order(db: Session, *, purchase_order_id: int, actor_user_id: str) -> models.PurchaseOrder:
    return transition_purchase_order(
        db,
        purchase_order_id=purchase_order_id,
        new_status=models.PurchaseOrderStatusEnum.PENDING,
        actor_user_id=actor_user_id,
    )


def approve_purchase_order(db: Session, *, purchase_order_id: int, actor_user_id: str) -> models.PurchaseOrder:
    return transition_purchase_order(
        db,
        purchase_order_id=purchase_order_id,
        new_status=models.PurchaseOrderStatusEnum.APPROVED,
        actor_user_id=actor_user_id,
    )


def reject_purchase_order(db: Session, *, purchase_order_id: int, actor_user_id: str) -> models.PurchaseOrder:
    return transition_purchase_order(
        db,
        purchase_order_id=purchase_order_id,
        new_status=models.PurchaseOrderStatusEnum.REJECTED,
        actor_user_id=actor_user_id,
    )
