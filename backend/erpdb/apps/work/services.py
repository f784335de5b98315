from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from erpdb.errors import InvalidOperationError, InvalidStateError, NotFoundError
from erpdb.apps.accounts import services as account_services
from erpdb.apps.accounts.models import UserRole
from erpdb.apps.inventory import models as inventory_models
from erpdb.apps.inventory import schemas as inventory_schemas
from erpdb.apps.inventory import services as inventory_services
from erpdb.utils.identifiers import allocate_document_number

from . import models, schemas

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Nothing moves a work order back, and COMPLETED is terminal. Completion is
# only reachable from IN_PROGRESS, which is reached through start_work_order.
WORK_ORDER_TRANSITIONS = {
    models.WorkOrderStatusEnum.OPEN: {
        models.WorkOrderStatusEnum.IN_PROGRESS,
    },
    models.WorkOrderStatusEnum.IN_PROGRESS: {
        models.WorkOrderStatusEnum.COMPLETED,
    },
    models.WorkOrderStatusEnum.COMPLETED: set(),
}


def _ensure_valid_work_order_transition(
    work_order: models.WorkOrder,
    new_status: models.WorkOrderStatusEnum,
) -> None:
    allowed = WORK_ORDER_TRANSITIONS.get(work_order.status, set())
    if new_status not in allowed:
        logger.warning(
            "Work order transition refused",
            extra={
                "work_order_number": work_order.work_order_number,
                "from_status": work_order.status.value,
                "to_status": new_status.value,
            },
        )
        raise InvalidStateError(
            f"Invalid work order transition {work_order.status.value} -> {new_status.value}."
        )


def _work_order_number_taken(db: Session, candidate: str) -> bool:
    return (
        db.query(models.WorkOrder.id)
        .filter(models.WorkOrder.work_order_number == candidate)
        .first()
        is not None
    )


def completion_reason(work_order: models.WorkOrder) -> str:
    return f"Work order completion: {work_order.work_order_number}"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_work_order(db: Session, work_order_id: int) -> models.WorkOrder:
    work_order = db.query(models.WorkOrder).filter(models.WorkOrder.id == work_order_id).first()
    if not work_order:
        raise NotFoundError(f"Work order with ID {work_order_id} not found")
    return work_order


def lock_work_order(db: Session, work_order_id: int) -> models.WorkOrder:
    """
    Load a work order with a row lock held until the transaction ends.

    Status checks for start and completion run against this fresh, locked
    row, so a second completion waits for the first and then sees COMPLETED.
    """
    work_order = (
        db.query(models.WorkOrder)
        .filter(models.WorkOrder.id == work_order_id)
        .populate_existing()
        .with_for_update()
        .first()
    )
    if not work_order:
        raise NotFoundError(f"Work order with ID {work_order_id} not found")
    return work_order


def list_work_orders(
    db: Session,
    *,
    status: Optional[models.WorkOrderStatusEnum] = None,
    assigned_technician: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.WorkOrder]:
    query = db.query(models.WorkOrder)
    if status is not None:
        query = query.filter(models.WorkOrder.status == status)
    if assigned_technician:
        query = query.filter(models.WorkOrder.assigned_technician == assigned_technician)
    return (
        query.order_by(models.WorkOrder.created_at.desc(), models.WorkOrder.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_work_order_items(db: Session, work_order_id: int) -> List[models.WorkOrderItem]:
    get_work_order(db, work_order_id)
    return (
        db.query(models.WorkOrderItem)
        .filter(models.WorkOrderItem.work_order_id == work_order_id)
        .order_by(models.WorkOrderItem.id.asc())
        .all()
    )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def create_work_order(
    db: Session,
    *,
    payload: schemas.WorkOrderCreate,
    actor_user_id: str,
) -> models.WorkOrder:
    account_services.require_user_with_role(
        db,
        clerk_id=payload.assigned_technician,
        role=UserRole.TECHNICIAN,
        label="Assigned technician",
    )

    # Availability is checked here but not reserved; completion checks again.
    for line in payload.items:
        item = inventory_services.read_item(db, line.item_id)
        if item.current_stock < line.quantity_used:
            raise InvalidOperationError(
                f"Insufficient stock for item {item.name}. "
                f"Available: {item.current_stock}, Required: {line.quantity_used}"
            )

    number = allocate_document_number("WO", exists=lambda n: _work_order_number_taken(db, n))
    now = _utcnow()
    work_order = models.WorkOrder(
        work_order_number=number,
        description=payload.description.strip(),
        assigned_technician=payload.assigned_technician.strip(),
        status=models.WorkOrderStatusEnum.OPEN,
        created_by=actor_user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(work_order)
    db.flush()

    for line in payload.items:
        work_order.items.append(
            models.WorkOrderItem(
                work_order_id=work_order.id,
                item_id=line.item_id,
                quantity_used=line.quantity_used,
            )
        )
    db.flush()
    logger.info(
        "Work order created",
        extra={
            "work_order_number": number,
            "assigned_technician": work_order.assigned_technician,
            "lines": len(payload.items),
        },
    )
    return work_order


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def start_work_order(
    db: Session,
    *,
    work_order_id: int,
    actor_user_id: str,
) -> models.WorkOrder:
    work_order = lock_work_order(db, work_order_id)
    if work_order.status == models.WorkOrderStatusEnum.IN_PROGRESS:
        return work_order
    _ensure_valid_work_order_transition(work_order, models.WorkOrderStatusEnum.IN_PROGRESS)

    work_order.status = models.WorkOrderStatusEnum.IN_PROGRESS
    work_order.updated_at = _utcnow()
    db.add(work_order)
    db.flush()
    logger.info(
        "Work order started",
        extra={"work_order_number": work_order.work_order_number, "actor": actor_user_id},
    )
    return work_order


def _required_quantities(lines: List[models.WorkOrderItem]) -> Dict[int, int]:
    required: Dict[int, int] = OrderedDict()
    for line in lines:
        required[line.item_id] = required.get(line.item_id, 0) + line.quantity_used
    return required


def _check_stock_for_completion(db: Session, lines: List[models.WorkOrderItem]) -> None:
    """
    Lock every item the work order consumes and confirm the whole plan fits.

    Runs before the first deduction, so a shortfall on any line leaves every
    item untouched. Items are locked in id order to keep lock ordering
    consistent between concurrent completions.
    """
    required = _required_quantities(lines)
    for item_id in sorted(required):
        item = inventory_services.lock_item(db, item_id)
        if item.current_stock < required[item_id]:
            raise InvalidOperationError(
                f"Insufficient stock for item {item.sku}. "
                f"Available: {item.current_stock}, Required: {required[item_id]}"
            )


def complete_work_order(db: Session, *, work_order_id: int) -> models.WorkOrder:
    work_order = lock_work_order(db, work_order_id)
    if work_order.status != models.WorkOrderStatusEnum.IN_PROGRESS:
        raise InvalidStateError(
            "Work order must be IN_PROGRESS to complete. "
            f"Current status: {work_order.status.value}"
        )

    lines = list_work_order_items(db, work_order.id)
    _check_stock_for_completion(db, lines)

    reason = completion_reason(work_order)
    for line in lines:
        inventory_services.adjust_stock(
            db,
            payload=inventory_schemas.StockAdjustmentCreate(
                item_id=line.item_id,
                adjustment_type=inventory_models.StockAdjustmentTypeEnum.REMOVAL,
                quantity_change=line.quantity_used,
                reason=reason,
            ),
            actor_user_id=work_order.assigned_technician,
        )

    _ensure_valid_work_order_transition(work_order, models.WorkOrderStatusEnum.COMPLETED)
    completed_at = _utcnow()
    work_order.status = models.WorkOrderStatusEnum.COMPLETED
    work_order.completed_at = completed_at
    work_order.updated_at = completed_at
    db.add(work_order)
    db.flush()
    logger.info(
        "Work order completed",
        extra={
            "work_order_number": work_order.work_order_number,
            "lines": len(lines),
            "assigned_technician": work_order.assigned_technician,
        },
    )
    return work_order
